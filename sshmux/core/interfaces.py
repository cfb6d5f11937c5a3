"""
Core interfaces for dependency injection
"""
from abc import ABC, abstractmethod
from typing import Any


class PromptProvider(ABC):
    """User prompt interface"""

    @abstractmethod
    def prompt(self, message: str, password: bool = False) -> str:
        """Prompt user for input"""
        pass


class SessionFactory(ABC):
    """SSH session factory interface"""

    @abstractmethod
    def open(self, job: Any) -> Any:
        """Establish an authenticated session for a job"""
        pass


class JobRunner(ABC):
    """Per-host pipeline executed by the dispatcher"""

    @abstractmethod
    def run(self, job: Any) -> None:
        """Run the command for one job, recording the outcome on the job"""
        pass
