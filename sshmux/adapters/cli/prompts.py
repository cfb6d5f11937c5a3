"""
Rich-based user prompts
"""
from typing import Optional
from rich.console import Console
from rich.prompt import Prompt

from ...core.interfaces import PromptProvider
from ...core.logging import get_stderr_console


class RichPromptProvider(PromptProvider):
    """
    Rich-based prompt provider.

    Prompts go to stderr so they never mix with command output on stdout.
    Access is serialized by the caller; prompts are only issued from the
    main thread before dispatch or under the auth chain's lock.
    """

    def __init__(self, console: Optional[Console] = None):
        self.console = console or get_stderr_console()

    def prompt(self, message: str, password: bool = False) -> str:
        """Prompt user for input"""
        return Prompt.ask(message, password=password, console=self.console)
