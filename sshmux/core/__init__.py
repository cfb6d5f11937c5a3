"""
Core infrastructure layer
"""
from .constants import *
from .exceptions import *
from .logging import setup_logging, get_logger, get_stdout_console, get_stderr_console
from .interfaces import PromptProvider, SessionFactory, JobRunner
from .utils import (
    split_host_port,
    join_host_port,
    clean_host,
    resolve_identity,
)

__all__ = [
    "setup_logging",
    "get_logger",
    "get_stdout_console",
    "get_stderr_console",
    "PromptProvider",
    "SessionFactory",
    "JobRunner",
    "split_host_port",
    "join_host_port",
    "clean_host",
    "resolve_identity",
]
