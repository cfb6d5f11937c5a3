"""
Rich-based logging system
"""
import logging
from typing import Optional
from pathlib import Path

from rich.logging import RichHandler
from rich.console import Console
from rich.traceback import install as install_traceback


LOGGER_NAME = "sshmux"


def setup_logging(
    level: str = "WARNING",
    log_file: Optional[Path] = None,
    rich_tracebacks: bool = True,
    console: Optional[Console] = None,
) -> logging.Logger:
    """
    Setup Rich logging system.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional log file path
        rich_tracebacks: Enable rich tracebacks
        console: Console the handler writes to (stderr console by default)

    Returns:
        The application logger, to be handed to the components that log
    """
    log_level = getattr(logging, level.upper(), logging.WARNING)

    # Configure root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Remove existing handlers
    root_logger.handlers.clear()

    if rich_tracebacks:
        install_traceback(width=120)

    # Create Rich handler for stderr
    rich_handler = RichHandler(
        console=console or get_stderr_console(),
        show_time=True,
        show_path=log_level <= logging.DEBUG,
        rich_tracebacks=rich_tracebacks,
        markup=False,
        show_level=True,
    )
    rich_handler.setLevel(log_level)
    root_logger.addHandler(rich_handler)

    # Add file handler if specified
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setLevel(log_level)
        file_formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(threadName)s - %(levelname)s - %(message)s'
        )
        file_handler.setFormatter(file_formatter)
        root_logger.addHandler(file_handler)

    # paramiko logs every transport event at INFO
    if log_level > logging.DEBUG:
        logging.getLogger("paramiko").setLevel(logging.WARNING)

    return get_logger(LOGGER_NAME)


def get_logger(name: str) -> logging.Logger:
    """
    Get logger instance.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


def get_stdout_console() -> Console:
    """Create console for user-facing output"""
    return Console()


def get_stderr_console() -> Console:
    """Create console for errors and logs"""
    return Console(stderr=True)
