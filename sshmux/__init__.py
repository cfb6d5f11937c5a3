"""
sshmux - run one command on many hosts over SSH

Resolves per-host connection options from the OpenSSH client config and
command line, authenticates with the ssh agent and private keys, optionally
tunnels through a proxy command, and dispatches the command to a bounded
pool of workers while streaming each host's output to the terminal.
"""

__version__ = "0.1.0"

from .core import (
    SSHMuxError,
    ConfigError,
    HostError,
    AgentError,
    TransportError,
    AuthenticationError,
    SessionError,
    CommandError,
    setup_logging,
    clean_host,
)

from .domain.options import (
    SSHClientOptions,
    EffectiveOptions,
    ConfigResolver,
    parse_options,
    parse_config_file,
)

from .domain.auth import AuthChain, connect_agent

from .domain.dispatch import Job, JobState, Dispatcher

from .domain.transport import SSHSessionFactory, CommandRunner

__all__ = [
    # Version
    "__version__",
    # Errors
    "SSHMuxError",
    "ConfigError",
    "HostError",
    "AgentError",
    "TransportError",
    "AuthenticationError",
    "SessionError",
    "CommandError",
    # Utilities
    "setup_logging",
    "clean_host",
    # Options
    "SSHClientOptions",
    "EffectiveOptions",
    "ConfigResolver",
    "parse_options",
    "parse_config_file",
    # Authentication
    "AuthChain",
    "connect_agent",
    # Dispatch
    "Job",
    "JobState",
    "Dispatcher",
    # Session
    "SSHSessionFactory",
    "CommandRunner",
]
