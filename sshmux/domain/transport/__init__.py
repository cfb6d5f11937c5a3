"""
Transport, session and command execution domain module
"""
from .proxy import ProxyCommandTransport, render_proxy_command, dial, open_transport
from .session import SSHSession, SSHSessionFactory, NO_METHOD_SUCCEEDED
from .runner import CommandRunner

__all__ = [
    "ProxyCommandTransport",
    "render_proxy_command",
    "dial",
    "open_transport",
    "SSHSession",
    "SSHSessionFactory",
    "NO_METHOD_SUCCEEDED",
    "CommandRunner",
]
