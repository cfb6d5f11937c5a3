"""
Unified exception definitions
"""
from typing import Optional


class SSHMuxError(Exception):
    """Base exception class"""
    pass


class ConfigError(SSHMuxError):
    """Setup or configuration error, aborts the run"""
    pass


class HostError(SSHMuxError):
    """Malformed host[:port] address"""
    pass


class AgentError(SSHMuxError):
    """SSH agent unavailable"""
    pass


class TransportError(SSHMuxError):
    """Dial or proxy command error"""
    pass


class AuthenticationError(SSHMuxError):
    """No authentication method could establish a session"""
    pass


class SessionError(SSHMuxError):
    """Session setup error (environment, agent forwarding)"""
    pass


class CommandError(SSHMuxError):
    """Remote command exited with a non-zero status"""

    def __init__(self, exit_status: int, message: Optional[str] = None):
        self.exit_status = exit_status
        super().__init__(message or f"command exited with status {exit_status}")
