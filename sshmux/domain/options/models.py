"""
Connection option models
"""
from dataclasses import dataclass, fields
from typing import Optional, Dict, Any

from ...core.constants import DEFAULT_SSH_PORT
from ...core.utils import join_host_port


@dataclass(frozen=True)
class SSHClientOptions:
    """
    OpenSSH client options recognized by sshmux.

    Unset options are None so that layers can be merged field by field.
    See 'man 5 ssh_config' for the option details.
    """
    host: Optional[str] = None
    hostname: Optional[str] = None
    port: Optional[str] = None
    user: Optional[str] = None
    identity_file: Optional[str] = None
    forward_agent: Optional[bool] = None
    proxy_command: Optional[str] = None
    connect_timeout: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert set options to dictionary"""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not None
        }


# port is the only default with behavioral weight
DEFAULT_OPTIONS = SSHClientOptions(port=DEFAULT_SSH_PORT)


def merge_options(
    section: Optional[SSHClientOptions],
    cli: Optional[SSHClientOptions],
    defaults: SSHClientOptions = DEFAULT_OPTIONS,
) -> SSHClientOptions:
    """
    Merge option layers: command line > config file section > defaults.

    Args:
        section: Options of the matching config file section, if any
        cli: Options given on the command line, if any
        defaults: Compiled-in defaults

    Returns:
        Merged options
    """
    merged: Dict[str, Any] = {}
    for f in fields(SSHClientOptions):
        value = None
        for layer in (cli, section, defaults):
            if layer is not None and getattr(layer, f.name) is not None:
                value = getattr(layer, f.name)
                break
        merged[f.name] = value
    return SSHClientOptions(**merged)


@dataclass(frozen=True)
class EffectiveOptions:
    """
    Fully resolved connection parameters for one target host.

    Attributes:
        target: Host as requested by the user (without port)
        host: Address to connect to (HostName if configured)
        port: Port to connect to
        user: Login user, None to use the local login name
        identity_file: Resolved private key path
        forward_agent: Tri-state agent forwarding flag
        proxy_command: Proxy command template (%h/%p not yet substituted)
        connect_timeout: Connect timeout in seconds
    """
    target: str
    host: str
    port: str = DEFAULT_SSH_PORT
    user: Optional[str] = None
    identity_file: Optional[str] = None
    forward_agent: Optional[bool] = None
    proxy_command: Optional[str] = None
    connect_timeout: Optional[int] = None

    @property
    def address(self) -> str:
        """Connect address as host:port"""
        return join_host_port(self.host, self.port)
