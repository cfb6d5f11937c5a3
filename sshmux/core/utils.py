"""
Core utility functions
"""
import os
from pathlib import Path
from typing import Tuple

from .constants import DEFAULT_SSH_PORT, SSH_DIR
from .exceptions import HostError


# ============================================================
# Host Address Handling
# ============================================================

def split_host_port(address: str) -> Tuple[str, str]:
    """
    Split "host:port", "[v6addr]:port" or a bare host into its parts.

    A missing port is returned as an empty string.

    Args:
        address: Host address as given by the user

    Returns:
        (host, port)

    Raises:
        HostError: If the address is malformed
    """
    if not address:
        raise HostError("empty host address")

    if address.startswith("["):
        end = address.find("]")
        if end < 0:
            raise HostError(f"missing ']' in address: {address}")
        host = address[1:end]
        rest = address[end + 1:]
        if not rest:
            return host, ""
        if not rest.startswith(":"):
            raise HostError(f"unexpected characters after ']' in address: {address}")
        port = rest[1:]
        if ":" in port:
            raise HostError(f"too many colons in address: {address}")
    else:
        colons = address.count(":")
        if colons == 0:
            host, port = address, ""
        elif colons == 1:
            host, port = address.split(":")
        else:
            raise HostError(f"too many colons in address: {address}")

    if "[" in host or "]" in host:
        raise HostError(f"unexpected bracket in address: {address}")
    if not host:
        raise HostError(f"missing host in address: {address}")
    return host, port


def join_host_port(host: str, port: str) -> str:
    """Join host and port, bracketing IPv6 literals"""
    if ":" in host:
        return f"[{host}]:{port}"
    return f"{host}:{port}"


def clean_host(address: str) -> str:
    """
    Normalize a host address to "host:port", appending the default port.

    Examples:
        clean_host("192.168.1.3") -> "192.168.1.3:22"
        clean_host("192.168.1.3:2222") -> "192.168.1.3:2222"
        clean_host("::1") -> HostError (ambiguous, use "[::1]")

    Raises:
        HostError: If the address is malformed
    """
    host, port = split_host_port(address.strip())
    if not port:
        port = DEFAULT_SSH_PORT
    elif not port.isdigit():
        raise HostError(f"invalid port {port!r} in address: {address}")
    return join_host_port(host, port)


# ============================================================
# Path Resolution Utilities
# ============================================================

def resolve_identity(identity: str) -> str:
    """
    Resolve an identity file path.

    Bare file names are looked up in ~/.ssh, "~" is expanded.
    """
    if not os.path.dirname(identity):
        return str(Path(SSH_DIR).expanduser() / identity)
    return str(Path(identity).expanduser())
