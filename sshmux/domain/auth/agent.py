"""
Local SSH agent connection
"""
import os
import socket

import paramiko

from ...core.constants import AGENT_SOCK_ENV
from ...core.exceptions import AgentError


def connect_agent() -> paramiko.Agent:
    """
    Connect to the SSH agent named by SSH_AUTH_SOCK.

    paramiko.Agent silently yields no keys when the socket is unreachable,
    so the socket is tried first.

    Returns:
        Connected agent client

    Raises:
        AgentError: If SSH_AUTH_SOCK is unset or the agent is unreachable
    """
    sock_path = os.environ.get(AGENT_SOCK_ENV)
    if not sock_path:
        raise AgentError(
            "Unable to connect to the ssh agent. "
            f"Please, check that {AGENT_SOCK_ENV} is set and the ssh agent is running"
        )

    check = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    try:
        check.connect(sock_path)
    except OSError as e:
        raise AgentError(f"Unable to connect to the ssh agent at {sock_path}: {e}") from e
    finally:
        check.close()

    try:
        return paramiko.Agent()
    except paramiko.SSHException as e:
        raise AgentError(f"Unable to talk to the ssh agent at {sock_path}: {e}") from e
