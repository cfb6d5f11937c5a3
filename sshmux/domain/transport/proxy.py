"""
Byte transports: direct TCP and ProxyCommand subprocess
"""
import logging
import os
import shlex
import socket
import subprocess
from select import select
from typing import Optional, Union

import paramiko
from paramiko.ssh_exception import ProxyCommandFailure

from ...core.exceptions import TransportError
from ...core.logging import get_logger
from ..options import EffectiveOptions


# Seconds a proxy command gets to exit once its stdin is closed
PROXY_EXIT_TIMEOUT = 5.0


def render_proxy_command(template: str, host: str, port: str) -> str:
    """Substitute %h and %p in a ProxyCommand template"""
    return template.replace("%h", host).replace("%p", port)


class ProxyCommandTransport(paramiko.ProxyCommand):
    """
    A ProxyCommand subprocess used as the SSH byte stream.

    Its stdin/stdout carry the protocol, stderr is discarded. Closing shuts
    the write side first so the command sees end of input, then the read
    side, then reaps the process.
    """

    def __init__(self, command_line: str, logger: Optional[logging.Logger] = None):
        """
        Start the proxy command.

        Args:
            command_line: Command with %h/%p already substituted
            logger: Logger instance

        Raises:
            TransportError: If the command is empty or cannot be started
        """
        try:
            self.cmd = shlex.split(command_line)
        except ValueError as e:
            raise TransportError(f"Invalid ProxyCommand {command_line!r}: {e}") from e
        if not self.cmd:
            raise TransportError("Empty ProxyCommand")

        try:
            self.process = subprocess.Popen(
                self.cmd,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
                bufsize=0,
            )
        except OSError as e:
            raise TransportError(f"Failed to start ProxyCommand {command_line!r}: {e}") from e

        self.logger = logger or get_logger(__name__)
        self.timeout = None
        self._shut = False
        self.logger.debug("ProxyCommand started: %r (pid %s)", command_line, self.process.pid)

    def recv(self, size: int) -> bytes:
        """
        Read up to size bytes from the command's stdout.

        Returns b"" at end of stream, like a socket.
        """
        try:
            ready, _, _ = select([self.process.stdout], [], [], self.timeout)
            if not ready:
                raise socket.timeout()
            return os.read(self.process.stdout.fileno(), size)
        except socket.timeout:
            raise
        except (OSError, ValueError) as e:
            raise ProxyCommandFailure(" ".join(self.cmd), str(e))

    def close(self) -> None:
        """Close stdin, then stdout, then wait for the command to exit"""
        if self._shut:
            return
        self._shut = True
        try:
            self.process.stdin.close()
        except OSError as e:
            self.logger.debug("ProxyCommand stdin close failed: %s", e)
        finally:
            self.process.stdout.close()

        try:
            self.process.wait(timeout=PROXY_EXIT_TIMEOUT)
        except subprocess.TimeoutExpired:
            self.logger.debug("ProxyCommand did not exit, terminating pid %s", self.process.pid)
            self.process.terminate()
            self.process.wait()

    @property
    def closed(self) -> bool:
        return self._shut or self.process.poll() is not None


def dial(options: EffectiveOptions) -> socket.socket:
    """
    Open a TCP connection to the host, honoring ConnectTimeout.

    Raises:
        TransportError: If the connection cannot be established
    """
    try:
        return socket.create_connection(
            (options.host, int(options.port)),
            timeout=options.connect_timeout or None,
        )
    except (OSError, ValueError) as e:
        raise TransportError(f"dial tcp {options.address}: {e}") from e


def open_transport(
    options: EffectiveOptions,
    logger: Optional[logging.Logger] = None,
) -> Union[socket.socket, ProxyCommandTransport]:
    """Open the byte transport for a host: proxy command if set, TCP otherwise"""
    if options.proxy_command:
        command_line = render_proxy_command(options.proxy_command, options.host, options.port)
        return ProxyCommandTransport(command_line, logger=logger)
    return dial(options)
