"""
SSH session establishment
"""
import getpass
import logging
from typing import Callable, Optional

import paramiko
from paramiko.agent import AgentRequestHandler
from paramiko.common import cMSG_CHANNEL_REQUEST

from ...core.exceptions import AuthenticationError, SessionError
from ...core.interfaces import SessionFactory
from ...core.logging import get_logger
from ..auth import AuthChain
from ..dispatch.models import Job, JobState
from .proxy import open_transport

NO_METHOD_SUCCEEDED = (
    "none of the provided authentication methods can establish SSH session successfully"
)


class SSHSession:
    """
    An authenticated transport and the session channel opened on it.

    The session owns the transport: close() closes the channel first,
    then the transport (and with it the socket or proxy command), once.
    """

    def __init__(
        self,
        transport: paramiko.Transport,
        channel: paramiko.Channel,
        method: str,
        forwarder: Optional[AgentRequestHandler] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.transport = transport
        self.channel = channel
        self.method = method
        self.forwarder = forwarder
        self.logger = logger or get_logger(__name__)
        self._closed = False

    def close(self) -> None:
        """Close channel, then transport"""
        if self._closed:
            return
        self._closed = True
        try:
            if self.forwarder is not None:
                self.forwarder.close()
            self.channel.close()
        except (paramiko.SSHException, OSError, EOFError) as e:
            self.logger.debug("Session channel close failed: %s", e)
        finally:
            self.transport.close()

    def set_environment_variable(self, name: str, value: str) -> None:
        """
        Set a remote environment variable and wait for the server's answer.

        paramiko's own request does not ask for a reply, so a variable
        refused by the server (AcceptEnv) would pass unnoticed. A refusal
        closes the channel.

        Raises:
            SessionError: If the server refuses the variable or the channel is closed
        """
        channel = self.channel
        if channel.closed:
            raise SessionError(f"failed to set environment variable {name}: channel is closed")

        m = paramiko.Message()
        m.add_byte(cMSG_CHANNEL_REQUEST)
        m.add_int(channel.remote_chanid)
        m.add_string("env")
        m.add_boolean(True)
        m.add_string(name)
        m.add_string(value)
        channel._event_pending()
        try:
            channel.transport._send_user_message(m)
            channel._wait_for_event()
        except (paramiko.SSHException, EOFError, OSError) as e:
            raise SessionError(f"failed to set environment variable {name}: {e}") from e

    def __enter__(self) -> "SSHSession":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()


class SSHSessionFactory(SessionFactory):
    """
    Establishes sessions by trying authentication methods in order.

    Every method gets a fresh transport and a full handshake; the first
    one that authenticates wins and the rest are not tried.
    """

    def __init__(
        self,
        auth_chain: AuthChain,
        default_user: Optional[str] = None,
        transport_factory: Callable[..., paramiko.Transport] = paramiko.Transport,
        agent: Optional[paramiko.Agent] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize session factory.

        Args:
            auth_chain: Authentication methods per host
            default_user: User when no option sets one (local login name by default)
            transport_factory: Builds an SSH transport over a byte stream
            agent: Connected local agent; agent forwarding needs one
            logger: Logger instance
        """
        self.auth_chain = auth_chain
        self.default_user = default_user or getpass.getuser()
        self.transport_factory = transport_factory
        self.agent = agent
        self.logger = logger or get_logger(__name__)

    def open(self, job: Job) -> SSHSession:
        """
        Establish an authenticated session for a job.

        Args:
            job: Job with resolved options; its state is advanced as we go

        Returns:
            Established session

        Raises:
            TransportError: If the host cannot be reached
            AuthenticationError: If no method authenticates
            SessionError: If the session channel or agent forwarding fails
        """
        options = job.options
        methods = self.auth_chain.for_options(options)
        if not methods:
            raise AuthenticationError(
                "no authentication methods available: no identity file could be "
                "loaded and no ssh agent is in use"
            )

        username = options.user or self.default_user
        last_error: Optional[BaseException] = None

        for name, method in methods.items():
            job.set_state(JobState.CONNECTING)
            sock = open_transport(options, logger=self.logger)

            transport = None
            try:
                transport = self.transport_factory(sock)
                transport.start_client(timeout=options.connect_timeout or None)
                job.set_state(JobState.AUTHENTICATING)
                method.authenticate(transport, username)
                if not transport.is_authenticated():
                    raise paramiko.AuthenticationException(
                        "partial authentication, further methods required"
                    )
            except (paramiko.SSHException, EOFError, OSError) as e:
                self.logger.debug(
                    "Failed to establish session to %s using %s - %s", options.address, name, e
                )
                last_error = e
                if transport is not None:
                    transport.close()
                sock.close()
                continue

            self.logger.debug("Session to %s established using %s", options.address, name)
            forward = bool(options.forward_agent)
            if forward and self.agent is None:
                self.logger.debug("No ssh agent connected, not forwarding it to %s", options.address)
                forward = False
            return self._open_channel(transport, name, forward, job)

        raise AuthenticationError(NO_METHOD_SUCCEEDED) from last_error

    def _open_channel(
        self,
        transport: paramiko.Transport,
        method: str,
        forward_agent: bool,
        job: Job,
    ) -> SSHSession:
        try:
            channel = transport.open_session()
            forwarder = AgentRequestHandler(channel) if forward_agent else None
        except (paramiko.SSHException, EOFError, OSError) as e:
            transport.close()
            raise SessionError(f"failed to open session channel: {e}") from e

        job.set_state(JobState.ESTABLISHED)
        return SSHSession(transport, channel, method, forwarder, logger=self.logger)
