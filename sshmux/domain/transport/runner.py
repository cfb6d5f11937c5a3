"""
Remote command execution over an established session
"""
import codecs
import logging
from typing import Dict, Optional

from ...core.constants import READ_CHUNK_SIZE
from ...core.exceptions import CommandError, SSHMuxError
from ...core.interfaces import JobRunner, SessionFactory
from ...core.logging import get_logger
from ..dispatch.models import Job, JobState
from .session import SSHSession


class CommandRunner(JobRunner):
    """
    Runs one command on a host: open session, apply environment, execute,
    stream output into the job, close.

    Every failure ends up on the job; nothing is raised to the worker.
    """

    def __init__(
        self,
        command: str,
        session_factory: SessionFactory,
        env: Optional[Dict[str, str]] = None,
        quiet: bool = False,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize runner.

        Args:
            command: Command line executed on every host
            session_factory: Establishes sessions
            env: Environment variables set before the command runs
            quiet: Discard command output
            logger: Logger instance
        """
        self.command = command
        self.session_factory = session_factory
        self.env = env or {}
        self.quiet = quiet
        self.logger = logger or get_logger(__name__)

    def run(self, job: Job) -> None:
        """Run the command for one job, recording the outcome on the job"""
        if job.failed:
            return

        try:
            session = self.session_factory.open(job)
        except SSHMuxError as e:
            job.fail(e)
            return
        except Exception as e:
            self.logger.debug("Unexpected error connecting to %s", job.host, exc_info=True)
            job.fail(e)
            return

        try:
            self.execute(session, job)
        except Exception as e:
            job.fail(e)
        finally:
            session.close()

        if not job.failed:
            job.set_state(JobState.CLOSED)
        self.logger.debug("Finished %s on %s: %s", self.command, job.host, job.error or "ok")

    def execute(self, session: SSHSession, job: Job) -> None:
        """
        Execute the command on an established session.

        Raises:
            SessionError: If an environment variable cannot be set
            CommandError: If the command exits with a non-zero status
        """
        for key, value in self.env.items():
            session.set_environment_variable(key, value)

        channel = session.channel
        channel.set_combine_stderr(True)
        channel.exec_command(self.command)

        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        while True:
            data = channel.recv(READ_CHUNK_SIZE)
            if not data:
                break
            if not self.quiet:
                job.write(decoder.decode(data))

        if not self.quiet:
            job.write(decoder.decode(b"", final=True))
            job.flush()

        status = channel.recv_exit_status()
        if status != 0:
            raise CommandError(status)
