"""
Main CLI application
"""
import sys
import typer
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from rich.markup import escape

from ... import __version__
from ...core.constants import (
    DEFAULT_CONCURRENCY,
    DEFAULT_TAIL_LINES,
    ENV_PREFIX,
    SSH_CONFIG_PATH,
)
from ...core.exceptions import SSHMuxError, AgentError
from ...core.logging import setup_logging, get_stdout_console, get_stderr_console
from ...domain.auth import AuthChain, connect_agent
from ...domain.dispatch import Dispatcher, Job
from ...domain.options import ConfigResolver, parse_options
from ...domain.transport import CommandRunner, SSHSessionFactory
from ..config.loader import load_hosts, parse_env, read_command
from .display import LiveDisplay
from .prompts import RichPromptProvider

stdout_console = get_stdout_console()
stderr_console = get_stderr_console()

# Exit codes
EXIT_SETUP_ERROR = 1
EXIT_HOST_FAILED = 2

app = typer.Typer(
    name="sshmux",
    add_completion=False,
    help="Run a command on many hosts over SSH",
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    if value:
        stdout_console.print(f"sshmux {__version__}")
        raise typer.Exit()


@app.command(context_settings={"allow_interspersed_args": False})
def main(
    command: Optional[List[str]] = typer.Argument(
        None, help="Command to run; read from stdin when omitted"
    ),
    host: Optional[List[str]] = typer.Option(
        None, "--host", "-H", help="Target host[:port] (repeatable)"
    ),
    hosts_file: Optional[Path] = typer.Option(
        None, "--hosts", envvar=f"{ENV_PREFIX}HOSTS", help="File with one host per line"
    ),
    user: Optional[str] = typer.Option(None, "--user", "-u", help="Login user"),
    identity: Optional[List[str]] = typer.Option(
        None, "--identity", "-i", help="Identity file (repeatable)"
    ),
    option: Optional[List[str]] = typer.Option(
        None, "--option", "-o", help="OpenSSH option, e.g. 'Port 2222' (repeatable)"
    ),
    agent: bool = typer.Option(
        False, "--agent", "-A", help="Authenticate with and forward the local ssh agent"
    ),
    env: Optional[List[str]] = typer.Option(
        None, "--env", "-e", help="Remote environment variable KEY=VALUE (repeatable)"
    ),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Discard command output"),
    concurrency: int = typer.Option(
        DEFAULT_CONCURRENCY,
        "--concurrency",
        "-c",
        min=1,
        envvar=f"{ENV_PREFIX}CONCURRENCY",
        help="Number of hosts handled at once",
    ),
    ssh_config: Path = typer.Option(
        Path(SSH_CONFIG_PATH),
        "--ssh-config",
        "-F",
        envvar=f"{ENV_PREFIX}SSH_CONFIG",
        help="OpenSSH client config file",
    ),
    tail: int = typer.Option(
        DEFAULT_TAIL_LINES, "--tail", min=1, help="Output lines shown per host"
    ),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
    log_level: str = typer.Option(
        "WARNING",
        "--log-level",
        "-l",
        help="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    ),
    log_file: Optional[Path] = typer.Option(None, "--log-file", help="Log file path"),
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Show version"
    ),
):
    """
    Run a command on many hosts over SSH

    Examples:
        sshmux -H web1 -H web2 uptime
        sshmux --hosts hosts.txt -c 20 -- df -h /
        echo 'systemctl restart app' | sshmux --hosts hosts.txt -A
    """
    logger = setup_logging(level="DEBUG" if debug else log_level, log_file=log_file)

    try:
        remote_command = read_command(command or [], sys.stdin)
        hosts = load_hosts(host or [], hosts_file)
        remote_env = parse_env(env or [])

        cli_options = parse_options(option or [], logger=logger)
        overrides = {}
        if user:
            overrides["user"] = user
        if agent and cli_options.forward_agent is None:
            overrides["forward_agent"] = True
        if overrides:
            cli_options = replace(cli_options, **overrides)

        resolver = ConfigResolver.from_path(
            ssh_config.expanduser(), cli_options=cli_options, logger=logger
        )
        jobs = _resolve_jobs(resolver, hosts)

        ssh_agent = None
        if agent:
            ssh_agent = connect_agent()
        elif any(job.options and job.options.forward_agent for job in jobs):
            try:
                ssh_agent = connect_agent()
            except AgentError as e:
                logger.warning("Agent forwarding requested by config but unavailable: %s", e)

        prompt_provider = RichPromptProvider(stderr_console)
        auth_chain = AuthChain.build(identity or [], ssh_agent, prompt=prompt_provider, logger=logger)
        auth_chain.preload(job.options.identity_file for job in jobs if job.options)
    except SSHMuxError as e:
        stderr_console.print(f"[red]Error:[/red] {escape(str(e))}", highlight=False)
        raise typer.Exit(EXIT_SETUP_ERROR)

    session_factory = SSHSessionFactory(auth_chain, agent=ssh_agent, logger=logger)
    runner = CommandRunner(remote_command, session_factory, env=remote_env, quiet=quiet, logger=logger)
    dispatcher = Dispatcher(runner, concurrency=concurrency, logger=logger)
    display = LiveDisplay(jobs, stdout_console, tail=tail)

    display.start()
    try:
        dispatcher.dispatch(jobs)
    finally:
        display.stop()

    failed = [job for job in jobs if job.failed]
    if failed:
        logger.info("%d of %d hosts failed", len(failed), len(jobs))
        raise typer.Exit(EXIT_HOST_FAILED)


def _resolve_jobs(resolver: ConfigResolver, hosts: List[str]) -> List[Job]:
    """One job per host; a malformed address fails only its own job"""
    jobs = []
    for target in hosts:
        job = Job(host=target)
        try:
            job.options = resolver.resolve(target)
        except SSHMuxError as e:
            job.fail(e)
        jobs.append(job)
    return jobs


def run():
    """CLI entry point"""
    app()


if __name__ == "__main__":
    run()
