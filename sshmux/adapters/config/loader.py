"""
Run input loading: host list, remote environment and command
"""
from pathlib import Path
from typing import Dict, Iterable, List, Optional, TextIO

from ...core.exceptions import ConfigError


def read_hosts_file(path: Path) -> List[str]:
    """
    Read hosts from a file, one per line.

    Blank lines and lines starting with '#' are skipped.

    Raises:
        ConfigError: If the file cannot be read
    """
    try:
        text = path.expanduser().read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Failed to read hosts file {path}: {e}") from e

    hosts = []
    for line in text.splitlines():
        line = line.strip()
        if line and not line.startswith("#"):
            hosts.append(line)
    return hosts


def load_hosts(hosts: Iterable[str], hosts_file: Optional[Path] = None) -> List[str]:
    """
    Combine hosts given on the command line with those from a hosts file.

    Duplicates are removed, keeping the first occurrence.

    Args:
        hosts: Hosts from --host options
        hosts_file: Optional file of hosts

    Returns:
        Ordered, de-duplicated host list

    Raises:
        ConfigError: If no host is given or the hosts file is unreadable
    """
    combined = [h.strip() for h in hosts if h and h.strip()]
    if hosts_file is not None:
        combined.extend(read_hosts_file(hosts_file))

    result = list(dict.fromkeys(combined))
    if not result:
        raise ConfigError("no host specified for command to run")
    return result


def parse_env(entries: Iterable[str]) -> Dict[str, str]:
    """
    Parse KEY=VALUE entries for the remote environment.

    Raises:
        ConfigError: If an entry has no '=' or an empty key
    """
    env: Dict[str, str] = {}
    for entry in entries:
        key, sep, value = entry.partition("=")
        key = key.strip()
        if not sep or not key:
            raise ConfigError(f"Invalid environment variable {entry!r}, expected KEY=VALUE")
        env[key] = value
    return env


def read_command(args: Iterable[str], stdin: Optional[TextIO] = None) -> str:
    """
    Build the remote command line.

    Arguments are joined with spaces; without arguments the command is
    read from stdin.

    Raises:
        ConfigError: If the resulting command is empty
    """
    args = list(args)
    if args:
        command = " ".join(args)
    elif stdin is not None:
        command = stdin.read()
    else:
        command = ""

    command = command.strip()
    if not command:
        raise ConfigError("no command specified")
    return command
