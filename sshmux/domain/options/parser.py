"""
OpenSSH client option and config file parsing

Only the options listed in _KEYWORDS are understood. Any other keyword is
dropped at this boundary, and lines that cannot be parsed are skipped, so a
config written for a newer OpenSSH never aborts a run.
"""
import logging
import re
from dataclasses import replace
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Tuple, Union

from ...core.constants import DEFAULT_SSH_PORT
from ...core.exceptions import ConfigError
from ...core.logging import get_logger
from .models import SSHClientOptions

# Keyword, then whitespace and/or exactly one '=', then the argument
OPTION_EXPR = re.compile(r"^\s*(\w+)(?:\s*=\s*|\s+)(.*?)\s*$")


def _parse_str(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] == '"':
        return value[1:-1]
    return value


def _parse_port(value: str) -> str:
    value = _parse_str(value)
    if not value.isdigit() or not 0 < int(value) < 65536:
        raise ValueError(f"invalid port {value!r}")
    return value


def _parse_bool(value: str) -> bool:
    lowered = _parse_str(value).lower()
    if lowered == "yes":
        return True
    if lowered == "no":
        return False
    raise ValueError(f"expected 'yes' or 'no', got {value!r}")


def _parse_timeout(value: str) -> int:
    value = _parse_str(value)
    if not value.isdigit():
        raise ValueError(f"ConnectTimeout is not an integer: {value!r}")
    return int(value)


# keyword (lowercase) -> (field name, converter)
_KEYWORDS: Dict[str, Tuple[str, Callable[[str], object]]] = {
    "host": ("host", str),
    "hostname": ("hostname", _parse_str),
    "port": ("port", _parse_port),
    "user": ("user", _parse_str),
    "identityfile": ("identity_file", _parse_str),
    "forwardagent": ("forward_agent", _parse_bool),
    "proxycommand": ("proxy_command", str),
    "connecttimeout": ("connect_timeout", _parse_timeout),
}


def split_option(entry: str) -> Optional[Tuple[str, str]]:
    """
    Split an option string into (keyword, argument).

    Accepts "key value", "key=value", "key = value" and "key<TAB>value".

    Returns:
        (keyword, argument), or None if the entry has no argument
    """
    m = OPTION_EXPR.match(entry)
    if not m or not m.group(2):
        return None
    return m.group(1), m.group(2)


def parse_options(
    plain_opts: Iterable[str],
    logger: Optional[logging.Logger] = None,
) -> SSHClientOptions:
    """
    Convert a list of OpenSSH client options to SSHClientOptions.

    When an option is given more than once the last occurrence wins.

    Args:
        plain_opts: Option strings, e.g. ["Port 2222", "User=deploy"]
        logger: Logger for skipped entries

    Returns:
        Parsed options, unset fields left as None
    """
    log = logger or get_logger(__name__)
    values: Dict[str, object] = {}

    for entry in plain_opts:
        parts = split_option(entry)
        if parts is None:
            if entry.strip():
                log.warning("Skipping malformed SSH option: %r", entry)
            continue

        keyword, argument = parts
        spec = _KEYWORDS.get(keyword.lower())
        if spec is None:
            log.debug("Ignoring unsupported SSH option: %s", keyword)
            continue

        name, convert = spec
        try:
            values[name] = convert(argument)
        except ValueError as e:
            log.warning("Skipping SSH option %s: %s", keyword, e)

    options = SSHClientOptions(**values)
    log.debug("Parsed SSH options: %s", options.to_dict())
    return options


def split_sections(lines: Iterable[str]) -> List[Tuple[str, List[str]]]:
    """
    Group config lines into Host blocks.

    Everything between one Host line and the next belongs to the first.
    Comments, blank lines and lines before the first Host are dropped,
    and a Match block ends the current Host block.

    Returns:
        List of (host token, block lines), Host line first
    """
    sections: List[Tuple[str, List[str]]] = []
    current: Optional[List[str]] = None

    for line in lines:
        text = line.strip()
        if not text or text.startswith("#"):
            continue

        parts = split_option(text)
        keyword = parts[0].lower() if parts else None

        if keyword == "host":
            current = [text]
            sections.append((parts[1], current))
        elif keyword == "match":
            current = None
        elif current is not None:
            current.append(text)

    return sections


def parse_config_file(
    path: Union[str, Path],
    logger: Optional[logging.Logger] = None,
) -> Dict[str, SSHClientOptions]:
    """
    Parse an OpenSSH client config file into per-Host sections.

    A missing file yields an empty mapping. Sections are keyed by the literal
    Host token; when a token appears twice the first section wins, as with
    OpenSSH.

    Args:
        path: Config file path (~ is expanded)
        logger: Logger for parse diagnostics

    Returns:
        Mapping of host token to its options, Port defaulted to 22

    Raises:
        ConfigError: If the file exists but cannot be read
    """
    log = logger or get_logger(__name__)
    config_path = Path(path).expanduser()

    log.debug("Parsing ssh config file: %s", config_path)
    try:
        content = config_path.read_text(encoding="utf-8", errors="replace")
    except FileNotFoundError:
        log.debug("Cannot find ssh config file: %s", config_path)
        return {}
    except OSError as e:
        raise ConfigError(f"Failed to read ssh config file {config_path}: {e}") from e

    sections: Dict[str, SSHClientOptions] = {}
    for token, block in split_sections(content.splitlines()):
        if token in sections:
            log.debug("Duplicate Host section ignored: %s", token)
            continue
        options = parse_options(block, logger=log)
        if options.port is None:
            options = replace(options, port=DEFAULT_SSH_PORT)
        sections[token] = options

    return sections
