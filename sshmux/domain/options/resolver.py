"""
Effective option resolution per target host
"""
import fnmatch
import logging
from pathlib import Path
from typing import Dict, Optional, Union

from ...core.logging import get_logger
from ...core.utils import clean_host, split_host_port, resolve_identity
from .models import SSHClientOptions, EffectiveOptions, DEFAULT_OPTIONS, merge_options
from .parser import parse_config_file


def match_host_patterns(token: str, host: str) -> bool:
    """
    Check a Host token against a host name with OpenSSH pattern rules.

    The token is a whitespace separated pattern list supporting '*', '?'
    and '!' negation. A matching negated pattern rejects the host outright.
    """
    host = host.lower()
    matched = False
    for pattern in token.split():
        negated = pattern.startswith("!")
        if negated:
            pattern = pattern[1:]
        if fnmatch.fnmatchcase(host, pattern.lower()):
            if negated:
                return False
            matched = True
    return matched


class ConfigResolver:
    """
    Builds EffectiveOptions for target hosts.

    Precedence for every field: explicit target port > command line options >
    config file section > defaults.
    """

    def __init__(
        self,
        sections: Dict[str, SSHClientOptions],
        cli_options: Optional[SSHClientOptions] = None,
        defaults: SSHClientOptions = DEFAULT_OPTIONS,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize resolver.

        Args:
            sections: Parsed config file sections
            cli_options: Options given on the command line
            defaults: Compiled-in defaults
            logger: Logger instance
        """
        self.sections = sections
        self.cli_options = cli_options or SSHClientOptions()
        self.defaults = defaults
        self.logger = logger or get_logger(__name__)

    @classmethod
    def from_path(
        cls,
        path: Union[str, Path],
        cli_options: Optional[SSHClientOptions] = None,
        logger: Optional[logging.Logger] = None,
    ) -> "ConfigResolver":
        """Create resolver from an OpenSSH config file"""
        return cls(
            parse_config_file(path, logger=logger),
            cli_options=cli_options,
            logger=logger,
        )

    def lookup(self, host: str) -> Optional[SSHClientOptions]:
        """
        Find the config section for a host.

        An exact Host token wins, otherwise the first section in file
        order whose patterns match.
        """
        if host in self.sections:
            return self.sections[host]
        for token, section in self.sections.items():
            if match_host_patterns(token, host):
                self.logger.debug("Host %s matched config pattern %r", host, token)
                return section
        return None

    def resolve(self, target: str) -> EffectiveOptions:
        """
        Resolve effective options for one target.

        Args:
            target: Host as given by the user, optionally with ":port"

        Returns:
            Immutable effective options

        Raises:
            HostError: If the target address is malformed
        """
        host, port = split_host_port(clean_host(target))
        _, explicit_port = split_host_port(target.strip())

        merged = merge_options(self.lookup(host), self.cli_options, self.defaults)

        connect_host = host
        if merged.hostname:
            connect_host = merged.hostname.replace("%h", host)

        identity_file = None
        if merged.identity_file:
            identity_file = resolve_identity(merged.identity_file)

        options = EffectiveOptions(
            target=host,
            host=connect_host,
            port=port if explicit_port else merged.port,
            user=merged.user,
            identity_file=identity_file,
            forward_agent=merged.forward_agent,
            proxy_command=merged.proxy_command,
            connect_timeout=merged.connect_timeout,
        )
        self.logger.debug("Using SSH client options for %s: %s", target, options)
        return options
