"""
Authentication chain building
"""
import logging
import threading
from pathlib import Path
from typing import Dict, Iterable, List, Optional

import paramiko

from ...core.constants import AGENT_METHOD_NAME, DEFAULT_IDENTITY_FILES, SSH_DIR
from ...core.interfaces import PromptProvider
from ...core.logging import get_logger
from ...core.utils import resolve_identity
from ..options import EffectiveOptions
from .methods import AuthMethod, AgentAuth, PublicKeyAuth, load_private_key


def default_identity_files() -> List[str]:
    """Conventional identity files under ~/.ssh, in attempt order"""
    ssh_dir = Path(SSH_DIR).expanduser()
    return [str(ssh_dir / name) for name in DEFAULT_IDENTITY_FILES]


def build_auth_methods(
    identity_files: Iterable[str],
    agent: Optional[paramiko.Agent] = None,
    prompt: Optional[PromptProvider] = None,
    logger: Optional[logging.Logger] = None,
) -> Dict[str, AuthMethod]:
    """
    Build the ordered authentication methods.

    The agent, when given, comes first. Without identity files the default
    ones are tried and those that cannot be loaded are skipped quietly.
    A file that fails to load is dropped; the builder itself never fails.

    Args:
        identity_files: Private key paths
        agent: Connected SSH agent, if any
        prompt: Prompt provider for key passphrases
        logger: Logger instance

    Returns:
        Mapping of method name to method, in attempt order (may be empty)
    """
    log = logger or get_logger(__name__)
    methods: Dict[str, AuthMethod] = {}

    if agent is not None:
        methods[AGENT_METHOD_NAME] = AgentAuth(agent)

    paths = [resolve_identity(p) for p in identity_files]
    explicit = bool(paths)
    if not explicit:
        paths = default_identity_files()

    for path in paths:
        if path in methods:
            continue
        try:
            methods[path] = PublicKeyAuth(path, load_private_key(path, prompt))
        except (OSError, paramiko.SSHException) as e:
            if explicit:
                log.warning("Skipping identity file %s: %s", path, e)
            else:
                log.debug("Skipping default identity file %s: %s", path, e)

    log.debug("Authentication methods: %s", list(methods))
    return methods


class AuthChain:
    """
    Per-host authentication methods on top of a shared base set.

    Identity files named by config sections are loaded once per run and
    cached, failures included, so a passphrase is asked at most once.
    """

    def __init__(
        self,
        methods: Dict[str, AuthMethod],
        prompt: Optional[PromptProvider] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.methods = methods
        self.prompt = prompt
        self.logger = logger or get_logger(__name__)
        self._extra: Dict[str, Optional[AuthMethod]] = {}
        self._lock = threading.Lock()

    @classmethod
    def build(
        cls,
        identity_files: Iterable[str],
        agent: Optional[paramiko.Agent] = None,
        prompt: Optional[PromptProvider] = None,
        logger: Optional[logging.Logger] = None,
    ) -> "AuthChain":
        """Create chain from identity files and an optional agent"""
        methods = build_auth_methods(identity_files, agent, prompt, logger)
        return cls(methods, prompt=prompt, logger=logger)

    def preload(self, identity_files: Iterable[Optional[str]]) -> None:
        """Load host specific identity files ahead of dispatch"""
        for path in identity_files:
            if path:
                self._identity_method(path)

    def _identity_method(self, path: str) -> Optional[AuthMethod]:
        if path in self.methods:
            return self.methods[path]
        with self._lock:
            if path not in self._extra:
                try:
                    self._extra[path] = PublicKeyAuth(path, load_private_key(path, self.prompt))
                except (OSError, paramiko.SSHException) as e:
                    self.logger.warning("Skipping identity file %s: %s", path, e)
                    self._extra[path] = None
            return self._extra[path]

    def for_options(self, options: EffectiveOptions) -> Dict[str, AuthMethod]:
        """
        Ordered methods for one host.

        Agent first, then the host's own identity file, then the base
        identities.
        """
        ordered: Dict[str, AuthMethod] = {}
        if AGENT_METHOD_NAME in self.methods:
            ordered[AGENT_METHOD_NAME] = self.methods[AGENT_METHOD_NAME]
        if options.identity_file:
            method = self._identity_method(options.identity_file)
            if method is not None:
                ordered[options.identity_file] = method
        for name, method in self.methods.items():
            ordered.setdefault(name, method)
        return ordered
