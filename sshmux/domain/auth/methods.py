"""
SSH authentication methods
"""
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Union

import paramiko

from ...core.constants import AGENT_METHOD_NAME
from ...core.interfaces import PromptProvider

# Tried in order; a key file of another type raises SSHException
KEY_CLASSES = [paramiko.Ed25519Key, paramiko.ECDSAKey, paramiko.RSAKey]
if hasattr(paramiko, "DSSKey"):
    KEY_CLASSES.append(paramiko.DSSKey)


class AuthMethod(ABC):
    """A named strategy able to authenticate an SSH transport"""

    def __init__(self, name: str):
        self.name = name

    @abstractmethod
    def authenticate(self, transport: paramiko.Transport, username: str) -> None:
        """
        Authenticate an open transport.

        Raises:
            paramiko.AuthenticationException: If the server rejects the method
            paramiko.SSHException: On protocol errors
        """
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.name!r})"


class PublicKeyAuth(AuthMethod):
    """Authentication with a private key loaded from disk"""

    def __init__(self, name: str, key: paramiko.PKey):
        super().__init__(name)
        self.key = key

    def authenticate(self, transport: paramiko.Transport, username: str) -> None:
        transport.auth_publickey(username, self.key)


class SerializedAgentKey(paramiko.AgentKey):
    """Agent key whose signing requests go through a shared lock"""

    def __init__(self, key: paramiko.AgentKey, lock: threading.Lock):
        super().__init__(key.agent, key.blob, key.comment)
        self._lock = lock

    def sign_ssh_data(self, data, algorithm=None):
        with self._lock:
            return super().sign_ssh_data(data, algorithm)


class AgentAuth(AuthMethod):
    """
    Authentication with the identities held by the local SSH agent.

    paramiko's agent client talks over a single socket, so only the signing
    requests are serialized; the rest of each handshake runs concurrently.
    """

    def __init__(self, agent: paramiko.Agent, name: str = AGENT_METHOD_NAME):
        super().__init__(name)
        self.agent = agent
        self._lock = threading.Lock()

    def authenticate(self, transport: paramiko.Transport, username: str) -> None:
        keys = [SerializedAgentKey(key, self._lock) for key in self.agent.get_keys()]
        if not keys:
            raise paramiko.AuthenticationException("SSH agent holds no identities")

        last_error: Optional[Exception] = None
        for key in keys:
            try:
                transport.auth_publickey(username, key)
                return
            except paramiko.AuthenticationException as e:
                last_error = e
        raise last_error


# ============================================================
# Private Key Loading
# ============================================================

def _load_key(path: str, password: Optional[str]) -> paramiko.PKey:
    last_error: Optional[Exception] = None
    for key_class in KEY_CLASSES:
        try:
            return key_class.from_private_key_file(path, password=password)
        except paramiko.PasswordRequiredException:
            raise
        except (paramiko.SSHException, ValueError) as e:
            last_error = e
    raise paramiko.SSHException(f"unsupported or invalid private key {path}: {last_error}")


def load_private_key(
    path: Union[str, Path],
    prompt: Optional[PromptProvider] = None,
) -> paramiko.PKey:
    """
    Load a private key, asking for its passphrase if it is encrypted.

    The passphrase is asked once; a wrong one fails the load.

    Args:
        path: Private key file path
        prompt: Prompt provider for the passphrase, None to refuse encrypted keys

    Returns:
        Loaded key

    Raises:
        OSError: If the file cannot be read
        paramiko.SSHException: If the key is encrypted without a prompt,
            the passphrase is wrong or the key type is unsupported
    """
    path = str(Path(path).expanduser())
    try:
        return _load_key(path, None)
    except paramiko.PasswordRequiredException:
        if prompt is None:
            raise
    passphrase = prompt.prompt(f"Key passphrase for {path}", password=True)
    return _load_key(path, passphrase)
