"""Tests for private key loading and authentication chain building.

Keys are real ECDSA keys generated by paramiko and written to tmp_path,
plain and passphrase protected, so loading goes through paramiko's own
file parsing.
"""

import socket
import threading
import time

import paramiko
import pytest
from paramiko.agent import SSH2_AGENT_SIGN_RESPONSE

from sshmux.core.constants import AGENT_METHOD_NAME
from sshmux.core.exceptions import AgentError
from sshmux.core.interfaces import PromptProvider
from sshmux.domain.auth import (
    AgentAuth,
    AuthChain,
    PublicKeyAuth,
    build_auth_methods,
    connect_agent,
    load_private_key,
)
from sshmux.domain.options import EffectiveOptions


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class FakePrompt(PromptProvider):
    """Prompt provider answering with a fixed passphrase and counting calls."""

    def __init__(self, answer: str):
        self.answer = answer
        self.messages = []

    def prompt(self, message, password=False):
        self.messages.append((message, password))
        return self.answer


class FakeAgent:
    """Agent holding a fixed list of keys.

    Keys are handed out as real paramiko.AgentKey objects whose signing
    requests come back to _send_message, which counts overlapping requests.
    """

    def __init__(self, keys, delay=0.0):
        self.keys = [paramiko.AgentKey(self, key.asbytes()) for key in keys]
        self.delay = delay
        self.active = 0
        self.peak = 0
        self.requests = 0
        self._count_lock = threading.Lock()

    def get_keys(self):
        return tuple(self.keys)

    def _send_message(self, msg):
        with self._count_lock:
            self.active += 1
            self.requests += 1
            self.peak = max(self.peak, self.active)
        time.sleep(self.delay)
        with self._count_lock:
            self.active -= 1
        reply = paramiko.Message()
        reply.add_string(b"signature")
        reply.rewind()
        return SSH2_AGENT_SIGN_RESPONSE, reply


class RecordingTransport:
    """Transport accepting only one specific key.

    Offered keys are recorded by their public blob. A transport built with
    a delay waits that long before asking the key for a signature, like a
    server round trip would.
    """

    def __init__(self, accepted=None, delay=0.0):
        self.accepted = accepted
        self.delay = delay
        self.offered = []

    def auth_publickey(self, username, key):
        self.offered.append(key.asbytes())
        if self.accepted is None or key.asbytes() != self.accepted.asbytes():
            raise paramiko.AuthenticationException("rejected")
        time.sleep(self.delay)
        key.sign_ssh_data(b"session-id")
        return []


def write_key(path, password=None):
    """Generate an ECDSA key, write it to path and return it."""
    key = paramiko.ECDSAKey.generate()
    key.write_private_key_file(str(path), password=password)
    return key


# ---------------------------------------------------------------------------
# load_private_key
# ---------------------------------------------------------------------------


def test_load_plain_key(tmp_path):
    key = write_key(tmp_path / "id_ecdsa")
    loaded = load_private_key(tmp_path / "id_ecdsa")
    assert loaded.get_fingerprint() == key.get_fingerprint()


def test_load_encrypted_key_prompts_once(tmp_path):
    """An encrypted key asks for its passphrase exactly once."""
    key = write_key(tmp_path / "id_ecdsa", password="s3cret")
    prompt = FakePrompt("s3cret")

    loaded = load_private_key(tmp_path / "id_ecdsa", prompt)

    assert loaded.get_fingerprint() == key.get_fingerprint()
    assert len(prompt.messages) == 1
    message, password = prompt.messages[0]
    assert str(tmp_path / "id_ecdsa") in message
    assert password is True


def test_load_encrypted_key_without_prompt(tmp_path):
    write_key(tmp_path / "id_ecdsa", password="s3cret")
    with pytest.raises(paramiko.PasswordRequiredException):
        load_private_key(tmp_path / "id_ecdsa")


def test_load_encrypted_key_wrong_passphrase(tmp_path):
    write_key(tmp_path / "id_ecdsa", password="s3cret")
    with pytest.raises(paramiko.SSHException):
        load_private_key(tmp_path / "id_ecdsa", FakePrompt("wrong"))


def test_load_garbage_key(tmp_path):
    path = tmp_path / "id_rsa"
    path.write_text("not a key\n")
    with pytest.raises(paramiko.SSHException):
        load_private_key(path)


def test_load_missing_key(tmp_path):
    with pytest.raises(OSError):
        load_private_key(tmp_path / "missing")


# ---------------------------------------------------------------------------
# build_auth_methods
# ---------------------------------------------------------------------------


def test_build_with_explicit_files(tmp_path):
    write_key(tmp_path / "a")
    write_key(tmp_path / "b")

    methods = build_auth_methods([str(tmp_path / "a"), str(tmp_path / "b")])

    assert list(methods) == [str(tmp_path / "a"), str(tmp_path / "b")]
    assert all(isinstance(m, PublicKeyAuth) for m in methods.values())


def test_build_skips_unloadable_files(tmp_path):
    """A bad identity is dropped; the builder never fails."""
    write_key(tmp_path / "good")
    (tmp_path / "bad").write_text("garbage")

    methods = build_auth_methods(
        [str(tmp_path / "bad"), str(tmp_path / "missing"), str(tmp_path / "good")]
    )

    assert list(methods) == [str(tmp_path / "good")]


def test_build_defaults_skip_missing(home):
    """Without identity files the conventional ones are tried, missing ones skipped."""
    write_key(home / ".ssh" / "id_ecdsa")

    methods = build_auth_methods([])

    assert list(methods) == [str(home / ".ssh" / "id_ecdsa")]


def test_build_defaults_none_present(home):
    assert build_auth_methods([]) == {}


def test_build_agent_first(tmp_path):
    write_key(tmp_path / "a")
    methods = build_auth_methods([str(tmp_path / "a")], agent=FakeAgent([]))

    assert list(methods)[0] == AGENT_METHOD_NAME
    assert isinstance(methods[AGENT_METHOD_NAME], AgentAuth)


def test_build_encrypted_key_uses_prompt(tmp_path):
    write_key(tmp_path / "enc", password="pw")
    prompt = FakePrompt("pw")

    methods = build_auth_methods([str(tmp_path / "enc")], prompt=prompt)

    assert list(methods) == [str(tmp_path / "enc")]
    assert len(prompt.messages) == 1


# ---------------------------------------------------------------------------
# AgentAuth
# ---------------------------------------------------------------------------


def test_agent_auth_tries_keys_in_order():
    first, second = paramiko.ECDSAKey.generate(), paramiko.ECDSAKey.generate()
    transport = RecordingTransport(accepted=second)
    agent = FakeAgent([first, second])

    AgentAuth(agent).authenticate(transport, "root")

    assert transport.offered == [first.asbytes(), second.asbytes()]
    assert agent.requests == 1


def test_agent_auth_all_rejected():
    transport = RecordingTransport()
    with pytest.raises(paramiko.AuthenticationException):
        AgentAuth(FakeAgent([paramiko.ECDSAKey.generate()])).authenticate(transport, "root")


def test_agent_auth_no_identities():
    with pytest.raises(paramiko.AuthenticationException):
        AgentAuth(FakeAgent([])).authenticate(RecordingTransport(), "root")


def test_agent_auth_handshakes_run_concurrently():
    """Only signing is serialized; slow handshakes on other hosts overlap."""
    key = paramiko.ECDSAKey.generate()
    agent = FakeAgent([key], delay=0.05)
    auth = AgentAuth(agent)
    transports = [RecordingTransport(accepted=key, delay=0.3) for _ in range(4)]
    errors = []

    def authenticate(transport):
        try:
            auth.authenticate(transport, "root")
        except Exception as e:
            errors.append(e)

    threads = [threading.Thread(target=authenticate, args=(t,)) for t in transports]
    start = time.monotonic()
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    elapsed = time.monotonic() - start

    assert errors == []
    assert agent.requests == 4
    assert agent.peak == 1
    # Four handshakes one after another would take at least 1.4s
    assert elapsed < 1.0


# ---------------------------------------------------------------------------
# AuthChain
# ---------------------------------------------------------------------------


def test_chain_orders_agent_host_identity_then_base(tmp_path):
    write_key(tmp_path / "base")
    write_key(tmp_path / "host")
    chain = AuthChain.build([str(tmp_path / "base")], agent=FakeAgent([]))

    options = EffectiveOptions(target="web1", host="web1", identity_file=str(tmp_path / "host"))
    ordered = chain.for_options(options)

    assert list(ordered) == [AGENT_METHOD_NAME, str(tmp_path / "host"), str(tmp_path / "base")]


def test_chain_caches_host_identity(tmp_path):
    """A host identity is loaded once, so its passphrase is asked once."""
    write_key(tmp_path / "host", password="pw")
    prompt = FakePrompt("pw")
    chain = AuthChain({}, prompt=prompt)

    chain.preload([str(tmp_path / "host"), None, str(tmp_path / "host")])
    options = EffectiveOptions(target="web1", host="web1", identity_file=str(tmp_path / "host"))
    chain.for_options(options)
    chain.for_options(options)

    assert len(prompt.messages) == 1


def test_chain_skips_broken_host_identity(tmp_path):
    write_key(tmp_path / "base")
    chain = AuthChain.build([str(tmp_path / "base")])

    options = EffectiveOptions(target="web1", host="web1", identity_file=str(tmp_path / "missing"))

    assert list(chain.for_options(options)) == [str(tmp_path / "base")]


# ---------------------------------------------------------------------------
# connect_agent
# ---------------------------------------------------------------------------


def test_connect_agent_requires_sock_env(monkeypatch):
    monkeypatch.delenv("SSH_AUTH_SOCK", raising=False)
    with pytest.raises(AgentError, match="SSH_AUTH_SOCK is set"):
        connect_agent()


def test_connect_agent_unreachable_socket(monkeypatch, tmp_path):
    monkeypatch.setenv("SSH_AUTH_SOCK", str(tmp_path / "agent.sock"))
    with pytest.raises(AgentError):
        connect_agent()


def test_connect_agent_checks_socket_before_connecting(monkeypatch, tmp_path):
    """A listening socket is handed to paramiko.Agent."""
    sock_path = str(tmp_path / "agent.sock")
    server = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    server.bind(sock_path)
    server.listen(1)
    monkeypatch.setenv("SSH_AUTH_SOCK", sock_path)
    monkeypatch.setattr(paramiko, "Agent", lambda: "agent")
    try:
        assert connect_agent() == "agent"
    finally:
        server.close()
