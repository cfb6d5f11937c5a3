"""Tests for host address handling and identity path resolution."""

import pytest

from sshmux.core.exceptions import HostError
from sshmux.core.utils import clean_host, join_host_port, resolve_identity, split_host_port


# ---------------------------------------------------------------------------
# clean_host
# ---------------------------------------------------------------------------


def test_clean_host_appends_default_port():
    """A bare host gets port 22."""
    assert clean_host("192.168.1.3") == "192.168.1.3:22"


def test_clean_host_keeps_explicit_port():
    """An explicit port is left untouched."""
    assert clean_host("192.168.1.3:2222") == "192.168.1.3:2222"


def test_clean_host_bracketed_ipv6():
    """Bracketed IPv6 literals keep their brackets in the result."""
    assert clean_host("[::1]") == "[::1]:22"
    assert clean_host("[fe80::1]:2200") == "[fe80::1]:2200"


def test_clean_host_strips_whitespace():
    """Surrounding whitespace from host files is ignored."""
    assert clean_host("  web1 ") == "web1:22"


@pytest.mark.parametrize(
    "address",
    [
        "[::1",
        "[::1]x",
        "[::1]:22:33",
        "::1",
        "a:b:c",
        ":22",
        "",
        "web1:ssh",
        "we[b1",
    ],
)
def test_clean_host_rejects_malformed(address):
    """Malformed addresses raise HostError."""
    with pytest.raises(HostError):
        clean_host(address)


# ---------------------------------------------------------------------------
# split_host_port / join_host_port
# ---------------------------------------------------------------------------


def test_split_host_port_without_port():
    """A missing port comes back as an empty string."""
    assert split_host_port("web1") == ("web1", "")


def test_split_host_port_with_port():
    assert split_host_port("web1:2022") == ("web1", "2022")
    assert split_host_port("[::1]:2022") == ("::1", "2022")


def test_join_host_port_brackets_ipv6():
    assert join_host_port("::1", "22") == "[::1]:22"
    assert join_host_port("web1", "22") == "web1:22"


# ---------------------------------------------------------------------------
# resolve_identity
# ---------------------------------------------------------------------------


def test_resolve_identity_bare_name_in_ssh_dir(home):
    """A bare file name is looked up in ~/.ssh."""
    assert resolve_identity("id_work") == str(home / ".ssh" / "id_work")


def test_resolve_identity_expands_home(home):
    """A path with ~ is expanded, other paths are kept."""
    assert resolve_identity("~/keys/id_rsa") == str(home / "keys" / "id_rsa")
    assert resolve_identity("/etc/ssh/key") == "/etc/ssh/key"
