import asyncio
import socket

import pytest

from core import authz_scope
from core.errors import InvalidTarget

PRIVATE = ["10.0.0.1", "172.16.0.5", "192.168.1.1", "127.0.0.1", "::1", "fe80::1"]
PUBLIC = ["8.8.8.8", "1.1.1.1", "2001:4860:4860::8888"]


def _resolve(target):
    return asyncio.run(authz_scope.resolve_target(target))


def _fake_dns(monkeypatch, addresses=None, exc=None):
    calls = []

    async def fake(host):
        calls.append(host)
        if exc is not None:
            raise exc
        return list(addresses)

    monkeypatch.setattr(authz_scope, "_resolve_host", fake)
    return calls


@pytest.mark.parametrize("ip", PRIVATE)
def test_private_ranges_rejected(ip):
    assert authz_scope.is_private_ip(ip) is True


@pytest.mark.parametrize("ip", PUBLIC)
def test_public_addresses_accepted(ip):
    assert authz_scope.is_private_ip(ip) is False


@pytest.mark.parametrize(
    "ip",
    [
        "0.1.2.3", "169.254.10.1", "172.31.255.255", "127.255.0.1", "FD12:3456::1", "fc00::1", "FE80::abcd", "::",
        "fc::1", "fd::1", "FD::", "fc0::1", "fdff::1",
    ],
)
def test_edge_private_ranges(ip):
    assert authz_scope.is_private_ip(ip) is True


@pytest.mark.parametrize("ip", ["172.15.255.255", "172.32.0.1", "169.253.1.1", "11.0.0.1", "2606:4700::1111"])
def test_neighbours_of_private_ranges_are_public(ip):
    assert authz_scope.is_private_ip(ip) is False


@pytest.mark.parametrize(
    "value",
    ["", None, 42, "abc", "256.1.1.1", "1.2.3", "1.2.3.4.5", "1.2.-3.4", " 8.8.8.8", "example.com", ":::1"],
)
def test_unrecognized_input_fails_closed(value):
    assert authz_scope.is_private_ip(value) is True


def test_ipv4_mapped_follows_embedded_address():
    assert authz_scope.is_private_ip("::ffff:10.0.0.1") is True
    assert authz_scope.is_private_ip("::ffff:8.8.8.8") is False


@pytest.mark.parametrize("name", ["example.com", "a.b.c", "xn--bcher-kva.example", "my-host.example.org"])
def test_valid_domains(name):
    assert authz_scope.is_valid_domain(name)


@pytest.mark.parametrize(
    "name", ["nodots", "-bad.com", "bad-.com", "a..b", "exa_mple.com", "example.com.", ("a" * 64) + ".com"]
)
def test_invalid_domains(name):
    assert not authz_scope.is_valid_domain(name)


@pytest.mark.parametrize("target", ["localhost", "LOCALHOST", " LocalHost "])
def test_localhost_always_rejected(target, monkeypatch):
    calls = _fake_dns(monkeypatch, ["93.184.216.34"])
    with pytest.raises(InvalidTarget, match="Localhost"):
        _resolve(target)
    assert calls == []


@pytest.mark.parametrize("target", [None, "", "   ", 123, ["8.8.8.8"]])
def test_missing_target_rejected(target):
    with pytest.raises(InvalidTarget, match="required"):
        _resolve(target)


def test_public_ip_literal_passes_through(monkeypatch):
    calls = _fake_dns(monkeypatch, [])
    resolved = _resolve(" 8.8.8.8 ")
    assert resolved.hostname == resolved.address == "8.8.8.8"
    assert calls == []


def test_private_ip_literal_rejected():
    with pytest.raises(InvalidTarget, match="Private IPs"):
        _resolve("192.168.0.10")


def test_malformed_domain_rejected(monkeypatch):
    calls = _fake_dns(monkeypatch, ["93.184.216.34"])
    with pytest.raises(InvalidTarget, match="Invalid domain"):
        _resolve("not_a_domain")
    assert calls == []


def test_domain_picks_first_public_address(monkeypatch):
    _fake_dns(monkeypatch, ["10.0.0.5", "fd00::1", "93.184.216.34", "1.1.1.1"])
    resolved = _resolve("  example.com ")
    assert resolved.hostname == "example.com"
    assert resolved.address == "93.184.216.34"


def test_domain_with_only_private_addresses_rejected(monkeypatch):
    _fake_dns(monkeypatch, ["127.0.0.1", "::1"])
    with pytest.raises(InvalidTarget, match="private IP"):
        _resolve("internal.example.com")


def test_domain_with_no_addresses_rejected(monkeypatch):
    _fake_dns(monkeypatch, [])
    with pytest.raises(InvalidTarget):
        _resolve("empty.example.com")


@pytest.mark.parametrize("exc", [socket.gaierror(socket.EAI_NONAME, "Name or service not known"), asyncio.TimeoutError()])
def test_dns_failure_becomes_invalid_target(exc, monkeypatch):
    _fake_dns(monkeypatch, exc=exc)
    with pytest.raises(InvalidTarget, match="Unable to resolve"):
        _resolve("nxdomain.example.com")
