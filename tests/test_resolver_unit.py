# tests/test_resolver_unit.py
import asyncio
import ipaddress
import socket

import pytest

from pingprobe.errors import ResolutionError
from pingprobe.resolver import lookup_host, parse_ip_literal, resolve_host


def no_dns(host):
    raise AssertionError(f"DNS lookup attempted for {host}")


@pytest.mark.parametrize("literal", ["127.0.0.1", "8.8.8.8", "::1", "2001:4860:4860::8888"])
def test_ip_literal_skips_dns(literal):
    """IP literals come straight back without touching the resolver."""
    ip = asyncio.run(resolve_host(literal, lookup=no_dns))
    assert ip == ipaddress.ip_address(literal)


def test_parse_ip_literal_rejects_names():
    assert parse_ip_literal("example.com") is None
    assert parse_ip_literal("256.1.1.1") is None
    assert parse_ip_literal("10.0.0.1").version == 4


def test_first_answer_wins():
    """No v4/v6 preference: whatever the resolver lists first is used."""
    answers = [ipaddress.ip_address("2001:db8::1"), ipaddress.ip_address("192.0.2.7")]
    ip = asyncio.run(resolve_host("dual.example", lookup=lambda host: answers))
    assert ip == answers[0]


def test_lookup_failure_is_resolution_error():
    def broken(host):
        raise socket.gaierror(socket.EAI_NONAME, "Name or service not known")

    with pytest.raises(ResolutionError, match="DNS lookup failed"):
        asyncio.run(resolve_host("nope.invalid", lookup=broken))


def test_empty_answer_is_resolution_error():
    with pytest.raises(ResolutionError, match="No valid IP address found"):
        asyncio.run(resolve_host("empty.example", lookup=lambda host: []))


@pytest.mark.parametrize("host", ["a" * 64 + ".example", "bad..label.example"])
def test_unencodable_name_is_resolution_error(host):
    """IDNA rejects over-long and empty labels; that is still a lookup failure."""
    with pytest.raises(ResolutionError, match="DNS lookup failed"):
        asyncio.run(resolve_host(host, lookup=lookup_host))
