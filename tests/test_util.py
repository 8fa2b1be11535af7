import ipaddress

import psutil
import pytest

from sonicnet.multicast.util import (
    parse_ip,
    parse_multicast_ip,
    resolve_multicast_interface,
)


def test_parse_ip_ipv4():
    assert parse_ip("192.168.1.1") == ipaddress.IPv4Address("192.168.1.1")


def test_parse_ip_ipv6():
    assert parse_ip("::1") == ipaddress.IPv6Address("::1")


@pytest.mark.parametrize("addr", ["", "not-an-ip", "0.0.0.0:4555", "256.1.1.1"])
def test_parse_ip_invalid(addr):
    with pytest.raises(ValueError):
        parse_ip(addr)


@pytest.mark.parametrize("addr", ["224.0.0.0", "224.0.1.0", "ff02::1"])
def test_parse_multicast_ip_accepts(addr):
    assert parse_multicast_ip(addr) == ipaddress.ip_address(addr)


def test_parse_multicast_ip_mapped():
    ip = parse_multicast_ip("::ffff:224.0.0.1")
    assert ip.ipv4_mapped == ipaddress.IPv4Address("224.0.0.1")


@pytest.mark.parametrize("addr", ["127.0.0.1", "0.0.0.0", "::1", "0.0.0.0:4555"])
def test_parse_multicast_ip_rejects(addr):
    with pytest.raises(ValueError):
        parse_multicast_ip(addr)


def test_resolve_unknown_interface():
    with pytest.raises(OSError):
        resolve_multicast_interface("nosuchif0")


def test_resolved_interfaces_are_up():
    resolved = []
    for name in psutil.net_if_stats():
        try:
            resolved.append(resolve_multicast_interface(name))
        except ValueError:
            pass
    stats = psutil.net_if_stats()
    assert all(stats[name].isup for name in resolved)
    assert set(resolved) <= set(stats)