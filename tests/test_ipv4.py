import ipaddress
import socket
import sys

import pytest

from sonicnet.ipv4 import (
    SIZEOF_IP_MREQ_SOURCE,
    IPMreqSource,
    add_membership,
    drop_membership,
    get_multicast_all,
    get_multicast_interface_addr,
    get_multicast_interface_addr_and_group,
    get_multicast_interface_index,
    get_multicast_loop,
    get_multicast_ttl,
    set_multicast_all,
    set_multicast_interface,
    set_multicast_loop,
    set_multicast_ttl,
    validate_multicast_ip,
)
from sonicnet.sockets import Socket, SocketDomain, SocketProtocol, SocketType

UNKNOWN_INTERFACE = "nosuchif0"


@pytest.fixture
def sock():
    with Socket(SocketDomain.IPV4, SocketType.DATAGRAM, SocketProtocol.UDP) as s:
        yield s


def test_mreq_source_pack_layout():
    request = IPMreqSource("224.0.1.0", "192.168.1.1", "10.0.0.7")
    packed = request.pack()
    assert len(packed) == SIZEOF_IP_MREQ_SOURCE
    assert packed == (
        socket.inet_aton("224.0.1.0")
        + socket.inet_aton("192.168.1.1")
        + socket.inet_aton("10.0.0.7")
    )


def test_mreq_source_defaults_are_unspecified():
    request = IPMreqSource(multiaddr="224.0.0.1")
    assert request.interface.is_unspecified
    assert request.sourceaddr.is_unspecified
    assert request.pack()[4:] == bytes(8)


def test_mreq_source_rejects_ipv6():
    with pytest.raises(ValueError):
        IPMreqSource("ff02::1")


def test_validate_multicast_ip_accepts_ipv4_multicast():
    assert validate_multicast_ip("224.0.0.1") == ipaddress.IPv4Address("224.0.0.1")


def test_validate_multicast_ip_unwraps_mapped():
    assert validate_multicast_ip("::ffff:224.0.1.0") == ipaddress.IPv4Address(
        "224.0.1.0"
    )


@pytest.mark.parametrize("ip", ["10.0.0.1", "0.0.0.0", "ff02::1"])
def test_validate_multicast_ip_rejects(ip):
    with pytest.raises(ValueError):
        validate_multicast_ip(ip)


def test_default_ttl_is_one(sock):
    assert get_multicast_ttl(sock) == 1


@pytest.mark.parametrize("ttl", [0, 1, 64, 255])
def test_ttl_round_trip(sock, ttl):
    set_multicast_ttl(sock, ttl)
    assert get_multicast_ttl(sock) == ttl


@pytest.mark.parametrize("ttl", [-1, 256])
def test_ttl_out_of_range(sock, ttl):
    with pytest.raises(ValueError):
        set_multicast_ttl(sock, ttl)


def test_loop_reads_inverted(sock):
    set_multicast_loop(sock, True)
    assert get_multicast_loop(sock) is False
    set_multicast_loop(sock, False)
    assert get_multicast_loop(sock) is True


def test_default_interface_addr_is_unspecified(sock):
    assert get_multicast_interface_addr(sock).is_unspecified


def test_default_interface_addr_and_group_unspecified(sock):
    interface, group = get_multicast_interface_addr_and_group(sock)
    assert interface.is_unspecified
    assert group.is_unspecified


def test_default_interface_index(sock):
    assert get_multicast_interface_index(sock) == 0


def test_set_interface_unknown_name(sock):
    with pytest.raises(OSError):
        set_multicast_interface(sock, UNKNOWN_INTERFACE)


def test_add_membership_unknown_interface(sock):
    with pytest.raises(OSError):
        add_membership(sock, "224.0.0.1", UNKNOWN_INTERFACE)


def test_add_membership_non_multicast_fails(sock):
    with pytest.raises(OSError):
        add_membership(sock, "10.0.0.1")


def test_drop_membership_not_joined_fails(sock):
    with pytest.raises(OSError):
        drop_membership(sock, "224.0.0.250")


@pytest.mark.parametrize("enabled", [True, False])
def test_multicast_all_round_trip(sock, enabled):
    set_multicast_all(sock, enabled)
    expected = enabled if sys.platform.startswith("linux") else False
    assert get_multicast_all(sock) is expected