"""IPv4 multicast socket options: interfaces, loopback, TTL and group membership."""

import errno
import ipaddress
import socket
import struct
import sys
from contextlib import contextmanager
from dataclasses import dataclass

import psutil

from .errors import SonicError

_IS_LINUX = sys.platform.startswith("linux")

# Option numbers the socket module may not expose on every Python version.
if _IS_LINUX:
    _SOURCE_OPTION_DEFAULTS = {"add": 39, "drop": 40, "block": 38, "unblock": 37}
else:
    _SOURCE_OPTION_DEFAULTS = {"add": 70, "drop": 71, "block": 72, "unblock": 73}

_IP_ADD_SOURCE_MEMBERSHIP = getattr(
    socket, "IP_ADD_SOURCE_MEMBERSHIP", _SOURCE_OPTION_DEFAULTS["add"]
)
_IP_DROP_SOURCE_MEMBERSHIP = getattr(
    socket, "IP_DROP_SOURCE_MEMBERSHIP", _SOURCE_OPTION_DEFAULTS["drop"]
)
_IP_BLOCK_SOURCE = getattr(socket, "IP_BLOCK_SOURCE", _SOURCE_OPTION_DEFAULTS["block"])
_IP_UNBLOCK_SOURCE = getattr(
    socket, "IP_UNBLOCK_SOURCE", _SOURCE_OPTION_DEFAULTS["unblock"]
)

IP_MULTICAST_ALL = 49
SIZEOF_IP_MREQ = 8
SIZEOF_IP_MREQ_SOURCE = SIZEOF_IP_MREQ + 4

_UNSPECIFIED = ipaddress.IPv4Address(0)


def _ipv4(ip):
    """Return ``ip`` as an IPv4Address, unwrapping IPv4-mapped IPv6 addresses."""
    if not isinstance(ip, (ipaddress.IPv4Address, ipaddress.IPv6Address)):
        ip = ipaddress.ip_address(ip)
    if ip.version == 6:
        if ip.ipv4_mapped is None:
            raise ValueError(f"expected an IPv4 address={ip}")
        ip = ip.ipv4_mapped
    return ip


def _interface_flags(name):
    stats = psutil.net_if_stats().get(name)
    if stats is None:
        raise OSError(errno.ENODEV, f"no such network interface {name}")
    return {flag for flag in getattr(stats, "flags", "").split(",") if flag}


def _interface_ipv4(name):
    addrs = psutil.net_if_addrs().get(name)
    if addrs is None:
        raise OSError(errno.ENODEV, f"no such network interface {name}")
    for addr in addrs:
        if addr.family == socket.AF_INET:
            return ipaddress.IPv4Address(addr.address.split("%", 1)[0])
    return None


@contextmanager
def _opened(sock):
    """A socket object sharing ``sock``'s underlying descriptor."""
    dup = socket.fromfd(sock.fileno(), socket.AF_INET, socket.SOCK_DGRAM)
    try:
        yield dup
    finally:
        dup.close()


@dataclass
class IPMreqSource:
    """A multicast group, the local interface address and a source address."""

    multiaddr: ipaddress.IPv4Address = _UNSPECIFIED
    interface: ipaddress.IPv4Address = _UNSPECIFIED
    sourceaddr: ipaddress.IPv4Address = _UNSPECIFIED

    def __post_init__(self):
        self.multiaddr = _ipv4(self.multiaddr)
        self.interface = _ipv4(self.interface)
        self.sourceaddr = _ipv4(self.sourceaddr)

    def pack(self):
        """The 12 wire bytes: group, interface, source, each in network order."""
        return self.multiaddr.packed + self.interface.packed + self.sourceaddr.packed


def get_multicast_interface_addr(sock):
    """Address of the interface outgoing multicast datagrams are sent on."""
    with _opened(sock) as s:
        raw = s.getsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_IF, 4)
    return ipaddress.IPv4Address(raw.ljust(4, b"\0")[:4])


def get_multicast_interface_addr_and_group(sock):
    """Return ``(interface_addr, multicast_addr)`` read as an ip_mreq."""
    with _opened(sock) as s:
        raw = s.getsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_IF, SIZEOF_IP_MREQ)
    raw = raw.ljust(SIZEOF_IP_MREQ, b"\0")[:SIZEOF_IP_MREQ]
    multiaddr, interface = raw[:4], raw[4:]
    return ipaddress.IPv4Address(interface), ipaddress.IPv4Address(multiaddr)


def get_multicast_interface_index(sock):
    with _opened(sock) as s:
        return s.getsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_IF)


def set_multicast_interface(sock, interface_name):
    """Send multicast datagrams through ``interface_name``; return its IPv4 address."""
    if "multicast" not in _interface_flags(interface_name):
        raise ValueError(f"interface={interface_name} does not support multicast")
    addr = _interface_ipv4(interface_name)
    if addr is None:
        raise SonicError("interface has no IPv4 address assigned")
    with _opened(sock) as s:
        s.setsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_IF, addr.packed)
    return addr


def set_multicast_loop(sock, loop):
    with _opened(sock) as s:
        s.setsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_LOOP, int(bool(loop)))


def get_multicast_loop(sock):
    """True when the kernel reports a loop value of 0, False otherwise."""
    with _opened(sock) as s:
        value = s.getsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_LOOP)
    return value == 0


def set_multicast_ttl(sock, ttl):
    if not 0 <= ttl <= 255:
        raise ValueError(f"ttl={ttl} must be in [0, 255]")
    with _opened(sock) as s:
        s.setsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_TTL, ttl)


def get_multicast_ttl(sock):
    with _opened(sock) as s:
        return s.getsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_TTL) & 0xFF


def validate_multicast_ip(ip):
    """Return ``ip`` as an IPv4Address, raising ValueError unless it is IPv4 multicast."""
    try:
        addr = _ipv4(ip)
    except ValueError as exc:
        raise ValueError(f"expected an IPv4 address={ip}") from exc
    if not addr.is_multicast:
        raise ValueError(f"expected a multicast address={ip}")
    return addr


def _membership_request(multicast_ip, interface_name=None):
    multiaddr = _ipv4(multicast_ip)
    interface = _UNSPECIFIED
    if interface_name:
        found = _interface_ipv4(interface_name)
        if found is None:
            raise SonicError(
                f"cannot add membership on interface {interface_name} "
                "as there is no IPv4 address on it"
            )
        interface = found
    return multiaddr, interface


def _set_source_option(sock, option, request):
    with _opened(sock) as s:
        s.setsockopt(socket.IPPROTO_IP, option, request.pack())


def add_membership(sock, multicast_ip, interface_name=None):
    """Make ``sock`` a member of ``multicast_ip``, optionally on one interface."""
    multiaddr, interface = _membership_request(multicast_ip, interface_name)
    mreq = struct.pack("4s4s", multiaddr.packed, interface.packed)
    with _opened(sock) as s:
        s.setsockopt(socket.IPPROTO_IP, socket.IP_ADD_MEMBERSHIP, mreq)


def add_source_membership(sock, multicast_ip, source_ip, interface_name=None):
    """Join ``multicast_ip`` receiving only from ``source_ip``."""
    multiaddr, interface = _membership_request(multicast_ip, interface_name)
    request = IPMreqSource(multiaddr, interface, source_ip)
    _set_source_option(sock, _IP_ADD_SOURCE_MEMBERSHIP, request)


def drop_membership(sock, multicast_ip):
    multiaddr, interface = _membership_request(multicast_ip)
    mreq = struct.pack("4s4s", multiaddr.packed, interface.packed)
    with _opened(sock) as s:
        s.setsockopt(socket.IPPROTO_IP, socket.IP_DROP_MEMBERSHIP, mreq)


def drop_source_membership(sock, multicast_ip, source_ip):
    request = IPMreqSource(multiaddr=multicast_ip, sourceaddr=source_ip)
    _set_source_option(sock, _IP_DROP_SOURCE_MEMBERSHIP, request)


def block_source(sock, multicast_ip, source_ip):
    """Stop receiving datagrams for ``multicast_ip`` sent from ``source_ip``."""
    request = IPMreqSource(multiaddr=multicast_ip, sourceaddr=source_ip)
    _set_source_option(sock, _IP_BLOCK_SOURCE, request)


def unblock_source(sock, multicast_ip, source_ip):
    request = IPMreqSource(multiaddr=multicast_ip, sourceaddr=source_ip)
    _set_source_option(sock, _IP_UNBLOCK_SOURCE, request)


def set_multicast_all(sock, enabled):
    """On Linux, whether sockets on INADDR_ANY get every joined group; no-op elsewhere."""
    if not _IS_LINUX:
        return
    with _opened(sock) as s:
        s.setsockopt(socket.IPPROTO_IP, IP_MULTICAST_ALL, bytes([int(bool(enabled))]))


def get_multicast_all(sock):
    """The Linux IP_MULTICAST_ALL flag; always False elsewhere."""
    if not _IS_LINUX:
        return False
    with _opened(sock) as s:
        return s.getsockopt(socket.IPPROTO_IP, IP_MULTICAST_ALL) != 0