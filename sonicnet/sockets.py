"""A typed wrapper over an operating-system socket."""

import errno
import ipaddress
import os
import socket
import sys
from enum import IntEnum

from .errors import NoBufferSpaceAvailableError, SonicError, WouldBlockError

_IFNAMSIZ = 16
_SO_BINDTODEVICE = getattr(socket, "SO_BINDTODEVICE", 25)
_IP_BOUND_IF = getattr(socket, "IP_BOUND_IF", 25)
_IS_LINUX = sys.platform.startswith("linux")


class SocketDomain(IntEnum):
    """Address family of a socket."""

    UNIX = 0
    IPV4 = 1
    IPV6 = 2

    def __str__(self):
        return self.name.lower()


class SocketType(IntEnum):
    """Communication semantics of a socket."""

    STREAM = 0
    DATAGRAM = 1
    RAW = 2

    def __str__(self):
        return self.name.lower()


class SocketProtocol(IntEnum):
    """Transport protocol carried by a socket."""

    TCP = 0
    UDP = 1

    def __str__(self):
        return self.name.lower()


_FAMILIES = {
    SocketDomain.UNIX: getattr(socket, "AF_UNIX", None),
    SocketDomain.IPV4: socket.AF_INET,
    SocketDomain.IPV6: socket.AF_INET6,
}

_TYPES = {
    SocketType.STREAM: socket.SOCK_STREAM,
    SocketType.DATAGRAM: socket.SOCK_DGRAM,
    SocketType.RAW: socket.SOCK_RAW,
}


def _as_ip(ip):
    if isinstance(ip, (ipaddress.IPv4Address, ipaddress.IPv6Address)):
        return ip
    return ipaddress.ip_address(ip)


def _without_scope(ip):
    return str(ip).split("%", 1)[0]


def socket_domain_from_ip(ip):
    """IPV4 for IPv4 and IPv4-mapped IPv6 addresses, IPV6 otherwise."""
    ip = _as_ip(ip)
    if ip.version == 4 or ip.ipv4_mapped is not None:
        return SocketDomain.IPV4
    return SocketDomain.IPV6


def get_bound_device(fd):
    """Name of the device the socket behind ``fd`` is bound to, or ''."""
    with socket.fromfd(fd, socket.AF_INET, socket.SOCK_DGRAM) as dup:
        raw = dup.getsockopt(socket.SOL_SOCKET, _SO_BINDTODEVICE, _IFNAMSIZ)
    return raw.split(b"\0", 1)[0].decode()


class Socket:
    """A socket of a given domain, type and protocol."""

    def __init__(self, domain, socket_type, protocol=SocketProtocol.TCP):
        self.domain = SocketDomain(domain)
        self.socket_type = SocketType(socket_type)
        self.protocol = SocketProtocol(protocol)
        self._bound_interface = None

        family = _FAMILIES[self.domain]
        if family is None:
            raise SonicError(f"socket domain {self.domain} not supported")
        self._sock = socket.socket(family, _TYPES[self.socket_type], 0)

    def set_nonblocking(self, nonblocking):
        self._sock.setblocking(not nonblocking)

    def is_nonblocking(self):
        return not os.get_blocking(self.fileno())

    def bind(self, addr, port):
        """Bind to ``addr``:``port``; IPv4-mapped addresses bind as IPv4."""
        ip = _as_ip(addr)
        if ip.version == 4:
            sockaddr = (str(ip), port)
        elif ip.ipv4_mapped is not None:
            sockaddr = (str(ip.ipv4_mapped), port)
        else:
            sockaddr = (_without_scope(ip), port, 0, 0)
        self._sock.bind(sockaddr)

    def reuse_addr(self, reuse):
        self._sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, int(bool(reuse)))

    def reuse_port(self, reuse):
        self._sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEPORT, int(bool(reuse)))

    def set_no_delay(self, delay):
        if self.protocol is not SocketProtocol.TCP:
            raise ValueError("NoDelay is a TCP protocol specific socket option")
        self._sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, int(bool(delay)))

    def recv_from(self, buffer):
        """Receive into ``buffer``; return ``(n, (ip, port))`` of the peer."""
        try:
            n, peer = self._sock.recvfrom_into(buffer)
        except BlockingIOError as exc:
            raise WouldBlockError() from exc
        if n == 0:
            raise EOFError("end of file")
        if isinstance(peer, tuple) and len(peer) >= 2:
            return n, (ipaddress.ip_address(peer[0].split("%", 1)[0]), peer[1])
        raise SonicError("can only recvfrom ipv4 and ipv6 peers")

    def send_to(self, data, addr, port):
        """Send ``data`` to the IPv4 peer ``addr``:``port``; return its length."""
        ip = _as_ip(addr)
        if ip.version == 6:
            if ip.ipv4_mapped is None:
                raise ValueError(f"cannot send to non-IPv4 address {ip}")
            ip = ip.ipv4_mapped
        try:
            self._sock.sendto(data, (str(ip), port))
        except BlockingIOError as exc:
            raise WouldBlockError() from exc
        except OSError as exc:
            if exc.errno == errno.ENOBUFS:
                raise NoBufferSpaceAvailableError() from exc
            raise
        return len(data)

    def bind_to_device(self, name):
        """Only process packets arriving on the network interface ``name``."""
        index = socket.if_nametoindex(name)
        if _IS_LINUX:
            self._sock.setsockopt(socket.SOL_SOCKET, _SO_BINDTODEVICE, name.encode())
        elif self.domain is SocketDomain.IPV4:
            self._sock.setsockopt(socket.IPPROTO_IP, _IP_BOUND_IF, index)
        else:
            raise SonicError("cannot yet bind to device when domain is ipv6")
        self._bound_interface = name
        return name

    def unbind_from_device(self):
        if self._bound_interface is None:
            return
        if _IS_LINUX:
            self._sock.setsockopt(socket.SOL_SOCKET, _SO_BINDTODEVICE, b"")
        elif self.domain is SocketDomain.IPV4:
            self._sock.setsockopt(socket.IPPROTO_IP, _IP_BOUND_IF, 0)
        else:
            raise SonicError("cannot yet bind to device when domain is ipv6")
        self._bound_interface = None

    def bound_device(self):
        """Name of the interface set by bind_to_device, or None."""
        return self._bound_interface

    def fileno(self):
        return self._sock.fileno()

    def close(self):
        self._sock.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()