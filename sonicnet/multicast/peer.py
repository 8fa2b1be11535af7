"""A UDP peer that reads and writes IPv4 multicast datagrams."""

import errno
import ipaddress
import socket

import psutil

from .. import ipv4
from ..errors import SonicError
from ..sockets import Socket, SocketDomain, SocketProtocol, SocketType, socket_domain_from_ip
from .stats import Stats
from .util import parse_ip, parse_multicast_ip, resolve_multicast_interface

_NETWORKS = {
    "udp": socket.AF_UNSPEC,
    "udp4": socket.AF_INET,
    "udp6": socket.AF_INET6,
}


def _split_host_port(addr):
    if not addr:
        return "", 0
    if addr.startswith("["):
        end = addr.find("]")
        if end < 0:
            raise ValueError(f"address {addr}: missing ']' in address")
        host, rest = addr[1:end], addr[end + 1:]
        if not rest.startswith(":"):
            raise ValueError(f"address {addr}: missing port in address")
        port_str = rest[1:]
    else:
        host, sep, port_str = addr.rpartition(":")
        if not sep:
            raise ValueError(f"address {addr}: missing port in address")
        if ":" in host:
            raise ValueError(f"address {addr}: too many colons in address")
    if not port_str:
        return host, 0
    if port_str.isdigit():
        port = int(port_str)
        if port > 0xFFFF:
            raise ValueError(f"address {addr}: invalid port")
        return host, port
    return host, socket.getservbyname(port_str, "udp")


def _resolve(network, addr):
    """Resolve ``addr`` for ``network`` into ``(ip, port)``."""
    if network not in _NETWORKS:
        raise ValueError(
            f"invalid network {network}, can only give udp, udp4 or udp6"
        )
    host, port = _split_host_port(addr)
    if not host:
        if network == "udp6":
            return ipaddress.IPv6Address("::"), port
        return ipaddress.IPv4Address(0), port

    try:
        ip = ipaddress.ip_address(host.split("%", 1)[0])
    except ValueError:
        ip = None
    if ip is not None:
        is4 = ip.version == 4 or ip.ipv4_mapped is not None
        if network == "udp4" and not is4:
            raise ValueError(f"address {addr}: no suitable address for {network}")
        if network == "udp6" and ip.version == 4:
            raise ValueError(f"address {addr}: no suitable address for {network}")
        return ip, port

    infos = socket.getaddrinfo(host, port, _NETWORKS[network], socket.SOCK_DGRAM)
    if not infos:
        raise OSError(f"could not resolve addr={addr}")
    if network == "udp":
        infos.sort(key=lambda info: info[0] != socket.AF_INET)
    return ipaddress.ip_address(infos[0][4][0].split("%", 1)[0]), port


def _local_addr(sock):
    family = socket.AF_INET if sock.domain is SocketDomain.IPV4 else socket.AF_INET6
    with socket.fromfd(sock.fileno(), family, socket.SOCK_DGRAM) as dup:
        name = dup.getsockname()
    return ipaddress.ip_address(name[0].split("%", 1)[0]), name[1]


class UDPPeer:
    """A non-blocking UDP socket that can join, leave and filter multicast groups.

    ``network`` is one of "udp", "udp4" or "udp6"; ``addr`` is "<ip>:<port>",
    where an empty ip binds to all local interfaces. The socket is marked with
    SO_REUSEPORT and SO_REUSEADDR so several peers may share an address.
    """

    def __init__(self, network, addr):
        ip, port = _resolve(network, addr)
        domain = socket_domain_from_ip(ip)
        self._socket = Socket(domain, SocketType.DATAGRAM, SocketProtocol.UDP)
        try:
            self._socket.set_nonblocking(True)
            self._socket.reuse_port(True)
            self._socket.reuse_addr(True)
            self._socket.bind(ip, port)
            self._local_addr = _local_addr(self._socket)
            self._ipv = 4 if domain is SocketDomain.IPV4 else 6

            self._stats = Stats()
            self._outbound = None
            self._outbound_ip = None
            self._inbound = None
            self._loop = False
            self._ttl = 1
            self._all = False
            self._closed = False

            if self._ipv == 4:
                self._outbound_ip = ipv4.get_multicast_interface_addr(self._socket)
                self._loop = ipv4.get_multicast_loop(self._socket)
                ipv4.set_multicast_all(self._socket, False)
        except BaseException:
            self._socket.close()
            raise

    def next_layer(self):
        """The underlying Socket."""
        return self._socket

    def set_outbound_ipv4(self, interface_name):
        """Send multicast datagrams through the interface ``interface_name``."""
        name = resolve_multicast_interface(interface_name)
        outbound_ip = ipv4.set_multicast_interface(self._socket, name)
        self._outbound = name
        self._outbound_ip = outbound_ip

    def set_outbound_ipv6(self, interface_name):
        raise SonicError("IPv6 not supported")

    def outbound(self):
        """``(interface_name, ip)`` used for sending; the name is None until set."""
        return self._outbound, self._outbound_ip

    def set_inbound(self, interface_name):
        """Only receive data arriving on ``interface_name``."""
        self._inbound = self._socket.bind_to_device(interface_name)

    def inbound(self):
        return self._inbound

    @property
    def loop(self):
        """Whether multicast packets sent on this host are looped back to it."""
        return self._loop

    @loop.setter
    def loop(self, value):
        ipv4.set_multicast_loop(self._socket, value)
        self._loop = bool(value)

    @property
    def ttl(self):
        """Time-to-live of outgoing multicast datagrams, 1 by default."""
        return self._ttl

    @ttl.setter
    def ttl(self, value):
        ipv4.set_multicast_ttl(self._socket, value)
        self._ttl = value

    @property
    def all_groups(self):
        """Linux IP_MULTICAST_ALL: receive groups joined by other INADDR_ANY peers."""
        return self._all

    @all_groups.setter
    def all_groups(self, value):
        ipv4.set_multicast_all(self._socket, value)
        self._all = bool(value)

    def join(self, multicast_ip):
        """Join a multicast group on the default interface."""
        self.join_source_on(multicast_ip, "", "")

    def join_on(self, multicast_ip, interface_name):
        self.join_source_on(multicast_ip, "", interface_name)

    def join_source(self, multicast_ip, source_ip):
        """Join a group receiving only datagrams sent by ``source_ip``."""
        self.join_source_on(multicast_ip, source_ip, "")

    def join_source_on(self, multicast_ip, source_ip, interface_name):
        mip = parse_multicast_ip(multicast_ip)
        sip = parse_ip(source_ip) if source_ip else None
        iface = resolve_multicast_interface(interface_name) if interface_name else None
        self._require_ipv4(mip)
        if sip is None:
            ipv4.add_membership(self._socket, mip, iface)
        else:
            ipv4.add_source_membership(self._socket, mip, sip, iface)

    def leave(self, multicast_ip):
        """Leave a group joined with join or join_on."""
        self.leave_source(multicast_ip, "")

    def leave_source(self, multicast_ip, source_ip):
        """Leave a group joined with join_source or join_source_on."""
        mip = parse_multicast_ip(multicast_ip)
        sip = parse_ip(source_ip) if source_ip else None
        self._require_ipv4(mip)
        if sip is None:
            ipv4.drop_membership(self._socket, mip)
        else:
            ipv4.drop_source_membership(self._socket, mip, sip)

    def block_source(self, multicast_ip, source_ip):
        """Stop receiving data for ``multicast_ip`` originating from ``source_ip``."""
        mip = parse_multicast_ip(multicast_ip)
        sip = parse_ip(source_ip)
        self._require_ipv4(mip)
        ipv4.block_source(self._socket, mip, sip)

    def unblock_source(self, multicast_ip, source_ip):
        mip = parse_multicast_ip(multicast_ip)
        sip = parse_ip(source_ip)
        self._require_ipv4(mip)
        ipv4.unblock_source(self._socket, mip, sip)

    @staticmethod
    def _require_ipv4(ip):
        if ip.version == 6 and ip.ipv4_mapped is None:
            raise SonicError("IPv6 multicast peer not yet supported")

    def read(self, buffer):
        """Receive one datagram into ``buffer``; return ``(n, (ip, port))``."""
        return self._socket.recv_from(buffer)

    def write(self, data, addr, port):
        """Send ``data`` to ``addr``:``port``; return the number of bytes sent."""
        return self._socket.send_to(data, addr, port)

    def local_addr(self):
        """``(ip, port)`` the peer is bound to."""
        return self._local_addr

    def close(self):
        if not self._closed:
            self._closed = True
            self._socket.close()

    def closed(self):
        return self._closed

    def stats(self):
        return self._stats

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()


def get_addresses_for_interface(name):
    """IP addresses assigned to the network interface ``name``."""
    addrs = psutil.net_if_addrs().get(name)
    if addrs is None:
        raise OSError(errno.ENODEV, f"no such network interface {name}")
    return [
        ipaddress.ip_address(addr.address.split("%", 1)[0])
        for addr in addrs
        if addr.family in (socket.AF_INET, socket.AF_INET6)
    ]


def filter_ipv4(addrs):
    """IPv4 and IPv4-mapped addresses of ``addrs``."""
    return [a for a in addrs if a.version == 4 or a.ipv4_mapped is not None]


def filter_ipv6(addrs):
    """IPv6 addresses of ``addrs``, IPv4-mapped ones included."""
    return [a for a in addrs if a.version == 6]