"""Datagram connections bound to a local address."""

import socket

from .errors import WouldBlockError

_FAMILIES = {
    "udp": socket.AF_UNSPEC,
    "udp4": socket.AF_INET,
    "udp6": socket.AF_INET6,
}


def _split_host_port(addr):
    if not addr:
        return "", 0
    host, sep, port = addr.rpartition(":")
    if not sep:
        raise ValueError(f"address {addr}: missing port in address")
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    if not port:
        return host, 0
    if port.isdigit():
        return host, int(port)
    return host, socket.getservbyname(port, "udp")


def _resolve(network, addr):
    if network not in _FAMILIES:
        raise ValueError(f"unknown network {network}")
    host, port = _split_host_port(addr)
    infos = socket.getaddrinfo(
        host or None, port, _FAMILIES[network], socket.SOCK_DGRAM, 0, socket.AI_PASSIVE
    )
    if not infos:
        raise OSError(f"could not resolve {addr}")
    if network == "udp":
        infos.sort(key=lambda info: info[0] != socket.AF_INET)
    family, _, _, _, sockaddr = infos[0]
    return family, sockaddr


class PacketConn:
    """A non-blocking, stream-less UDP connection bound to a local address.

    An empty ``addr`` binds to a random port on all interfaces.
    """

    def __init__(self, network, addr):
        if network[:3] != "udp":
            raise ValueError("network must start with udp")
        family, sockaddr = _resolve(network, addr)
        self._sock = socket.socket(family, socket.SOCK_DGRAM)
        try:
            self._sock.setblocking(False)
            self._sock.bind(sockaddr)
        except OSError:
            self._sock.close()
            raise
        self._local_addr = tuple(self._sock.getsockname()[:2])
        self._closed = False

    def read_from(self, buffer):
        """Receive one datagram into ``buffer``; return ``(n, (host, port))``."""
        try:
            n, peer = self._sock.recvfrom_into(buffer)
        except BlockingIOError as exc:
            raise WouldBlockError() from exc
        if n == 0:
            raise EOFError("end of file")
        return n, tuple(peer[:2])

    def write_to(self, data, to):
        """Send ``data`` to the ``(host, port)`` address ``to``."""
        try:
            return self._sock.sendto(data, to)
        except BlockingIOError as exc:
            raise WouldBlockError() from exc

    def close(self):
        self._closed = True
        self._sock.close()

    def closed(self):
        return self._closed

    def local_addr(self):
        """The ``(host, port)`` the connection is bound to."""
        return self._local_addr

    def fileno(self):
        return self._sock.fileno()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()