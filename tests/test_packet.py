import select
import socket

import pytest

from sonicnet.errors import WouldBlockError
from sonicnet.packet import PacketConn


def _free_udp_port():
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as probe:
        probe.bind(("127.0.0.1", 0))
        return probe.getsockname()[1]


def test_packet_error():
    with PacketConn("udp", "localhost:0") as conn:
        with pytest.raises(WouldBlockError):
            conn.read_from(bytearray(1))
        assert conn.write_to(b"hello", ("127.0.0.1", 8181)) == 5


def test_local_addr_port():
    port = _free_udp_port()
    with PacketConn("udp", f"localhost:{port}") as conn:
        assert conn.local_addr()[1] == port
        assert conn.local_addr()[0] == "127.0.0.1"


def test_random_local_port():
    with PacketConn("udp", "") as conn:
        assert conn.local_addr()[1] > 0


def test_read_from():
    with PacketConn("udp", "127.0.0.1:0") as conn, socket.socket(
        socket.AF_INET, socket.SOCK_DGRAM
    ) as sender:
        sender.sendto(b"hello", conn.local_addr())
        readable, _, _ = select.select([conn], [], [], 2.0)
        assert readable == [conn]

        buf = bytearray(128)
        n, addr = conn.read_from(buf)
        assert bytes(buf[:n]) == b"hello"
        assert addr == ("127.0.0.1", sender.getsockname()[1])


def test_read_empty_datagram_is_eof():
    with PacketConn("udp", "127.0.0.1:0") as conn, socket.socket(
        socket.AF_INET, socket.SOCK_DGRAM
    ) as sender:
        sender.sendto(b"", conn.local_addr())
        readable, _, _ = select.select([conn], [], [], 2.0)
        assert readable == [conn]
        with pytest.raises(EOFError):
            conn.read_from(bytearray(16))


def test_write_to():
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as receiver:
        receiver.bind(("127.0.0.1", 0))
        receiver.settimeout(2.0)
        with PacketConn("udp", "") as conn:
            assert conn.write_to(b"hello", receiver.getsockname()) == 5
            data, sender = receiver.recvfrom(128)
            assert data == b"hello"
            assert sender[1] == conn.local_addr()[1]


def test_close():
    conn = PacketConn("udp", "127.0.0.1:0")
    assert conn.closed() is False
    conn.close()
    assert conn.closed() is True
    assert conn.fileno() == -1


def test_network_must_be_udp():
    with pytest.raises(ValueError):
        PacketConn("tcp", "localhost:0")


def test_unknown_udp_network():
    with pytest.raises(ValueError):
        PacketConn("udpx", "localhost:0")


def test_missing_port():
    with pytest.raises(ValueError):
        PacketConn("udp", "localhost")