# sonicnet

Nonblocking UDP building blocks for POSIX systems (Linux, macOS, BSD).

- `sonicnet.sockets` — `Socket`, a wrapper over an operating-system socket
  with `set_nonblocking`, `reuse_addr`, `reuse_port`, `set_no_delay`
  (TCP only), `bind`, `recv_from`, `send_to`, `bind_to_device` and
  `unbind_from_device`; the enums `SocketDomain`, `SocketType` and
  `SocketProtocol`; `socket_domain_from_ip` and `get_bound_device`.
- `sonicnet.packet` — `PacketConn`, a nonblocking UDP connection bound to a
  local address (`""` picks a random port).
- `sonicnet.multicast.peer` — `UDPPeer`, an IPv4 multicast peer, plus
  `get_addresses_for_interface`, `filter_ipv4` and `filter_ipv6`.
- `sonicnet.multicast.util` — `parse_ip`, `parse_multicast_ip` and
  `resolve_multicast_interface`.
- `sonicnet.multicast.stats` — `Stats`, counters of immediate and scheduled
  reads and writes.
- `sonicnet.ipv4` — the IPv4 multicast socket-option helpers the peer is
  built on (interface, loopback, TTL, membership, source blocking,
  Linux `IP_MULTICAST_ALL`) and `IPMreqSource`.
- `sonicnet.slots` — `Slot`, `offset_slot`, `SequencedSlots` and
  `NoSpaceLeftForSlot`.
- `sonicnet.options` — option values (`nonblocking`, `reuse_port`,
  `reuse_addr`, `no_delay`, `bind_socket`) with `add_option` and
  `del_option`.
- `sonicnet.errors` — exceptions rooted at `SonicError`: `WouldBlockError`,
  `CancelledError`, `TimeoutError`, `NeedMoreError`,
  `NoBufferSpaceAvailableError`.

## Installation

```
pip install sonicnet
```

## Receiving multicast

```python
from sonicnet.errors import WouldBlockError
from sonicnet.multicast.peer import UDPPeer

with UDPPeer("udp", "224.0.1.0:1234") as peer:
    peer.join("224.0.1.0")
    buffer = bytearray(1500)
    while True:
        try:
            n, (ip, port) = peer.read(buffer)
        except WouldBlockError:
            continue
        print(ip, port, bytes(buffer[:n]))
```

`network` is `"udp"`, `"udp4"` or `"udp6"`. The peer's port must match the
port the group publishes to. Bind to `""` or `":<port>"` to receive on all
interfaces, or to a multicast IP to filter on that group. Peers are created
with `SO_REUSEPORT` and `SO_REUSEADDR`, so several can share an address.

Group membership:

- `join(ip)`, `join_on(ip, interface_name)`, `join_source(ip, source_ip)`,
  `join_source_on(ip, source_ip, interface_name)`
- `leave(ip)`, `leave_source(ip, source_ip)`
- `block_source(ip, source_ip)`, `unblock_source(ip, source_ip)`

Settings are properties: `peer.loop`, `peer.ttl` (1 by default, 0–255) and
`peer.all_groups` (Linux `IP_MULTICAST_ALL`, set to `False` on creation).
`set_outbound_ipv4(interface_name)` picks the sending interface and
`outbound()` returns `(interface_name, ip)`; `set_inbound(interface_name)`
binds the socket to a device.

## Sending

```python
from sonicnet.multicast.peer import UDPPeer

with UDPPeer("udp", "") as writer:
    writer.write(b"hello", "224.0.1.0", 1234)
```

An operation that cannot complete immediately raises `WouldBlockError`; a
full kernel send buffer raises `NoBufferSpaceAvailableError`.

## Ordering slots

```python
from sonicnet.slots import SequencedSlots, Slot

slots = SequencedSlots(max_slots=16)
slots.push(2, Slot(index=4, length=4))
slots.push(1, Slot(index=0, length=4))
print(slots.pop(1))          # Slot(index=0, length=4)
print(slots.pop_range(2, 1)) # [Slot(index=4, length=4)]
```

`push` returns `False` if the sequence number is already held and raises
`NoSpaceLeftForSlot` when `max_slots` are held; `pop` returns `None` for an
unknown sequence number.

## What this package does not do

- There is no event loop, reactor, timer or callback-based asynchronous I/O.
  `read`, `write`, `read_from`, `write_to`, `recv_from` and `send_to` are
  single nonblocking calls; waiting for readiness is up to the caller.
  `UDPPeer.stats()` returns a `Stats` object, but the peer does not update
  its counters itself.
- IPv6 multicast is not supported: a peer may bind with `"udp6"`, but
  joining, leaving or filtering an IPv6 group raises `SonicError`, as does
  `set_outbound_ipv6`.
- There is no byte buffer: `sonicnet.slots` only keeps `Slot` ranges
  ordered by sequence number.

## Tests

```
pip install -e ".[test]"
pytest
```