"""Parsing of IP addresses and lookup of multicast-capable interfaces."""

import errno
import ipaddress

import psutil


def parse_ip(addr):
    """Parse ``addr`` into an IPv4Address or IPv6Address; raise ValueError if invalid."""
    try:
        return ipaddress.ip_address(addr)
    except ValueError as exc:
        raise ValueError(f"address={addr} not valid") from exc


def parse_multicast_ip(addr):
    """Parse ``addr`` and require it to be a multicast address."""
    ip = parse_ip(addr)
    checked = ip
    if ip.version == 6 and ip.ipv4_mapped is not None:
        checked = ip.ipv4_mapped
    if not checked.is_multicast:
        raise ValueError(f"addr={addr} not multicast")
    return ip


def resolve_multicast_interface(name):
    """Return ``name`` if that interface exists, is up and supports multicast."""
    stats = psutil.net_if_stats().get(name)
    if stats is None:
        raise OSError(errno.ENODEV, f"no such network interface {name}")
    if not stats.isup:
        raise ValueError(f"interface={name} is not up")
    flags = {flag for flag in getattr(stats, "flags", "").split(",") if flag}
    if "multicast" not in flags:
        raise ValueError(f"interface={name} does not support multicast")
    return name