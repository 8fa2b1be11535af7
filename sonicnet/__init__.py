"""Nonblocking UDP sockets, IPv4 multicast socket options and slot ordering."""

__version__ = "0.1.0"