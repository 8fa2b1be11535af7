"""Socket options that can be passed when creating connections."""

from dataclasses import dataclass
from enum import IntEnum
from typing import Any


class OptionType(IntEnum):
    """Kinds of socket option."""

    NONBLOCKING = 0
    REUSE_PORT = 1
    REUSE_ADDR = 2
    NO_DELAY = 3
    BIND_SOCKET = 4
    MULTICAST = 5

    def __str__(self):
        return self.name.lower()


@dataclass(frozen=True)
class Option:
    """A typed option value."""

    type: OptionType
    value: Any


def bind_socket(addr):
    """Bind the socket to ``addr`` when dialing a remote endpoint."""
    return Option(OptionType.BIND_SOCKET, addr)


def no_delay(value):
    return Option(OptionType.NO_DELAY, bool(value))


def nonblocking(value):
    return Option(OptionType.NONBLOCKING, bool(value))


def reuse_addr(value):
    return Option(OptionType.REUSE_ADDR, bool(value))


def reuse_port(value):
    return Option(OptionType.REUSE_PORT, bool(value))


def add_option(add, opts):
    """Return ``opts`` with ``add`` replacing an option of the same type, or appended."""
    result = list(opts)
    for i, current in enumerate(result):
        if current.type == add.type:
            result[i] = add
            return result
    result.append(add)
    return result


def del_option(option_type, opts):
    """Return ``opts`` without the first option of ``option_type``."""
    result = list(opts)
    for i, current in enumerate(result):
        if current.type == option_type:
            del result[i]
            break
    return result