"""Exceptions raised by sonicnet operations."""

import builtins


class SonicError(Exception):
    """Base class of every error raised by sonicnet."""

    default_message = "sonic error"

    def __init__(self, message=None):
        super().__init__(message if message is not None else self.default_message)


class WouldBlockError(SonicError, BlockingIOError):
    """A non-blocking operation could not complete right away."""

    default_message = "operation would block"


class CancelledError(SonicError):
    """The operation was cancelled."""

    default_message = "operation cancelled"


class TimeoutError(SonicError, builtins.TimeoutError):
    """The operation timed out."""

    default_message = "operation timed out"


class NeedMoreError(SonicError):
    """More bytes must be read or written to finish the operation."""

    default_message = "need to read/write more bytes"


class NoBufferSpaceAvailableError(SonicError):
    """The kernel has no buffer space left for the operation."""

    default_message = "no buffer space available"