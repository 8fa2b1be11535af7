"""Slots of a byte buffer's save area and their ordering by sequence number."""

from bisect import bisect_left
from dataclasses import dataclass

from .errors import SonicError


class NoSpaceLeftForSlot(SonicError):
    """There is no room left to hold another slot."""

    default_message = "no space left to buffer the given slot"


@dataclass(frozen=True)
class Slot:
    """A region of the save area: a start index and a length."""

    index: int = 0
    length: int = 0


def offset_slot(offset, slot):
    """Move ``slot`` back by ``offset`` bytes, clamped to ``[0, slot.index]``."""
    offset = min(max(offset, 0), slot.index)
    return Slot(slot.index - offset, slot.length)


class SequencedSlots:
    """Slots kept in ascending order of their sequence numbers."""

    def __init__(self, max_slots):
        self.max_slots = max_slots
        self._seqs = []
        self._slots = []

    def __len__(self):
        return len(self._slots)

    def _check_size(self):
        if len(self._slots) >= self.max_slots:
            raise NoSpaceLeftForSlot()

    def push(self, seq, slot):
        """Insert ``slot`` under ``seq``.

        Returns False if ``seq`` is already held. Raises NoSpaceLeftForSlot
        when full.
        """
        ix = bisect_left(self._seqs, seq)
        if ix < len(self._seqs) and self._seqs[ix] == seq:
            return False
        self._check_size()
        self._seqs.insert(ix, seq)
        self._slots.insert(ix, slot)
        return True

    def pop(self, seq):
        """Remove and return the slot under ``seq``, or None if absent."""
        ix = bisect_left(self._seqs, seq)
        if ix < len(self._seqs) and self._seqs[ix] == seq:
            del self._seqs[ix]
            return self._slots.pop(ix)
        return None

    def pop_range(self, seq, n):
        """Pop at most ``n`` consecutive slots starting from ``seq``."""
        n = min(n, len(self._slots))
        if n == 0:
            return []
        ix = bisect_left(self._seqs, seq)
        if ix >= len(self._seqs):
            return []

        # Sequence numbers below the first held one count as already popped.
        to_pop = n - (self._seqs[ix] - seq)
        to_pop = max(0, min(to_pop, len(self._seqs) - ix))

        popped = []
        last_seq = None
        for s, slot in zip(self._seqs[ix:ix + to_pop], self._slots[ix:ix + to_pop]):
            if last_seq is not None and s - last_seq != 1:
                break
            last_seq = s
            popped.append(slot)

        del self._seqs[ix:ix + to_pop]
        del self._slots[ix:ix + to_pop]
        return popped

    def reset(self):
        self._seqs.clear()
        self._slots.clear()