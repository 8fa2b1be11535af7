"""Counters of how asynchronous reads and writes of a peer completed."""

from dataclasses import dataclass


@dataclass
class Stats:
    """Immediate and reactor-scheduled read and write counts."""

    immediate_reads: int = 0
    scheduled_reads: int = 0
    immediate_writes: int = 0
    scheduled_writes: int = 0

    def reset(self):
        self.immediate_reads = 0
        self.scheduled_reads = 0
        self.immediate_writes = 0
        self.scheduled_writes = 0

    def async_read_perf(self):
        """Higher means fewer reads went through the reactor; NaN with no reads."""
        total = self.async_total_reads()
        if total == 0:
            return float("nan")
        return 1.0 - self.scheduled_reads / total * 2.0

    def async_total_reads(self):
        return self.immediate_reads + self.scheduled_reads

    def async_total_writes(self):
        return self.immediate_writes + self.scheduled_writes