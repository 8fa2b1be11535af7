import math

from sonicnet.multicast.stats import Stats


def test_fresh_totals_are_zero():
    stats = Stats()
    assert stats.async_total_reads() == 0
    assert stats.async_total_writes() == 0


def test_totals_sum_counters():
    stats = Stats(immediate_reads=3, scheduled_reads=4, immediate_writes=5, scheduled_writes=6)
    assert stats.async_total_reads() == stats.immediate_reads + stats.scheduled_reads
    assert stats.async_total_writes() == stats.immediate_writes + stats.scheduled_writes


def test_read_perf_all_immediate():
    stats = Stats(immediate_reads=10)
    assert stats.async_read_perf() == 1.0


def test_read_perf_mixed():
    stats = Stats(immediate_reads=3, scheduled_reads=1)
    assert stats.async_read_perf() == 0.5


def test_read_perf_decreases_with_scheduled_reads():
    fewer = Stats(immediate_reads=8, scheduled_reads=2)
    more = Stats(immediate_reads=2, scheduled_reads=8)
    assert more.async_read_perf() < fewer.async_read_perf()


def test_read_perf_without_reads_is_nan():
    value = Stats().async_read_perf()
    assert math.isnan(value) is True
    assert str(value) == "nan"


def test_reset_clears_counters():
    stats = Stats(immediate_reads=1, scheduled_reads=2, immediate_writes=3, scheduled_writes=4)
    stats.reset()
    assert stats == Stats()
    assert stats.async_total_reads() == 0
    assert stats.async_total_writes() == 0