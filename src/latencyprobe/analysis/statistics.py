"""Latency statistics over the probe history.

The oldest successful sample is always left out: it carries the DNS lookup and
connection setup cost of the run and would skew the figures.
"""

from collections.abc import Sequence

from latencyprobe.models.probe import LatencyStatistics, ProbeOutcome

# Successful samples required before anything is reported
MIN_SUCCESSFUL_SAMPLES = 2


def _successful_times(history: Sequence[ProbeOutcome]) -> list[int]:
    """Elapsed times of successful outcomes, in history order (newest first)."""
    return [o.elapsed_ms for o in history if o.is_success and o.elapsed_ms is not None]


def _round_half_up(total: int, count: int) -> int:
    """Integer division rounded to nearest, halves rounded up."""
    return (2 * total + count) // (2 * count)


def compute_statistics(history: Sequence[ProbeOutcome]) -> LatencyStatistics:
    """Compute average, min and max latency from a newest-first history.

    Args:
        history: Probe outcomes, newest first.

    Returns:
        LatencyStatistics over every successful outcome except the oldest one,
        or all-None statistics with fewer than two successful outcomes.
    """
    times = _successful_times(history)
    if len(times) < MIN_SUCCESSFUL_SAMPLES:
        return LatencyStatistics.empty()

    # Oldest successful sample is last in newest-first order
    counted = times[:-1]
    return LatencyStatistics(
        average=_round_half_up(sum(counted), len(counted)),
        minimum=min(counted),
        maximum=max(counted),
    )


def chart_series(history: Sequence[ProbeOutcome]) -> list[int] | None:
    """Successful elapsed times oldest-first, for plotting left to right.

    Args:
        history: Probe outcomes, newest first.

    Returns:
        List of elapsed times, or None when fewer than two points exist.
    """
    times = _successful_times(history)
    if len(times) < MIN_SUCCESSFUL_SAMPLES:
        return None
    return list(reversed(times))
