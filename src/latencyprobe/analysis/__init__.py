"""Statistics derived from the probe history."""

from latencyprobe.analysis.statistics import chart_series, compute_statistics

__all__ = ["chart_series", "compute_statistics"]
