"""LatencyProbe - periodic round-trip latency measurement."""

__version__ = "0.1.0"
