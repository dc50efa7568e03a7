"""Fixed-cadence probe scheduling and run lifecycle."""

from latencyprobe.scheduler.scheduler import PROBE_INTERVAL_MS, ProbeScheduler, Subscriber

__all__ = ["PROBE_INTERVAL_MS", "ProbeScheduler", "Subscriber"]
