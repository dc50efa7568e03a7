"""Probe execution for each supported technique."""

from latencyprobe.probes.executor import PROBE_TIMEOUT_MS, ProbeExecutor
from latencyprobe.probes.strategies import FAILURE_MESSAGE, STRATEGIES, timeout_message

__all__ = [
    "FAILURE_MESSAGE",
    "PROBE_TIMEOUT_MS",
    "STRATEGIES",
    "ProbeExecutor",
    "timeout_message",
]
