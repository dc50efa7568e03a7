"""Data models for LatencyProbe."""

from latencyprobe.models.config import EngineConfig, TargetConfig
from latencyprobe.models.engine import EngineEvent, EngineEventType, EngineSnapshot, RunState
from latencyprobe.models.probe import (
    LatencyStatistics,
    ProbeMeasurement,
    ProbeOutcome,
    ProbeStatus,
    ProbeTechnique,
)

__all__ = [
    "EngineConfig",
    "EngineEvent",
    "EngineEventType",
    "EngineSnapshot",
    "LatencyStatistics",
    "ProbeMeasurement",
    "ProbeOutcome",
    "ProbeStatus",
    "ProbeTechnique",
    "RunState",
    "TargetConfig",
]
