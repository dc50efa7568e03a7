"""Engine state models.

Defines run state, the display snapshot, and change notifications.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from latencyprobe.models.probe import LatencyStatistics, ProbeOutcome, ProbeTechnique


class RunState(str, Enum):
    """Lifecycle state of the probe engine."""

    IDLE = "idle"
    RUNNING = "running"


class EngineSnapshot(BaseModel):
    """Point-in-time view of everything the display layer reads."""

    model_config = ConfigDict(frozen=True)

    run_state: RunState
    host: str | None = None
    technique: ProbeTechnique | None = None
    history: tuple[ProbeOutcome, ...] = Field(default_factory=tuple)  # newest first
    statistics: LatencyStatistics = Field(default_factory=LatencyStatistics.empty)
    status_message: str

    @property
    def latest(self) -> ProbeOutcome | None:
        """Most recent outcome, if any."""
        return self.history[0] if self.history else None


class EngineEventType(str, Enum):
    """Kind of state change an engine event reports."""

    RUN_STATE_CHANGED = "run_state_changed"
    HISTORY_RESET = "history_reset"
    OUTCOME_APPENDED = "outcome_appended"
    STATISTICS_UPDATED = "statistics_updated"
    STATUS_CHANGED = "status_changed"


class EngineEvent(BaseModel):
    """Notification delivered to engine subscribers."""

    model_config = ConfigDict(frozen=True)

    type: EngineEventType
    snapshot: EngineSnapshot
    outcome: ProbeOutcome | None = None  # set for OUTCOME_APPENDED
