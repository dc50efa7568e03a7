"""Probe data models.

Defines techniques, classified probe outcomes, and derived latency statistics.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ProbeTechnique(str, Enum):
    """Request technique used to measure round-trip latency."""

    SECURE_GET = "https-get"
    PLAIN_GET = "http-get"

    @property
    def scheme(self) -> str:
        """URL scheme the technique connects with."""
        return "https" if self is ProbeTechnique.SECURE_GET else "http"


class ProbeStatus(str, Enum):
    """Classification of a single probe."""

    OK = "OK"
    ERROR = "Error"


class ProbeMeasurement(BaseModel):
    """Result of one probe as produced by the executor."""

    model_config = ConfigDict(frozen=True)

    technique: ProbeTechnique
    status: ProbeStatus
    elapsed_ms: int | None = Field(default=None, ge=0)
    error_message: str | None = None

    @model_validator(mode="after")
    def success_xor_error(self) -> "ProbeMeasurement":
        """Validate that a success carries a time and an error carries a message."""
        if self.status is ProbeStatus.OK:
            if self.elapsed_ms is None or self.error_message is not None:
                msg = "Successful probe requires elapsed_ms and no error_message"
                raise ValueError(msg)
        elif self.elapsed_ms is not None or not self.error_message:
            msg = "Failed probe requires error_message and no elapsed_ms"
            raise ValueError(msg)
        return self

    @property
    def is_success(self) -> bool:
        """Whether the probe received a response."""
        return self.status is ProbeStatus.OK

    @classmethod
    def success(cls, technique: ProbeTechnique, elapsed_ms: int) -> "ProbeMeasurement":
        """Build a successful measurement."""
        return cls(technique=technique, status=ProbeStatus.OK, elapsed_ms=elapsed_ms)

    @classmethod
    def failure(cls, technique: ProbeTechnique, error_message: str) -> "ProbeMeasurement":
        """Build a failed measurement."""
        return cls(technique=technique, status=ProbeStatus.ERROR, error_message=error_message)


class ProbeOutcome(ProbeMeasurement):
    """Measurement stamped by the scheduler with its sequence id and completion time."""

    sequence_id: int = Field(ge=0)
    observed_at: datetime

    @classmethod
    def from_measurement(
        cls,
        measurement: ProbeMeasurement,
        *,
        sequence_id: int,
        observed_at: datetime,
    ) -> "ProbeOutcome":
        """Stamp an executor measurement.

        Args:
            measurement: Measurement returned by the executor.
            sequence_id: Id assigned when the probe was issued.
            observed_at: Wall-clock time the probe completed.

        Returns:
            Immutable outcome ready for the history.
        """
        return cls(
            sequence_id=sequence_id,
            observed_at=observed_at,
            **measurement.model_dump(),
        )


class LatencyStatistics(BaseModel):
    """Average/min/max latency in milliseconds, all None when data is insufficient."""

    model_config = ConfigDict(frozen=True)

    average: int | None = None
    minimum: int | None = None
    maximum: int | None = None

    @classmethod
    def empty(cls) -> "LatencyStatistics":
        """All-null statistics."""
        return cls()

    @property
    def is_empty(self) -> bool:
        """Whether no statistics are available."""
        return self.average is None
