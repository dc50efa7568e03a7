"""Tests for probe data models."""

from datetime import datetime

import pytest
from pydantic import ValidationError

from latencyprobe.models.engine import EngineSnapshot, RunState
from latencyprobe.models.probe import (
    LatencyStatistics,
    ProbeMeasurement,
    ProbeOutcome,
    ProbeStatus,
    ProbeTechnique,
)


class TestProbeTechnique:
    """Tests for ProbeTechnique."""

    def test_wire_values(self) -> None:
        """Techniques use the request type identifiers."""
        assert ProbeTechnique("https-get") is ProbeTechnique.SECURE_GET
        assert ProbeTechnique("http-get") is ProbeTechnique.PLAIN_GET

    def test_scheme(self) -> None:
        """Each technique maps to its URL scheme."""
        assert ProbeTechnique.SECURE_GET.scheme == "https"
        assert ProbeTechnique.PLAIN_GET.scheme == "http"


class TestProbeMeasurement:
    """Tests for the success/error exclusivity of measurements."""

    def test_success(self) -> None:
        """Successful measurement carries elapsed time and no error."""
        m = ProbeMeasurement.success(ProbeTechnique.SECURE_GET, 42)
        assert m.status is ProbeStatus.OK
        assert m.elapsed_ms == 42
        assert m.error_message is None
        assert m.is_success

    def test_failure(self) -> None:
        """Failed measurement carries an error and no elapsed time."""
        m = ProbeMeasurement.failure(ProbeTechnique.PLAIN_GET, "Timeout (2000ms)")
        assert m.status is ProbeStatus.ERROR
        assert m.elapsed_ms is None
        assert m.error_message == "Timeout (2000ms)"
        assert not m.is_success

    def test_success_with_error_message_rejected(self) -> None:
        """An OK status cannot carry an error message."""
        with pytest.raises(ValidationError):
            ProbeMeasurement(
                technique=ProbeTechnique.SECURE_GET,
                status=ProbeStatus.OK,
                elapsed_ms=10,
                error_message="boom",
            )

    def test_success_without_elapsed_rejected(self) -> None:
        """An OK status requires an elapsed time."""
        with pytest.raises(ValidationError):
            ProbeMeasurement(technique=ProbeTechnique.SECURE_GET, status=ProbeStatus.OK)

    def test_error_with_elapsed_rejected(self) -> None:
        """An Error status cannot carry an elapsed time."""
        with pytest.raises(ValidationError):
            ProbeMeasurement(
                technique=ProbeTechnique.SECURE_GET,
                status=ProbeStatus.ERROR,
                elapsed_ms=10,
                error_message="boom",
            )

    def test_error_without_message_rejected(self) -> None:
        """An Error status requires a message."""
        with pytest.raises(ValidationError):
            ProbeMeasurement(technique=ProbeTechnique.SECURE_GET, status=ProbeStatus.ERROR)

    def test_negative_elapsed_rejected(self) -> None:
        """Elapsed time cannot be negative."""
        with pytest.raises(ValidationError):
            ProbeMeasurement.success(ProbeTechnique.SECURE_GET, -1)

    def test_immutable(self) -> None:
        """Measurements cannot be modified after creation."""
        m = ProbeMeasurement.success(ProbeTechnique.SECURE_GET, 42)
        with pytest.raises(ValidationError):
            m.elapsed_ms = 1  # type: ignore[misc]


class TestProbeOutcome:
    """Tests for stamping measurements into outcomes."""

    def test_from_measurement_keeps_fields(self) -> None:
        """Outcome carries the measurement plus sequence id and time."""
        observed = datetime(2026, 1, 18, 13, 0, 0)
        m = ProbeMeasurement.success(ProbeTechnique.PLAIN_GET, 87)

        outcome = ProbeOutcome.from_measurement(m, sequence_id=3, observed_at=observed)

        assert outcome.sequence_id == 3
        assert outcome.observed_at == observed
        assert outcome.technique is ProbeTechnique.PLAIN_GET
        assert outcome.elapsed_ms == 87
        assert outcome.is_success

    def test_negative_sequence_id_rejected(self) -> None:
        """Sequence ids start at zero."""
        m = ProbeMeasurement.success(ProbeTechnique.PLAIN_GET, 87)
        with pytest.raises(ValidationError):
            ProbeOutcome.from_measurement(m, sequence_id=-1, observed_at=datetime.now())

    def test_failure_requires_message(self) -> None:
        """Outcome validation applies the same exclusivity rule."""
        with pytest.raises(ValidationError):
            ProbeOutcome(
                sequence_id=0,
                observed_at=datetime.now(),
                technique=ProbeTechnique.SECURE_GET,
                status=ProbeStatus.ERROR,
            )


class TestSnapshotModels:
    """Tests for statistics and engine snapshot helpers."""

    def test_empty_statistics(self) -> None:
        """Empty statistics are all None."""
        stats = LatencyStatistics.empty()
        assert stats.average is None
        assert stats.minimum is None
        assert stats.maximum is None
        assert stats.is_empty

    def test_snapshot_latest(self, outcome_factory) -> None:  # noqa: ANN001
        """Latest is the first (newest) history entry."""
        newest = outcome_factory(1, 20)
        snapshot = EngineSnapshot(
            run_state=RunState.RUNNING,
            history=(newest, outcome_factory(0, 10)),
            status_message="Pinging example.com...",
        )
        assert snapshot.latest == newest

    def test_snapshot_latest_empty(self) -> None:
        """Latest is None without history."""
        snapshot = EngineSnapshot(run_state=RunState.IDLE, status_message="Ready to start.")
        assert snapshot.latest is None
        assert snapshot.statistics.is_empty
