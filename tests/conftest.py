"""Shared fixtures for latencyprobe tests."""

import asyncio
from collections.abc import Iterable
from datetime import datetime

import pytest

from latencyprobe.models.engine import EngineEvent, EngineEventType
from latencyprobe.models.probe import ProbeMeasurement, ProbeOutcome, ProbeTechnique
from latencyprobe.scheduler.scheduler import ProbeScheduler


class FakeExecutor:
    """Executor double returning scripted measurements."""

    def __init__(
        self,
        elapsed: Iterable[int | Exception | None] = (),
        *,
        delay: float = 0.0,
        default_ms: int = 10,
    ) -> None:
        self._scripted = list(elapsed)
        self._delay = delay
        self._default_ms = default_ms
        self.calls: list[tuple[str, ProbeTechnique, int]] = []
        self.active = 0
        self.max_active = 0
        self.closed = False

    async def execute(
        self,
        host: str,
        technique: ProbeTechnique,
        timeout_ms: int = 2000,
    ) -> ProbeMeasurement:
        self.calls.append((host, technique, timeout_ms))
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self._delay:
                await asyncio.sleep(self._delay)
            value = self._scripted.pop(0) if self._scripted else self._default_ms
        finally:
            self.active -= 1

        if isinstance(value, Exception):
            raise value
        if value is None:
            return ProbeMeasurement.failure(technique, "Timeout (2000ms)")
        return ProbeMeasurement.success(technique, value)

    async def aclose(self) -> None:
        self.closed = True


class OutcomeRecorder:
    """Subscribes to a scheduler and collects appended outcomes."""

    def __init__(self, scheduler: ProbeScheduler) -> None:
        self.events: list[EngineEvent] = []
        self.outcomes: list[ProbeOutcome] = []
        self._target = 0
        self._reached = asyncio.Event()
        self.unsubscribe = scheduler.subscribe(self._on_event)

    def _on_event(self, event: EngineEvent) -> None:
        self.events.append(event)
        if event.type is EngineEventType.OUTCOME_APPENDED and event.outcome is not None:
            self.outcomes.append(event.outcome)
            if self._target and len(self.outcomes) >= self._target:
                self._reached.set()

    async def wait_for(self, count: int, timeout: float = 5.0) -> list[ProbeOutcome]:
        """Wait until at least count outcomes were appended."""
        self._target = count
        if len(self.outcomes) >= count:
            return self.outcomes
        self._reached.clear()
        await asyncio.wait_for(self._reached.wait(), timeout)
        return self.outcomes


def make_outcome(sequence_id: int, elapsed_ms: int | None) -> ProbeOutcome:
    """Build an outcome; None elapsed_ms means a timeout."""
    technique = ProbeTechnique.SECURE_GET
    measurement = (
        ProbeMeasurement.success(technique, elapsed_ms)
        if elapsed_ms is not None
        else ProbeMeasurement.failure(technique, "Timeout (2000ms)")
    )
    return ProbeOutcome.from_measurement(
        measurement,
        sequence_id=sequence_id,
        observed_at=datetime(2026, 1, 18, 12, 0, sequence_id % 60),
    )


@pytest.fixture
def fake_executor_cls() -> type[FakeExecutor]:
    """The scripted executor double."""
    return FakeExecutor


@pytest.fixture
def recorder_cls() -> type[OutcomeRecorder]:
    """The outcome recorder helper."""
    return OutcomeRecorder


@pytest.fixture
def outcome_factory():  # noqa: ANN201 - returns a plain function
    """Factory building outcomes from (sequence_id, elapsed_ms)."""
    return make_outcome


def history_from_times(times: list[int | None]) -> list[ProbeOutcome]:
    """Newest-first history from elapsed times listed newest first."""
    count = len(times)
    return [make_outcome(count - 1 - i, t) for i, t in enumerate(times)]


@pytest.fixture
def history_factory():  # noqa: ANN201 - returns a plain function
    """Factory building newest-first histories from elapsed times."""
    return history_from_times
