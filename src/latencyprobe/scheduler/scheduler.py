"""Probe scheduler implementation.

Drives the probe executor at a fixed cadence while a run is active, records the
outcomes, keeps statistics current, and notifies subscribers of every change.
"""

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime

from latencyprobe.analysis.statistics import compute_statistics
from latencyprobe.exceptions import EngineError, InvalidTransitionError, ValidationError
from latencyprobe.history.store import ResultStore
from latencyprobe.models.engine import EngineEvent, EngineEventType, EngineSnapshot, RunState
from latencyprobe.models.probe import (
    LatencyStatistics,
    ProbeMeasurement,
    ProbeOutcome,
    ProbeTechnique,
)
from latencyprobe.probes.executor import PROBE_TIMEOUT_MS, ProbeExecutor
from latencyprobe.probes.strategies import FAILURE_MESSAGE

logger = logging.getLogger(__name__)

# Period between probe issues
PROBE_INTERVAL_MS = 2000

STATUS_READY = "Ready to start."
STATUS_STARTING = "Starting tests..."
STATUS_STOPPED = "Stopped by user."

Subscriber = Callable[[EngineEvent], None]


class ProbeScheduler:
    """Owns a probe run: its state, history, sequence counter and timer.

    start() and stop() are synchronous and never wait on a probe. Probes run as
    separate tasks on the event loop. A tick that fires while the previous probe
    is still in flight waits for it before issuing, so at most one probe is
    pending and outcomes are recorded in issue order.
    """

    def __init__(
        self,
        executor: ProbeExecutor | None = None,
        *,
        secure_context: bool = False,
        interval_ms: int = PROBE_INTERVAL_MS,
        timeout_ms: int = PROBE_TIMEOUT_MS,
        store: ResultStore | None = None,
    ) -> None:
        """Initialize an idle scheduler.

        Args:
            executor: Probe executor; a default one is created if omitted.
            secure_context: Refuse the plain technique, as on a page served over TLS.
            interval_ms: Period between probe issues.
            timeout_ms: Timeout handed to the executor for every probe.
            store: History store; a default 40-entry store is created if omitted.
        """
        self._executor = executor or ProbeExecutor()
        self._secure_context = secure_context
        self._interval_s = interval_ms / 1000
        self._timeout_ms = timeout_ms
        self._store = store or ResultStore()

        self._run_state = RunState.IDLE
        self._host: str | None = None
        self._technique: ProbeTechnique | None = None
        self._next_sequence_id = 0
        self._statistics = LatencyStatistics.empty()
        self._status_message = STATUS_READY

        # Incremented on every start; outcomes from an older run are dropped
        self._run_generation = 0
        self._ticker: asyncio.Task[None] | None = None
        self._in_flight: asyncio.Task[None] | None = None
        self._subscribers: list[Subscriber] = []

    @property
    def run_state(self) -> RunState:
        """Current run state."""
        return self._run_state

    @property
    def statistics(self) -> LatencyStatistics:
        """Statistics for the current history."""
        return self._statistics

    @property
    def status_message(self) -> str:
        """Human-readable status line."""
        return self._status_message

    @property
    def latest(self) -> ProbeOutcome | None:
        """Most recent outcome, if any."""
        history = self._store.snapshot()
        return history[0] if history else None

    def history(self) -> tuple[ProbeOutcome, ...]:
        """Snapshot of the history, newest first."""
        return self._store.snapshot()

    def snapshot(self) -> EngineSnapshot:
        """Point-in-time view of the whole display state."""
        return EngineSnapshot(
            run_state=self._run_state,
            host=self._host,
            technique=self._technique,
            history=self._store.snapshot(),
            statistics=self._statistics,
            status_message=self._status_message,
        )

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a callback for state change events.

        Args:
            callback: Called synchronously with each EngineEvent.

        Returns:
            Function that removes the subscription.
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def start(self, host: str, technique: ProbeTechnique | str) -> None:
        """Start a run: reset history, probe immediately, then every interval.

        Must be called from a running event loop.

        Args:
            host: Host to probe; fixed for the whole run.
            technique: Technique to probe with; fixed for the whole run.

        Raises:
            InvalidTransitionError: If a run is already active.
            ValidationError: If the host is empty or the technique is not allowed.
            EngineError: If no event loop is running.
        """
        if self._run_state is RunState.RUNNING:
            msg = "Cannot start: a run is already in progress"
            raise InvalidTransitionError(msg)

        host, technique = self._validate(host, technique)

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError as e:
            msg = "start() must be called from a running event loop"
            raise EngineError(msg) from e

        self._run_generation += 1
        self._host = host
        self._technique = technique
        self._next_sequence_id = 0
        self._store.reset()
        self._statistics = compute_statistics(self._store.snapshot())
        self._emit(EngineEventType.HISTORY_RESET)
        self._emit(EngineEventType.STATISTICS_UPDATED)

        self._run_state = RunState.RUNNING
        self._emit(EngineEventType.RUN_STATE_CHANGED)
        self._set_status(STATUS_STARTING)
        logger.info("Started probing %s with %s", host, technique.value)

        first_tick = loop.time() + self._interval_s
        self._issue_probe()
        self._ticker = loop.create_task(
            self._tick_loop(self._run_generation, first_tick),
            name=f"probe-ticker-{self._run_generation}",
        )

    def stop(self) -> None:
        """Stop the run. No tick fires after this returns.

        A probe already in flight runs to completion (bounded by its timeout)
        and its outcome is still recorded.

        Raises:
            InvalidTransitionError: If no run is active.
        """
        if self._run_state is RunState.IDLE:
            msg = "Cannot stop: no run is in progress"
            raise InvalidTransitionError(msg)

        if self._ticker is not None:
            self._ticker.cancel()
            self._ticker = None

        self._run_state = RunState.IDLE
        self._emit(EngineEventType.RUN_STATE_CHANGED)
        self._set_status(STATUS_STOPPED)
        logger.info("Stopped probing %s", self._host)

    async def wait_in_flight(self) -> None:
        """Wait until the pending probe, if any, has been recorded."""
        if self._in_flight is not None and not self._in_flight.done():
            await asyncio.shield(self._in_flight)

    async def aclose(self) -> None:
        """Stop any run, let the pending probe finish, and release the executor."""
        if self._run_state is RunState.RUNNING:
            self.stop()
        await self.wait_in_flight()
        await self._executor.aclose()

    def _validate(self, host: str, technique: ProbeTechnique | str) -> tuple[str, ProbeTechnique]:
        """Normalise and check start arguments.

        Raises:
            ValidationError: If an argument is rejected.
        """
        if not isinstance(host, str) or not host.strip():
            msg = "Host cannot be empty"
            raise ValidationError(msg)

        try:
            resolved = ProbeTechnique(technique)
        except ValueError as e:
            available = ", ".join(t.value for t in ProbeTechnique)
            msg = f"Unknown probe technique '{technique}'. Available: {available}"
            raise ValidationError(msg) from e

        if self._secure_context and resolved is ProbeTechnique.PLAIN_GET:
            msg = "HTTP is disabled in a secure context; use https-get"
            raise ValidationError(msg)

        return host.strip(), resolved

    async def _tick_loop(self, generation: int, first_tick: float) -> None:
        """Fire a tick every interval, counted from the first probe, until stop()."""
        loop = asyncio.get_running_loop()
        next_tick = first_tick
        while generation == self._run_generation:
            await asyncio.sleep(max(0.0, next_tick - loop.time()))
            await self._tick()
            # Never burst to catch up after the loop was blocked
            next_tick = max(next_tick + self._interval_s, loop.time())

    async def _tick(self) -> None:
        """Issue the next probe once the previous one has been recorded.

        A probe that hits its timeout on the tick boundary is still unwinding
        when the tick fires, so the tick waits for it instead of being dropped.
        """
        pending = self._in_flight
        if pending is not None and not pending.done():
            logger.debug("Previous probe still in flight, deferring tick")
            # stop() cancels the ticker here; the probe itself must survive
            await asyncio.shield(pending)
        self._issue_probe()

    def _issue_probe(self) -> None:
        """Assign the next sequence id and launch the probe task."""
        host, technique = self._host, self._technique
        if host is None or technique is None:
            return
        sequence_id = self._next_sequence_id
        self._next_sequence_id += 1
        self._set_status(f"Pinging {host}...")
        self._in_flight = asyncio.get_running_loop().create_task(
            self._run_probe(sequence_id, self._run_generation, host, technique),
            name=f"probe-{self._run_generation}-{sequence_id}",
        )

    async def _run_probe(
        self,
        sequence_id: int,
        generation: int,
        host: str,
        technique: ProbeTechnique,
    ) -> None:
        """Execute one probe and record its outcome."""
        try:
            measurement = await self._executor.execute(host, technique, self._timeout_ms)
        except Exception:
            logger.exception("Probe %d to %s raised unexpectedly", sequence_id, host)
            measurement = ProbeMeasurement.failure(technique, FAILURE_MESSAGE)

        if generation != self._run_generation:
            logger.debug("Dropping probe %d from a previous run", sequence_id)
            return

        outcome = ProbeOutcome.from_measurement(
            measurement,
            sequence_id=sequence_id,
            observed_at=datetime.now().astimezone(),
        )
        self._record(outcome)

    def _record(self, outcome: ProbeOutcome) -> None:
        """Append an outcome and recompute statistics."""
        self._store.append(outcome)
        if outcome.is_success:
            logger.debug("Probe %d: %dms", outcome.sequence_id, outcome.elapsed_ms)
        else:
            logger.info("Probe %d failed: %s", outcome.sequence_id, outcome.error_message)
        self._emit(EngineEventType.OUTCOME_APPENDED, outcome)

        self._statistics = compute_statistics(self._store.snapshot())
        self._emit(EngineEventType.STATISTICS_UPDATED)

    def _set_status(self, message: str) -> None:
        self._status_message = message
        self._emit(EngineEventType.STATUS_CHANGED)

    def _emit(self, event_type: EngineEventType, outcome: ProbeOutcome | None = None) -> None:
        """Deliver an event to every subscriber; a failing subscriber is logged."""
        if not self._subscribers:
            return
        event = EngineEvent(type=event_type, snapshot=self.snapshot(), outcome=outcome)
        for callback in list(self._subscribers):
            try:
                callback(event)
            except Exception:
                logger.exception("Subscriber failed handling %s", event_type.value)
