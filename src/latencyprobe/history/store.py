"""Bounded probe history.

Keeps the most recent outcomes newest-first, evicting the oldest past capacity.
"""

from collections import deque

from latencyprobe.models.probe import ProbeOutcome

# Number of outcomes retained
HISTORY_CAPACITY = 40


class ResultStore:
    """Newest-first history of probe outcomes, capped at a fixed capacity."""

    def __init__(self, capacity: int = HISTORY_CAPACITY) -> None:
        """Initialize an empty store.

        Args:
            capacity: Maximum number of outcomes kept.
        """
        if capacity < 1:
            msg = f"History capacity must be positive, got {capacity}"
            raise ValueError(msg)
        self._entries: deque[ProbeOutcome] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        """Maximum number of outcomes kept."""
        return self._entries.maxlen or 0

    def append(self, outcome: ProbeOutcome) -> None:
        """Prepend an outcome, evicting the oldest one when full."""
        self._entries.appendleft(outcome)

    def reset(self) -> None:
        """Remove every outcome."""
        self._entries.clear()

    def snapshot(self) -> tuple[ProbeOutcome, ...]:
        """Point-in-time copy of the history, newest first."""
        return tuple(self._entries)

    def __len__(self) -> int:
        return len(self._entries)
