"""Rolling probe history."""

from latencyprobe.history.store import HISTORY_CAPACITY, ResultStore

__all__ = ["HISTORY_CAPACITY", "ResultStore"]
