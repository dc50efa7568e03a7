"""Custom exception hierarchy for LatencyProbe.

All exceptions inherit from LatencyProbeError for easy catching at the top level.
Command errors propagate to the caller; probe errors are turned into outcomes.
"""


class LatencyProbeError(Exception):
    """Base exception for all LatencyProbe errors."""


class ConfigurationError(LatencyProbeError):
    """Configuration-related errors."""


class EngineError(LatencyProbeError):
    """Errors raised by engine commands (start/stop)."""


class ValidationError(EngineError):
    """A command argument was rejected; the run did not start."""


class InvalidTransitionError(EngineError):
    """Command is not valid in the current run state."""


class ProbeError(LatencyProbeError):
    """A single probe did not receive a response."""


class ProbeTimeoutError(ProbeError):
    """Probe exceeded its timeout and was cancelled."""


class ProbeFailureError(ProbeError):
    """Network-level failure other than a timeout."""
