"""Configuration data models.

Defines the probe target and engine settings that may come from a config file.
"""

from pydantic import BaseModel

from latencyprobe.models.probe import ProbeTechnique


class TargetConfig(BaseModel):
    """Host and technique to measure.

    The host is not validated here; the scheduler rejects an empty host on start.
    """

    host: str = "google.com"
    technique: ProbeTechnique = ProbeTechnique.SECURE_GET


class EngineConfig(BaseModel):
    """Settings for the probe engine."""

    # Engine embedded in a context served over TLS; plain probes are refused.
    secure_context: bool = False
