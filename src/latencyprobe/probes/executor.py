"""Probe executor.

Performs one latency measurement with a selected technique under a hard timeout.
"""

import logging
import time

import httpx

from latencyprobe.exceptions import ProbeFailureError, ProbeTimeoutError
from latencyprobe.models.probe import ProbeMeasurement, ProbeTechnique
from latencyprobe.probes.strategies import STRATEGIES, Clock, build_url, timeout_message

logger = logging.getLogger(__name__)

# Hard per-probe timeout, identical for every technique
PROBE_TIMEOUT_MS = 2000


class ProbeExecutor:
    """Executes single probes and classifies their outcome.

    No retries are attempted and no result carries over between calls. The
    underlying HTTP client is created lazily and keeps connections alive across
    probes, the way a browser would.
    """

    def __init__(
        self,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Clock = time.perf_counter,
    ) -> None:
        """Initialize the executor.

        Args:
            transport: Optional httpx transport (tests use httpx.MockTransport).
            clock: Monotonic clock returning seconds.
        """
        self._transport = transport
        self._clock = clock
        self._client: httpx.AsyncClient | None = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            # The probe enforces its own timeout; httpx's must not fire first
            self._client = httpx.AsyncClient(
                transport=self._transport,
                timeout=None,
                follow_redirects=True,
            )
        return self._client

    async def execute(
        self,
        host: str,
        technique: ProbeTechnique,
        timeout_ms: int = PROBE_TIMEOUT_MS,
    ) -> ProbeMeasurement:
        """Measure one round trip to the host.

        Args:
            host: Host name or IP to probe.
            technique: Technique to probe with.
            timeout_ms: Hard timeout; the request is aborted when it expires.

        Returns:
            ProbeMeasurement classified as OK (with elapsed_ms) or Error
            (with error_message). Probe failures are never raised.
        """
        technique = ProbeTechnique(technique)
        strategy = STRATEGIES[technique]
        url = build_url(technique, host)
        client = self._get_client()

        started = self._clock()
        try:
            finished = await strategy(client, url, timeout_ms / 1000, self._clock)
        except ProbeTimeoutError:
            logger.debug("Probe to %s timed out after %dms", url, timeout_ms)
            return ProbeMeasurement.failure(technique, timeout_message(timeout_ms))
        except ProbeFailureError as e:
            return ProbeMeasurement.failure(technique, str(e))

        elapsed_ms = max(0, round((finished - started) * 1000))
        return ProbeMeasurement.success(technique, elapsed_ms)

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
