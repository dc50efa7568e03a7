"""Per-technique probe strategies.

Each strategy issues one request and returns the clock reading at which a
response signal was observed. Strategies raise ProbeTimeoutError or
ProbeFailureError; they never return on failure.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable

import httpx

from latencyprobe.exceptions import ProbeFailureError, ProbeTimeoutError
from latencyprobe.models.probe import ProbeTechnique

logger = logging.getLogger(__name__)

# Fixed diagnostic for every non-timeout failure of the secure technique
FAILURE_MESSAGE = "Failed. Check host, network, or console for errors."

# Keep intermediaries from answering in place of the host
NO_CACHE_HEADERS = {"Cache-Control": "no-store", "Pragma": "no-cache"}

Clock = Callable[[], float]
ProbeStrategy = Callable[[httpx.AsyncClient, str, float, Clock], Awaitable[float]]


def timeout_message(timeout_ms: int) -> str:
    """Error message recorded for a probe that timed out."""
    return f"Timeout ({timeout_ms}ms)"


def build_url(technique: ProbeTechnique, host: str) -> str:
    """Build the probe URL with a cache-defeating query parameter.

    Args:
        technique: Technique deciding the scheme.
        host: Host name or IP, optionally with a path.

    Returns:
        URL such as ``https://example.com?t=1700000000000``.
    """
    separator = "&" if "?" in host else "?"
    return f"{technique.scheme}://{host}{separator}t={time.time_ns() // 1_000_000}"


async def secure_get(
    client: httpx.AsyncClient,
    url: str,
    timeout_s: float,
    clock: Clock,
) -> float:
    """Issue an HTTPS GET; any received response counts as success.

    The response body is never read, only the status line and headers.

    Raises:
        ProbeTimeoutError: If no response arrives before the timeout.
        ProbeFailureError: For any other network failure.
    """
    try:
        async with asyncio.timeout(timeout_s):
            async with client.stream("GET", url, headers=NO_CACHE_HEADERS):
                return clock()
    except (TimeoutError, httpx.TimeoutException) as e:
        raise ProbeTimeoutError(url) from e
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        logger.debug("Secure probe to %s failed: %s", url, e)
        raise ProbeFailureError(FAILURE_MESSAGE) from e


async def plain_get(
    client: httpx.AsyncClient,
    url: str,
    timeout_s: float,
    clock: Clock,
) -> float:
    """Load a resource over plain HTTP; a load and a load error both count as success.

    The request races a timer. The first signal settles the result and all
    later signals are ignored; whatever is still pending is then cancelled.

    Raises:
        ProbeTimeoutError: If neither signal fires before the timeout.
    """
    loop = asyncio.get_running_loop()
    settled: asyncio.Future[float | None] = loop.create_future()

    def settle(observed_at: float | None) -> None:
        if not settled.done():
            settled.set_result(observed_at)

    async def load() -> None:
        async with client.stream("GET", url, headers=NO_CACHE_HEADERS) as response:
            await response.aread()

    def on_load_done(task: asyncio.Task[None]) -> None:
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            # Rejected resources still prove the host answered
            logger.debug("Plain probe to %s ended with error signal: %s", url, error)
        settle(clock())

    request = loop.create_task(load())
    request.add_done_callback(on_load_done)
    timer = loop.call_later(timeout_s, settle, None)
    try:
        observed_at = await settled
    finally:
        timer.cancel()
        if not request.done():
            request.cancel()
            await asyncio.gather(request, return_exceptions=True)

    if observed_at is None:
        raise ProbeTimeoutError(url)
    return observed_at


STRATEGIES: dict[ProbeTechnique, ProbeStrategy] = {
    ProbeTechnique.SECURE_GET: secure_get,
    ProbeTechnique.PLAIN_GET: plain_get,
}
