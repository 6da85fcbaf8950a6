"""GenerationClient: one bounded, non-retrying call to the generative backend.

- Hard time ceiling per call; the caller always gets control back
- At most one outstanding call per key (project); a second is refused
- Every failure surfaces as GenerationError with a reason tag
"""

import asyncio

import structlog

from sketchsite.core.config import get_settings
from sketchsite.core.exceptions import (
    GenerationError,
    GenerationErrorReason,
    GenerationInProgressError,
)
from sketchsite.generation.backend import GenerativeBackend
from sketchsite.schemas.generation import BackendResponse, GenerationRequest

logger = structlog.get_logger(__name__)

DEFAULT_KEY = "default"

# Backend stop reasons that mean the reply is unusable
STOP_REASON_ERRORS: dict[str, GenerationErrorReason] = {
    "max_tokens": GenerationErrorReason.TRUNCATED,
    "refusal": GenerationErrorReason.REJECTED,
}


def _drain(task: asyncio.Task) -> None:
    # Retrieve the outcome of an abandoned call so asyncio does not warn about it
    if not task.cancelled():
        task.exception()


class GenerationClient:
    """Wraps a GenerativeBackend with timeout, single-flight and error classification.

    Args:
        backend: GenerativeBackend implementation (AnthropicBackend or BackendFake)
        timeout_seconds: Hard ceiling per call (defaults to settings)
    """

    def __init__(self, backend: GenerativeBackend, timeout_seconds: float | None = None):
        self.backend = backend
        self.timeout_seconds = (
            timeout_seconds if timeout_seconds is not None else get_settings().generation_timeout_seconds
        )
        self._in_flight: set[str] = set()

    def is_busy(self, key: str = DEFAULT_KEY) -> bool:
        return key in self._in_flight

    async def generate(self, request: GenerationRequest, key: str = DEFAULT_KEY) -> str:
        """Run one generation and return the raw reply text.

        Raises:
            GenerationInProgressError: If a call for this key is still outstanding
            GenerationError: On timeout, transport failure, rejection or truncation
        """
        if key in self._in_flight:
            raise GenerationInProgressError(key)

        self._in_flight.add(key)
        try:
            response = await self._call_with_ceiling(request, key)
        finally:
            self._in_flight.discard(key)

        reason = STOP_REASON_ERRORS.get(response.stop_reason or "")
        if reason is not None:
            logger.warning("generation_stopped_early", key=key, stop_reason=response.stop_reason)
            raise GenerationError(reason, f"Generation stopped early ({response.stop_reason})")

        if not response.text.strip():
            raise GenerationError(GenerationErrorReason.UNKNOWN, "Backend returned an empty response")

        return response.text

    async def _call_with_ceiling(self, request: GenerationRequest, key: str) -> BackendResponse:
        task = asyncio.ensure_future(self.backend.complete(request))
        try:
            # asyncio.wait (not wait_for) so a call that ignores cancellation cannot hold us
            done, _ = await asyncio.wait({task}, timeout=self.timeout_seconds)
        except asyncio.CancelledError:
            task.cancel()
            task.add_done_callback(_drain)
            raise

        if not done:
            task.cancel()
            task.add_done_callback(_drain)
            logger.warning("generation_timeout", key=key, timeout_seconds=self.timeout_seconds)
            raise GenerationError(
                GenerationErrorReason.TIMEOUT,
                f"Generation timed out after {self.timeout_seconds:g}s",
            )

        try:
            return task.result()
        except GenerationError as e:
            logger.warning("generation_failed", key=key, reason=e.reason.value, error=str(e))
            raise
        except Exception as e:
            logger.error("generation_failed", key=key, reason="unknown", error=str(e), error_type=type(e).__name__)
            raise GenerationError(GenerationErrorReason.UNKNOWN, str(e)) from e
