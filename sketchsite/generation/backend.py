"""Generative backend protocol and the Anthropic implementation.

GenerativeBackend is the testable seam for the model call: production uses
AnthropicBackend, tests use BackendFake. Backends translate their SDK's
failures into GenerationError so the client sees one error vocabulary.
"""

import base64
from typing import Protocol, runtime_checkable

import anthropic
import structlog

from sketchsite.core.config import get_settings
from sketchsite.core.exceptions import GenerationError, GenerationErrorReason
from sketchsite.schemas.generation import BackendResponse, GenerationRequest

logger = structlog.get_logger(__name__)


@runtime_checkable
class GenerativeBackend(Protocol):
    """Anything that can turn a GenerationRequest into raw text."""

    async def complete(self, request: GenerationRequest) -> BackendResponse:
        """Send the request and return the raw reply.

        Raises:
            GenerationError: For transport failures and non-success statuses
        """
        ...


def build_messages(request: GenerationRequest) -> list[dict]:
    """Anthropic messages payload: optional image block followed by the instructions."""
    content: list[dict] = []
    if request.image is not None:
        content.append(
            {
                "type": "image",
                "source": {
                    "type": "base64",
                    "media_type": request.image.media_type,
                    "data": base64.b64encode(request.image.image_bytes).decode("ascii"),
                },
            }
        )
    content.append({"type": "text", "text": request.instructions})
    return [{"role": "user", "content": content}]


class AnthropicBackend:
    """Calls Claude messages.create() once per request.

    SDK-level retries are disabled: a retry is always a user action because the
    canvas may have changed in the meantime.
    """

    def __init__(
        self,
        client: anthropic.AsyncAnthropic | None = None,
        model: str | None = None,
        max_tokens: int | None = None,
    ):
        settings = get_settings()
        self.client = client or anthropic.AsyncAnthropic(
            api_key=settings.anthropic_api_key,
            max_retries=0,
            timeout=settings.generation_timeout_seconds,
        )
        self.model = model or settings.generation_model
        self.max_tokens = max_tokens or settings.generation_max_tokens

    async def complete(self, request: GenerationRequest) -> BackendResponse:
        try:
            response = await self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                messages=build_messages(request),
            )
        except anthropic.APIConnectionError as e:
            raise GenerationError(GenerationErrorReason.TRANSPORT, str(e)) from e
        except anthropic.APIStatusError as e:
            reason = GenerationErrorReason.TRANSPORT if e.status_code >= 500 else GenerationErrorReason.REJECTED
            logger.warning("anthropic_status_error", status_code=e.status_code, reason=reason.value)
            raise GenerationError(reason, str(e)) from e

        text = "".join(block.text for block in response.content if getattr(block, "type", None) == "text")
        return BackendResponse(text=text, stop_reason=response.stop_reason)
