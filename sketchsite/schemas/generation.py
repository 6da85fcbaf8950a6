"""Payload types exchanged with the generative backend."""

from dataclasses import dataclass, field
from enum import StrEnum


class RequestKind(StrEnum):
    SKETCH = "sketch"
    REGENERATE = "regenerate"
    EDIT = "edit"


@dataclass(frozen=True)
class RasterImage:
    """Rendered canvas, as returned by a CanvasExporter."""

    image_bytes: bytes
    width: int
    height: int
    media_type: str = "image/png"


@dataclass(frozen=True)
class GenerationRequest:
    """Model-ready payload: instruction text plus an optional raster image."""

    kind: RequestKind
    instructions: str
    image: RasterImage | None = None
    metadata: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class BackendResponse:
    """Raw text reply from the generative backend.

    stop_reason follows the backend's vocabulary ("end_turn", "max_tokens",
    "refusal", ...); None when the backend does not report one.
    """

    text: str
    stop_reason: str | None = None
