from enum import StrEnum


class SketchSiteError(Exception):
    """Base exception for SketchSite application."""

    pass


class EmptyCanvasError(SketchSiteError):
    """Raised when the canvas has nothing to rasterize."""

    def __init__(self, message: str = "Canvas is empty. Draw something before generating."):
        super().__init__(message)


class NothingToEditError(SketchSiteError):
    """Raised when an incremental edit is requested before anything was generated."""

    def __init__(self, message: str = "No website to edit. Generate a website first."):
        super().__init__(message)


class GenerationErrorReason(StrEnum):
    """Reason tags carried by GenerationError."""

    TRANSPORT = "transport"
    TRUNCATED = "truncated"
    REJECTED = "rejected"
    TIMEOUT = "timeout"
    UNKNOWN = "unknown"


class GenerationError(SketchSiteError):
    """Raised when the generative backend call fails."""

    def __init__(self, reason: GenerationErrorReason, message: str = ""):
        self.reason = GenerationErrorReason(reason)
        super().__init__(message or f"Generation failed ({self.reason.value})")


class GenerationInProgressError(SketchSiteError):
    """Raised when a generation is requested while another one is still outstanding."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"A generation is already in progress for '{key}'")


class ParseError(SketchSiteError):
    """Raised when model output cannot be turned into an artifact."""

    def __init__(self, message: str, raw_excerpt: str = ""):
        self.raw_excerpt = raw_excerpt
        super().__init__(message)


class NotFoundError(SketchSiteError):
    """Raised when a project or version does not exist."""

    def __init__(self, kind: str, identifier: object):
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind} not found: {identifier}")


class PersistenceFailure(SketchSiteError):
    """Raised when a write to the persistent store fails."""

    pass


class WorkspaceStateError(SketchSiteError):
    """Raised when a workspace operation is not valid in the current state."""

    pass
