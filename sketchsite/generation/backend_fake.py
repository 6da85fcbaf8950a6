"""BackendFake: Scenario-based test double for GenerativeBackend.

Provides deterministic responses for named scenarios:
- happy_path: clean JSON reply
- fenced: the same reply wrapped in ```json fences
- chatty: the reply surrounded by prose
- malformed: reply cut off mid-object (end_turn, so it reaches the parser)
- truncated: reply cut off with stop_reason=max_tokens
- refused: stop_reason=refusal
- transport_error: connection failure
- rejected: non-success status from the backend
- crash: unexpected exception inside the backend
- hang: never returns (exercises the client timeout)

All scenarios except hang return instantly.
"""

import asyncio
import json

from sketchsite.core.exceptions import GenerationError, GenerationErrorReason
from sketchsite.schemas.generation import BackendResponse, GenerationRequest

HAPPY_PATH_PAYLOAD = {
    "html": (
        '<nav class="nav"><a href="#">Home</a><a href="#">About</a></nav>'
        '<section class="hero"><h1>Welcome</h1>'
        '<img src="https://picsum.photos/600/300" alt="cat photo"></section>'
    ),
    "css": (
        "body { margin: 0; font-family: system-ui; background: #ffffff; }\n"
        ".nav { display: flex; gap: 1rem; padding: 1rem; }\n"
        ".hero { text-align: center; padding: 2rem; }"
    ),
    "js": "",
    "analysis": {
        "annotations": ["'image of cat' -> hero image"],
        "layout": "navbar on top, hero below",
        "elements": ["navbar", "hero image"],
    },
}


class BackendFake:
    """Scenario-based test double for GenerativeBackend.

    Records every request in self.requests. A custom payload can replace the
    happy-path JSON for the JSON-producing scenarios.
    """

    VALID_SCENARIOS = {
        "happy_path",
        "fenced",
        "chatty",
        "malformed",
        "truncated",
        "refused",
        "transport_error",
        "rejected",
        "crash",
        "hang",
    }

    def __init__(self, scenario: str = "happy_path", payload: dict | None = None):
        """Initialize BackendFake with a named scenario.

        Raises:
            ValueError: If scenario is not recognized
        """
        if scenario not in self.VALID_SCENARIOS:
            raise ValueError(f"Unknown scenario: {scenario}. Valid scenarios: {self.VALID_SCENARIOS}")
        self.scenario = scenario
        self.payload = payload or HAPPY_PATH_PAYLOAD
        self.requests: list[GenerationRequest] = []

    @property
    def call_count(self) -> int:
        return len(self.requests)

    def reply_text(self) -> str:
        body = json.dumps(self.payload)
        if self.scenario == "fenced":
            return f"```json\n{body}\n```"
        if self.scenario == "chatty":
            return f"Sure! Here is your website:\n\n{body}\n\nLet me know if you want changes."
        if self.scenario in ("malformed", "truncated"):
            return body[: len(body) // 2]
        return body

    async def complete(self, request: GenerationRequest) -> BackendResponse:
        self.requests.append(request)

        if self.scenario == "hang":
            await asyncio.Event().wait()
        if self.scenario == "transport_error":
            raise GenerationError(GenerationErrorReason.TRANSPORT, "Connection reset by peer")
        if self.scenario == "rejected":
            raise GenerationError(GenerationErrorReason.REJECTED, "400 invalid_request_error")
        if self.scenario == "crash":
            raise RuntimeError("backend exploded")
        if self.scenario == "refused":
            return BackendResponse(text="I can't help with that.", stop_reason="refusal")
        if self.scenario == "truncated":
            return BackendResponse(text=self.reply_text(), stop_reason="max_tokens")

        return BackendResponse(text=self.reply_text(), stop_reason="end_turn")
