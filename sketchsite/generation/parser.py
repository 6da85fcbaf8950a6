"""Recover a {markup, styles, script} artifact from raw model output.

The backend is a best-effort text generator, so decoding is an ordered
fallback chain that stops at the first strategy that works:

1. direct: strip markdown fences / decoration and json-decode the whole text
2. balanced_object: find the longest brace-balanced object that carries the
   required field names and decode it
3. field_scan: pick the required string fields out one by one with a narrow
   pattern and decode each string body

parse() never raises; it returns ParseSuccess or ParseFailure.
"""

import json
import re
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

import structlog

from sketchsite.core.exceptions import ParseError
from sketchsite.schemas.artifacts import Artifact

logger = structlog.get_logger(__name__)

RAW_EXCERPT_CHARS = 1000
LOG_EXCERPT_CHARS = 500

# Accepted key spellings, first one is what the prompts ask for
MARKUP_KEYS = ("html", "markup")
STYLES_KEYS = ("css", "styles")
SCRIPT_KEYS = ("js", "script")

# Upper bound on candidate object starts examined by the balanced scan
MAX_OBJECT_CANDIDATES = 64

_OBJECT_START = re.compile(r'\{\s*"')
_STRING_BODY = r'"((?:[^"\\]|\\.)*)"'


def _field_pattern(keys: tuple[str, ...]) -> re.Pattern:
    names = "|".join(re.escape(k) for k in keys)
    return re.compile(r'"(?:' + names + r')"\s*:\s*' + _STRING_BODY, re.DOTALL)


_MARKUP_FIELD = _field_pattern(MARKUP_KEYS)
_STYLES_FIELD = _field_pattern(STYLES_KEYS)
_SCRIPT_FIELD = _field_pattern(SCRIPT_KEYS)
_SCRIPT_KEY = re.compile(r'"(?:' + "|".join(re.escape(k) for k in SCRIPT_KEYS) + r')"\s*:')
# Anything but a string opener, then the closing brace
_OBJECT_CLOSE = re.compile(r'[^"]*\}')


class ParseStrategy(StrEnum):
    DIRECT = "direct"
    BALANCED_OBJECT = "balanced_object"
    FIELD_SCAN = "field_scan"


@dataclass(frozen=True)
class ParseSuccess:
    artifact: Artifact
    strategy: ParseStrategy
    analysis: dict[str, Any] | None = None
    changes: str | None = None

    ok = True


@dataclass(frozen=True)
class ParseFailure:
    message: str
    raw_excerpt: str = ""
    attempts: tuple[str, ...] = field(default_factory=tuple)

    ok = False

    def to_error(self) -> ParseError:
        return ParseError(self.message, raw_excerpt=self.raw_excerpt)


ParseOutcome = ParseSuccess | ParseFailure


def strip_fences(content: str) -> str:
    """Remove markdown code fences and stray fence lines around JSON output."""
    content = content.strip()
    if content.startswith("```"):
        first_newline = content.find("\n")
        content = content[first_newline + 1 :] if first_newline != -1 else content[3:]
    content = content.rstrip()
    if content.endswith("```"):
        content = content[:-3].rstrip()
    return content.strip()


def _first_key(data: dict, keys: tuple[str, ...]) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    return None


def _has_required_keys(data: Any) -> bool:
    if not isinstance(data, dict):
        return False
    return any(k in data for k in MARKUP_KEYS) and any(k in data for k in STYLES_KEYS)


def _success_from_dict(data: dict, strategy: ParseStrategy) -> ParseSuccess:
    artifact = Artifact(
        markup=_first_key(data, MARKUP_KEYS),
        styles=_first_key(data, STYLES_KEYS),
        script=_first_key(data, SCRIPT_KEYS),
    )
    analysis = data.get("analysis") if isinstance(data.get("analysis"), dict) else None
    changes = data.get("changes") if isinstance(data.get("changes"), str) else None
    return ParseSuccess(artifact=artifact, strategy=strategy, analysis=analysis, changes=changes)


def _decode_object(text: str) -> dict | None:
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, ValueError):
        return None
    return data if _has_required_keys(data) else None


def _matching_brace(text: str, start: int) -> int | None:
    """Index of the brace closing the object opened at text[start], string-aware."""
    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return i
    return None


def _mentions_required_fields(candidate: str) -> bool:
    return any(f'"{k}"' in candidate for k in MARKUP_KEYS) and any(
        f'"{k}"' in candidate for k in STYLES_KEYS
    )


def _try_direct(text: str) -> ParseSuccess | None:
    data = _decode_object(text)
    if data is None:
        return None
    return _success_from_dict(data, ParseStrategy.DIRECT)


def _try_balanced_object(text: str) -> ParseSuccess | None:
    candidates: list[str] = []
    for match in _OBJECT_START.finditer(text):
        if len(candidates) >= MAX_OBJECT_CANDIDATES:
            break
        start = match.start()
        end = _matching_brace(text, start)
        if end is None:
            continue
        candidate = text[start : end + 1]
        if _mentions_required_fields(candidate):
            candidates.append(candidate)

    # Outermost object first; nested objects (e.g. "analysis") come later
    for candidate in sorted(candidates, key=len, reverse=True):
        data = _decode_object(candidate)
        if data is not None:
            return _success_from_dict(data, ParseStrategy.BALANCED_OBJECT)
    return None


def _decode_string_body(body: str) -> str | None:
    try:
        return json.loads(f'"{body}"')
    except (json.JSONDecodeError, ValueError):
        return None


def _try_field_scan(text: str) -> ParseSuccess | None:
    markup_match = _MARKUP_FIELD.search(text)
    styles_match = _STYLES_FIELD.search(text)
    if markup_match is None or styles_match is None:
        return None

    script_match = _SCRIPT_FIELD.search(text)
    if script_match is None and _SCRIPT_KEY.search(text):
        # Script key present but its string never terminated: truncated reply
        return None
    last_end = max(m.end() for m in (markup_match, styles_match, script_match) if m is not None)
    # The enclosing object must close after the last field, outside any string
    if not _OBJECT_CLOSE.match(text, last_end):
        return None

    markup = _decode_string_body(markup_match.group(1))
    styles = _decode_string_body(styles_match.group(1))
    script = _decode_string_body(script_match.group(1)) if script_match else ""
    if markup is None or styles is None or script is None:
        return None

    return ParseSuccess(
        artifact=Artifact(markup=markup, styles=styles, script=script),
        strategy=ParseStrategy.FIELD_SCAN,
    )


_STRATEGIES = (
    (ParseStrategy.DIRECT, _try_direct),
    (ParseStrategy.BALANCED_OBJECT, _try_balanced_object),
    (ParseStrategy.FIELD_SCAN, _try_field_scan),
)


def parse(raw_text: str | None) -> ParseOutcome:
    """Run the fallback chain over raw model output."""
    raw_text = raw_text or ""
    stripped = strip_fences(raw_text)

    attempts: list[str] = []
    for strategy, attempt in _STRATEGIES:
        attempts.append(strategy.value)
        try:
            result = attempt(stripped)
        except RecursionError:
            result = None
        if result is not None:
            if strategy is not ParseStrategy.DIRECT:
                logger.info("artifact_parse_recovered", strategy=strategy.value, raw_length=len(raw_text))
            return result

    logger.warning(
        "artifact_parse_failed",
        raw_length=len(raw_text),
        raw_excerpt=raw_text[:LOG_EXCERPT_CHARS],
    )
    return ParseFailure(
        message="Invalid AI response format. The AI may have returned malformed JSON.",
        raw_excerpt=raw_text[:RAW_EXCERPT_CHARS],
        attempts=tuple(attempts),
    )


def parse_or_raise(raw_text: str | None) -> ParseSuccess:
    """Like parse() but raises ParseError on failure."""
    outcome = parse(raw_text)
    if isinstance(outcome, ParseFailure):
        raise outcome.to_error()
    return outcome
