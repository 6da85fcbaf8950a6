"""Pydantic schemas for generated artifacts and style configuration.

An artifact is the three-field generation result:
- markup: body content only (no DOCTYPE/html/head/body wrapper)
- styles: complete stylesheet
- script: optional JavaScript (usually empty)
"""

import re
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

DEFAULT_BACKGROUND_COLOR = "#ffffff"
DEFAULT_ACCENT_COLOR = "#3b82f6"

_HEX_COLOR = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")

EMPTY_PREVIEW_DOCUMENT = (
    '<html><body style="margin:0;padding:2rem;font-family:system-ui;color:#999;text-align:center;">'
    "Draw something and click Generate to see preview</body></html>"
)


class Artifact(BaseModel):
    """Generated website: markup + styles + script. Fields are never None."""

    model_config = ConfigDict(frozen=True)

    markup: str = ""
    styles: str = ""
    script: str = ""

    @field_validator("markup", "styles", "script", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> str:
        if value is None:
            return ""
        if not isinstance(value, str):
            return str(value)
        return value

    @classmethod
    def from_stored(cls, data: dict | None) -> "Artifact":
        """Build from a JSON column value (tolerates None and missing keys)."""
        if not data:
            return cls()
        return cls(
            markup=data.get("markup"),
            styles=data.get("styles"),
            script=data.get("script"),
        )

    def is_empty(self) -> bool:
        return not (self.markup or self.styles or self.script)

    def to_stored(self) -> dict[str, str]:
        return {"markup": self.markup, "styles": self.styles, "script": self.script}

    def to_document(self) -> str:
        """Assemble a standalone HTML document for the preview surface."""
        if self.is_empty():
            return EMPTY_PREVIEW_DOCUMENT
        return (
            "<!DOCTYPE html>\n"
            "<html>\n"
            "<head>\n"
            '<meta charset="utf-8">\n'
            '<meta name="viewport" content="width=device-width, initial-scale=1">\n'
            f"<style>\n{self.styles}\n</style>\n"
            "</head>\n"
            "<body>\n"
            f"{self.markup}\n"
            f"<script>\n{self.script}\n</script>\n"
            "</body>\n"
            "</html>\n"
        )


class StylePreset(StrEnum):
    """Closed set of recognised style presets."""

    MODERN = "modern"
    MINIMALIST = "minimalist"
    RETRO = "retro"
    PLAYFUL = "playful"
    PROFESSIONAL = "professional"
    BRUTALIST = "brutalist"
    GLASSMORPHISM = "glassmorphism"
    DYNAMIC = "dynamic"


DEFAULT_PRESET = StylePreset.MODERN

# Older clients send these names
PRESET_ALIASES: dict[str, StylePreset] = {
    "minimalistic": StylePreset.MINIMALIST,
    "minimal": StylePreset.MINIMALIST,
}


def resolve_preset(value: str | None) -> StylePreset:
    """Map a client-supplied preset name onto the closed set (unknown -> default)."""
    if not value:
        return DEFAULT_PRESET
    key = str(value).strip().lower()
    if key in PRESET_ALIASES:
        return PRESET_ALIASES[key]
    try:
        return StylePreset(key)
    except ValueError:
        return DEFAULT_PRESET


class StyleConfig(BaseModel):
    """User-selected look for the generated site.

    Unknown presets and malformed colors fall back to defaults instead of failing.
    """

    model_config = ConfigDict(frozen=True)

    preset: StylePreset = DEFAULT_PRESET
    background_color: str = DEFAULT_BACKGROUND_COLOR
    accent_color: str = DEFAULT_ACCENT_COLOR

    @field_validator("preset", mode="before")
    @classmethod
    def _resolve_preset(cls, value: Any) -> StylePreset:
        return resolve_preset(value)

    @field_validator("background_color", mode="before")
    @classmethod
    def _background(cls, value: Any) -> str:
        return _color_or_default(value, DEFAULT_BACKGROUND_COLOR)

    @field_validator("accent_color", mode="before")
    @classmethod
    def _accent(cls, value: Any) -> str:
        return _color_or_default(value, DEFAULT_ACCENT_COLOR)


def _color_or_default(value: Any, default: str) -> str:
    if isinstance(value, str) and _HEX_COLOR.match(value.strip()):
        return value.strip().lower()
    return default

