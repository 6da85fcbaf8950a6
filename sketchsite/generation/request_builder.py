"""GenerationRequestBuilder: editor state -> model-ready payload.

Pure and deterministic: the same snapshot, style and previous artifact always
produce the same request. Empty canvases are refused here, before any
network call is made.
"""

from collections.abc import Iterable
from typing import Any

from sketchsite.canvas.exporter import CanvasExporter
from sketchsite.core.exceptions import EmptyCanvasError, NothingToEditError
from sketchsite.generation import prompts
from sketchsite.schemas.artifacts import Artifact, StyleConfig
from sketchsite.schemas.generation import GenerationRequest, RequestKind


class GenerationRequestBuilder:
    """Builds sketch, regenerate and edit requests.

    Args:
        exporter: CanvasExporter used to rasterize snapshots
    """

    def __init__(self, exporter: CanvasExporter):
        self.exporter = exporter

    def build(
        self,
        canvas_snapshot: dict[str, Any] | None,
        style: StyleConfig | None = None,
        previous_artifact: Artifact | None = None,
        selection: Iterable[str] | None = None,
    ) -> GenerationRequest:
        """Build a request from the canvas.

        With a non-empty previous_artifact the request asks the model to revise
        that site (regenerate path); otherwise it asks for a fresh site.

        Raises:
            EmptyCanvasError: If the snapshot rasterizes to nothing
        """
        style = style or StyleConfig()
        image = self.exporter.export_raster(canvas_snapshot, selection)
        if image is None:
            raise EmptyCanvasError()

        design_system = _design_system(style)
        if previous_artifact is not None and not previous_artifact.is_empty():
            instructions = prompts.REGENERATE_PROMPT.format(
                current_markup=previous_artifact.markup,
                current_styles=previous_artifact.styles,
                current_script=previous_artifact.script,
                design_system=design_system,
                output_contract=prompts.OUTPUT_CONTRACT.format(extra_fields=prompts.ANALYSIS_FIELDS),
            )
            kind = RequestKind.REGENERATE
        else:
            instructions = prompts.SKETCH_PROMPT.format(
                design_system=design_system,
                output_contract=prompts.OUTPUT_CONTRACT.format(extra_fields=prompts.ANALYSIS_FIELDS),
            )
            kind = RequestKind.SKETCH

        return GenerationRequest(
            kind=kind,
            instructions=instructions,
            image=image,
            metadata=_metadata(style),
        )

    def build_edit(
        self,
        previous_artifact: Artifact | None,
        message: str,
        style: StyleConfig | None = None,
    ) -> GenerationRequest:
        """Build a text-only change request against the current site.

        Raises:
            NothingToEditError: If nothing has been generated yet
            ValueError: If message is blank
        """
        if previous_artifact is None or not previous_artifact.markup:
            raise NothingToEditError()
        message = (message or "").strip()
        if not message:
            raise ValueError("Edit message is required")

        style = style or StyleConfig()
        instructions = prompts.EDIT_PROMPT.format(
            current_markup=previous_artifact.markup,
            current_styles=previous_artifact.styles,
            current_script=previous_artifact.script,
            design_system=_design_system(style),
            editing_rules=prompts.STYLE_EDITING_RULES[style.preset],
            message=message,
            preset=style.preset.value,
            background_color=style.background_color,
            accent_color=style.accent_color,
            output_contract=prompts.OUTPUT_CONTRACT.format(extra_fields=prompts.CHANGES_FIELDS),
        )
        return GenerationRequest(
            kind=RequestKind.EDIT,
            instructions=instructions,
            image=None,
            metadata=_metadata(style),
        )


def _design_system(style: StyleConfig) -> str:
    return prompts.DESIGN_SYSTEM.format(
        preset=style.preset.value,
        style_rules=prompts.STYLE_RULES[style.preset],
        background_color=style.background_color,
        accent_color=style.accent_color,
    )


def _metadata(style: StyleConfig) -> dict[str, str]:
    return {
        "preset": style.preset.value,
        "background_color": style.background_color,
        "accent_color": style.accent_color,
    }
