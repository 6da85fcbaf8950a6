"""Workspace: live editing state vs. read-only version preview.

One Workspace per open project. It owns what the preview surface shows and
governs the LIVE <-> PREVIEWING transitions:

    LIVE        --preview(v)-->   PREVIEWING(v)   live state parked in the cache
    PREVIEWING  --preview(w)-->   PREVIEWING(w)   cache kept as is
    PREVIEWING  --exit_to_live--> LIVE            cache shown again, nothing persisted
    PREVIEWING  --restore-->      LIVE            version copied into live, cache dropped

The cache is filled synchronously, before the display swap, and only when
empty, so browsing history can never replace unsaved live work.

Async results are tagged with sequence tokens: a preview fetch or generation
that has been superseded by a later one is discarded instead of applied.
"""

import copy
from dataclasses import dataclass, replace
from enum import StrEnum
from typing import Any
from uuid import UUID

import structlog

from sketchsite.core.exceptions import (
    GenerationInProgressError,
    PersistenceFailure,
    WorkspaceStateError,
)
from sketchsite.generation.parser import ParseSuccess
from sketchsite.schemas.artifacts import Artifact, StyleConfig
from sketchsite.schemas.generation import GenerationRequest
from sketchsite.schemas.projects import VersionSummary
from sketchsite.services.autosave import AutosaveScheduler
from sketchsite.services.generation_service import GenerationService

logger = structlog.get_logger(__name__)


class ViewState(StrEnum):
    LIVE = "live"
    PREVIEWING = "previewing"


class ViewEvent(StrEnum):
    PREVIEW = "preview"
    EXIT_TO_LIVE = "exit_to_live"
    RESTORE = "restore"
    EDIT = "edit"
    GENERATE = "generate"


# Events accepted in each state
TRANSITIONS: dict[ViewState, set[ViewEvent]] = {
    ViewState.LIVE: {ViewEvent.PREVIEW, ViewEvent.EXIT_TO_LIVE, ViewEvent.EDIT, ViewEvent.GENERATE},
    ViewState.PREVIEWING: {ViewEvent.PREVIEW, ViewEvent.EXIT_TO_LIVE, ViewEvent.RESTORE},
}


@dataclass(frozen=True)
class Snapshot:
    """What the preview surface shows: an artifact and the canvas it came from."""

    artifact: Artifact
    canvas_snapshot: dict[str, Any] | None

    @classmethod
    def of(cls, artifact_data: dict | None, canvas_snapshot: dict[str, Any] | None) -> "Snapshot":
        return cls(artifact=Artifact.from_stored(artifact_data), canvas_snapshot=copy.deepcopy(canvas_snapshot))


@dataclass(frozen=True)
class WorkspaceGeneration:
    artifact: Artifact
    version: VersionSummary
    analysis: dict[str, Any] | None = None
    changes: str | None = None


class Workspace:
    """Reconciles the live project with historical version previews.

    Args:
        project_id: Project this workspace edits
        generation: GenerationService (owns builder, client, project and version stores)
        autosave: AutosaveScheduler receiving live edits
    """

    def __init__(self, project_id: UUID, generation: GenerationService, autosave: AutosaveScheduler):
        self.project_id = project_id
        self.generation = generation
        self.projects = generation.projects
        self.versions = generation.versions
        self.autosave = autosave

        self.state = ViewState.LIVE
        self.previewing: VersionSummary | None = None
        self.generating = False
        self.loaded = False

        self._display = Snapshot(artifact=Artifact(), canvas_snapshot=None)
        self._live_cache: Snapshot | None = None
        self._view_token = 0
        self._generation_token = 0

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    @property
    def display(self) -> Snapshot:
        return self._display

    @property
    def live(self) -> Snapshot:
        """The live working state, whether or not it is currently on screen."""
        return self._live_cache if self._live_cache is not None else self._display

    @property
    def has_live_cache(self) -> bool:
        return self._live_cache is not None

    def document(self) -> str:
        return self._display.artifact.to_document()

    def _require(self, event: ViewEvent) -> None:
        if event not in TRANSITIONS[self.state]:
            raise WorkspaceStateError(f"Cannot {event.value} while {self.state.value}")

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def load(self) -> None:
        """Load the stored project and enable auto-save for it."""
        project = await self.projects.get(self.project_id)

        self._view_token += 1
        self._generation_token += 1
        self.generating = False
        self.state = ViewState.LIVE
        self.previewing = None
        self._live_cache = None
        self._display = Snapshot.of(project.live_artifact, project.canvas_snapshot)
        self.loaded = True

        self.autosave.mark_loaded(self.project_id, project.canvas_snapshot)
        logger.info("workspace_loaded", project_id=str(self.project_id))

    async def close(self) -> None:
        """Flush pending edits and stop auto-saving this project."""
        await self.autosave.flush(self.project_id)
        self.autosave.forget(self.project_id)

    # ------------------------------------------------------------------
    # Live editing
    # ------------------------------------------------------------------

    def record_edit(self, canvas_snapshot: dict[str, Any] | None) -> None:
        """Editor mutation on the live canvas. Rejected while previewing."""
        self._require(ViewEvent.EDIT)
        self._display = replace(self._display, canvas_snapshot=copy.deepcopy(canvas_snapshot))
        self.autosave.notify(self.project_id, self._display.canvas_snapshot)

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    async def preview(self, version_id: UUID) -> bool:
        """Show a historical version read-only.

        Returns False when the fetch was superseded by a later view change.

        Raises:
            NotFoundError: If the version does not exist (state unchanged)
        """
        self._require(ViewEvent.PREVIEW)
        self._view_token += 1
        token = self._view_token

        version = await self.versions.get_for_project(self.project_id, version_id)

        if token != self._view_token:
            logger.info("preview_discarded_stale", project_id=str(self.project_id), version_id=str(version_id))
            return False

        # No await between here and the end: capture, then swap
        if self._live_cache is None:
            self._live_cache = self._display
        self._display = Snapshot.of(version.generated_artifact, version.canvas_snapshot)
        self.previewing = VersionSummary(
            id=version.id,
            version_number=version.version_number,
            created_at=version.created_at,
        )
        self.state = ViewState.PREVIEWING

        logger.info("preview_entered", project_id=str(self.project_id), version_number=version.version_number)
        return True

    def exit_to_live(self) -> None:
        """Return to the live state exactly as it was before previewing."""
        self._view_token += 1
        if self.state is ViewState.LIVE:
            return

        self._display = self._live_cache if self._live_cache is not None else self._display
        self._live_cache = None
        self.previewing = None
        self.state = ViewState.LIVE
        logger.info("preview_exited", project_id=str(self.project_id))

    async def restore(self):
        """Make the previewed version the live state.

        Pending auto-save writes are flushed first so they cannot land on top of
        the restored snapshot. On failure the workspace stays in PREVIEWING.

        Returns:
            The updated Project

        Raises:
            WorkspaceStateError: If not previewing
            NotFoundError, PersistenceFailure: From the version store
        """
        self._require(ViewEvent.RESTORE)
        target = self.previewing
        self._view_token += 1

        await self.autosave.flush(self.project_id)
        project = await self.versions.restore(self.project_id, target.id)

        restored = Snapshot.of(project.live_artifact, project.canvas_snapshot)
        self._live_cache = None
        self._display = restored
        self.previewing = None
        self.state = ViewState.LIVE
        self.autosave.acknowledge(self.project_id, restored.canvas_snapshot)

        logger.info("version_restored_into_live", project_id=str(self.project_id), version_number=target.version_number)
        return project

    async def save_milestone(self) -> VersionSummary:
        """Record the current live state as a version without generating."""
        self._require(ViewEvent.GENERATE)
        if not self._display.artifact.markup:
            raise WorkspaceStateError("Nothing generated yet")
        version = await self.versions.append(
            self.project_id, self._display.canvas_snapshot, self._display.artifact
        )
        return VersionSummary(id=version.id, version_number=version.version_number, created_at=version.created_at)

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    async def generate(self, style: StyleConfig | None = None, regenerate: bool = False) -> WorkspaceGeneration | None:
        """Generate a site from the live canvas.

        With regenerate=True the current live artifact is sent along and the model
        revises it. Returns None if the result was superseded.

        Raises:
            WorkspaceStateError, GenerationInProgressError, EmptyCanvasError,
            GenerationError, ParseError, PersistenceFailure
        """
        self._require(ViewEvent.GENERATE)
        self._check_idle()
        live = self._display
        previous = live.artifact if regenerate else None
        request = self.generation.builder.build(live.canvas_snapshot, style, previous)
        return await self._run(request, live.canvas_snapshot)

    async def apply_edit(self, message: str, style: StyleConfig | None = None) -> WorkspaceGeneration | None:
        """Ask the model to change the live artifact in natural language."""
        self._require(ViewEvent.GENERATE)
        self._check_idle()
        live = self._display
        request = self.generation.builder.build_edit(live.artifact, message, style)
        return await self._run(request, live.canvas_snapshot)

    def _check_idle(self) -> None:
        if self.generating:
            raise GenerationInProgressError(str(self.project_id))

    async def _run(
        self,
        request: GenerationRequest,
        canvas_snapshot: dict[str, Any] | None,
    ) -> WorkspaceGeneration | None:
        self._generation_token += 1
        token = self._generation_token
        self.generating = True
        try:
            parsed = await self.generation.produce(request, self.project_id)
            if token != self._generation_token:
                logger.info("generation_discarded_stale", project_id=str(self.project_id))
                return None

            # Show the result before persisting it; a failed write must not lose it
            self._apply_generated(parsed.artifact)
            try:
                outcome = await self.generation.record(self.project_id, canvas_snapshot, parsed)
            except PersistenceFailure:
                logger.error("generation_not_recorded", project_id=str(self.project_id))
                raise
            return _workspace_generation(parsed, outcome.version)
        finally:
            if token == self._generation_token:
                self.generating = False

    def _apply_generated(self, artifact: Artifact) -> None:
        if self.state is ViewState.PREVIEWING and self._live_cache is not None:
            # Keep showing the version; the new artifact becomes the live baseline
            self._live_cache = replace(self._live_cache, artifact=artifact)
        else:
            self._display = replace(self._display, artifact=artifact)


def _workspace_generation(parsed: ParseSuccess, version) -> WorkspaceGeneration:
    return WorkspaceGeneration(
        artifact=parsed.artifact,
        version=VersionSummary(id=version.id, version_number=version.version_number, created_at=version.created_at),
        analysis=parsed.analysis,
        changes=parsed.changes,
    )
