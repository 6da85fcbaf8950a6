"""GenerationService: build -> generate -> parse -> record.

Used directly by the HTTP routes and by Workspace, which splits the call
(produce) from the persistence step (record) so it can discard stale results
in between.
"""

from dataclasses import dataclass
from typing import Any
from uuid import UUID

import structlog

from sketchsite.db.models.project import Project
from sketchsite.db.models.version import Version
from sketchsite.generation.client import GenerationClient
from sketchsite.generation.parser import ParseSuccess, parse_or_raise
from sketchsite.generation.request_builder import GenerationRequestBuilder
from sketchsite.schemas.artifacts import Artifact, StyleConfig
from sketchsite.schemas.generation import GenerationRequest
from sketchsite.services.project_service import ProjectService
from sketchsite.services.version_store import VersionStore

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class GenerationOutcome:
    project: Project
    version: Version
    parsed: ParseSuccess

    @property
    def artifact(self) -> Artifact:
        return self.parsed.artifact


class GenerationService:
    """Orchestrates one generation for a stored project.

    Constructor uses dependency injection so tests can supply BackendFake via
    the client and a SQLite session factory via the stores.
    """

    def __init__(
        self,
        builder: GenerationRequestBuilder,
        client: GenerationClient,
        projects: ProjectService,
        versions: VersionStore,
    ) -> None:
        self.builder = builder
        self.client = client
        self.projects = projects
        self.versions = versions

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def generate(
        self,
        project_id: UUID,
        style: StyleConfig | None = None,
        canvas_snapshot: dict[str, Any] | None = None,
        regenerate: bool = False,
        owner_id: str | None = None,
    ) -> GenerationOutcome:
        """Generate from the canvas and record the result.

        When canvas_snapshot is given it is saved as the project's snapshot
        first; otherwise the stored snapshot is used.

        Raises:
            NotFoundError, EmptyCanvasError, GenerationInProgressError,
            GenerationError, ParseError, PersistenceFailure
        """
        project = await self.projects.get(project_id, owner_id=owner_id)
        if canvas_snapshot is not None:
            project = await self.projects.save_snapshot(project_id, canvas_snapshot)

        previous = Artifact.from_stored(project.live_artifact) if regenerate else None
        request = self.builder.build(project.canvas_snapshot, style, previous)

        parsed = await self.produce(request, project_id)
        return await self.record(project_id, project.canvas_snapshot, parsed)

    async def edit(
        self,
        project_id: UUID,
        message: str,
        style: StyleConfig | None = None,
        owner_id: str | None = None,
    ) -> GenerationOutcome:
        """Apply a natural-language change to the live artifact and record it."""
        project = await self.projects.get(project_id, owner_id=owner_id)
        request = self.builder.build_edit(Artifact.from_stored(project.live_artifact), message, style)

        parsed = await self.produce(request, project_id)
        return await self.record(project_id, project.canvas_snapshot, parsed)

    async def produce(self, request: GenerationRequest, project_id: UUID) -> ParseSuccess:
        """Call the backend and parse its reply. No persistence."""
        log = logger.bind(project_id=str(project_id), kind=request.kind.value)
        log.info("generation_started", preset=request.metadata.get("preset"))

        raw = await self.client.generate(request, key=str(project_id))
        parsed = parse_or_raise(raw)

        log.info(
            "generation_parsed",
            strategy=parsed.strategy.value,
            markup_chars=len(parsed.artifact.markup),
            styles_chars=len(parsed.artifact.styles),
        )
        return parsed

    async def record(
        self,
        project_id: UUID,
        canvas_snapshot: dict[str, Any] | None,
        parsed: ParseSuccess,
    ) -> GenerationOutcome:
        """Append a version and make the artifact the project's live artifact.

        Raises:
            PersistenceFailure: If either write fails
        """
        version = await self.versions.append(project_id, canvas_snapshot, parsed.artifact)
        project = await self.projects.set_live_artifact(project_id, parsed.artifact)
        logger.info("generation_recorded", project_id=str(project_id), version_number=version.version_number)
        return GenerationOutcome(project=project, version=version, parsed=parsed)
