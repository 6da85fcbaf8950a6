"""ProjectService: create, read and mutate live project documents."""

import copy
import re
from collections.abc import Iterable
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from sketchsite.core.config import get_settings
from sketchsite.core.exceptions import NotFoundError, PersistenceFailure
from sketchsite.db.models.project import UNTITLED_NAME, Project, empty_artifact
from sketchsite.db.models.version import Version
from sketchsite.schemas.artifacts import Artifact

logger = structlog.get_logger(__name__)

_UNTITLED_PATTERN = re.compile(r"^" + re.escape(UNTITLED_NAME) + r"(?: \((\d+)\))?$")

# Sentinel for "field not supplied" in update()
_UNSET: Any = object()


def next_untitled_name(existing_names: Iterable[str]) -> str:
    """Pick the placeholder name after the highest one in use.

    The bare placeholder counts as number 1, so ["Untitled document"] yields
    "Untitled document (2)". Names that are not placeholders are ignored.
    """
    numbers = []
    for name in existing_names:
        match = _UNTITLED_PATTERN.match(name)
        if match:
            numbers.append(int(match.group(1)) if match.group(1) else 1)
    if not numbers:
        return UNTITLED_NAME
    return f"{UNTITLED_NAME} ({max(numbers) + 1})"


class ProjectService:
    """Live project CRUD.

    Args:
        session_factory: SQLAlchemy async session factory for database access
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def create(self, owner_id: str, name: str | None = None) -> Project:
        """Create an empty project; unnamed projects get the next placeholder name."""
        try:
            async with self.session_factory() as session:
                if not name:
                    result = await session.execute(
                        select(Project.name).where(
                            Project.owner_id == owner_id,
                            Project.name.like(f"{UNTITLED_NAME}%"),
                        )
                    )
                    name = next_untitled_name(result.scalars().all())

                project = Project(
                    owner_id=owner_id,
                    name=name,
                    canvas_snapshot=None,
                    live_artifact=empty_artifact(),
                    last_version_number=0,
                )
                session.add(project)
                await session.commit()
                await session.refresh(project)
        except SQLAlchemyError as e:
            logger.error("project_create_failed", owner_id=owner_id, error=str(e))
            raise PersistenceFailure("Failed to create project") from e

        logger.info("project_created", project_id=str(project.id), owner_id=owner_id, name=project.name)
        return project

    async def get(self, project_id: UUID, owner_id: str | None = None) -> Project:
        """Fetch a project, optionally requiring ownership (404 pattern).

        Raises:
            NotFoundError: If missing or owned by someone else
        """
        async with self.session_factory() as session:
            project = await session.get(Project, project_id)
            if project is None or (owner_id is not None and project.owner_id != owner_id):
                raise NotFoundError("Project", project_id)
            return project

    async def list_for_owner(self, owner_id: str, limit: int | None = None) -> list[Project]:
        """Owner's projects, most recently updated first."""
        limit = limit or get_settings().project_list_limit
        async with self.session_factory() as session:
            result = await session.execute(
                select(Project)
                .where(Project.owner_id == owner_id)
                .order_by(Project.updated_at.desc())
                .limit(limit)
            )
            return list(result.scalars().all())

    async def update(
        self,
        project_id: UUID,
        *,
        name: str | None = _UNSET,
        canvas_snapshot: dict[str, Any] | None = _UNSET,
        live_artifact: Artifact | None = _UNSET,
        owner_id: str | None = None,
    ) -> Project:
        """Apply the supplied fields; omitted fields are left untouched.

        Raises:
            NotFoundError: If the project is missing (or not owned by owner_id)
            PersistenceFailure: If the write fails
        """
        try:
            async with self.session_factory() as session:
                result = await session.execute(select(Project).where(Project.id == project_id))
                project = result.scalar_one_or_none()
                if project is None or (owner_id is not None and project.owner_id != owner_id):
                    raise NotFoundError("Project", project_id)

                if name is not _UNSET and name is not None:
                    project.name = name
                if canvas_snapshot is not _UNSET:
                    project.canvas_snapshot = copy.deepcopy(canvas_snapshot)
                if live_artifact is not _UNSET:
                    project.live_artifact = (live_artifact or Artifact()).to_stored()

                await session.commit()
                await session.refresh(project)
                return project
        except SQLAlchemyError as e:
            logger.error("project_update_failed", project_id=str(project_id), error=str(e))
            raise PersistenceFailure(f"Failed to update project {project_id}") from e

    async def rename(self, project_id: UUID, name: str) -> Project:
        return await self.update(project_id, name=name)

    async def save_snapshot(self, project_id: UUID, snapshot: dict[str, Any] | None) -> Project:
        """Persist the editor snapshot (auto-save target)."""
        return await self.update(project_id, canvas_snapshot=snapshot)

    async def set_live_artifact(self, project_id: UUID, artifact: Artifact) -> Project:
        return await self.update(project_id, live_artifact=artifact)

    async def delete(self, project_id: UUID, owner_id: str | None = None) -> None:
        """Delete a project together with its versions.

        Raises:
            NotFoundError: If missing (or not owned by owner_id)
        """
        try:
            async with self.session_factory() as session:
                project = await session.get(Project, project_id)
                if project is None or (owner_id is not None and project.owner_id != owner_id):
                    raise NotFoundError("Project", project_id)

                await session.execute(delete(Version).where(Version.project_id == project_id))
                await session.delete(project)
                await session.commit()
        except SQLAlchemyError as e:
            logger.error("project_delete_failed", project_id=str(project_id), error=str(e))
            raise PersistenceFailure(f"Failed to delete project {project_id}") from e

        logger.info("project_deleted", project_id=str(project_id))
