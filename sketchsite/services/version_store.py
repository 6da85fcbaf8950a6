"""VersionStore: append-only per-project artifact history.

Follows the service pattern used across sketchsite.services:
- Constructor dependency injection (session_factory)
- NotFoundError for missing project/version
- SQLAlchemy failures surfaced as PersistenceFailure

Version numbers are max(existing, project high-water mark) + 1, assigned
under a per-project asyncio.Lock and backed by a unique constraint, so a
number is never handed out twice even after the newest version is deleted.
"""

import asyncio
import copy
from collections import defaultdict
from collections.abc import AsyncIterator
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from sketchsite.core.config import get_settings
from sketchsite.core.exceptions import NotFoundError, PersistenceFailure
from sketchsite.db.models.project import Project
from sketchsite.db.models.version import Version
from sketchsite.schemas.artifacts import Artifact
from sketchsite.schemas.projects import VersionSummary

logger = structlog.get_logger(__name__)

PAGE_SIZE = 20


class VersionHistory:
    """Lazy, restartable listing of a project's versions, newest first.

    Each iteration starts a fresh keyset-paginated walk, so iterating twice
    reflects versions appended in between. At most `limit` items are yielded.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        project_id: UUID,
        limit: int,
        page_size: int = PAGE_SIZE,
    ):
        self.session_factory = session_factory
        self.project_id = project_id
        self.limit = limit
        self.page_size = page_size

    def __aiter__(self) -> AsyncIterator[VersionSummary]:
        return self._walk()

    async def _walk(self) -> AsyncIterator[VersionSummary]:
        remaining = self.limit
        below: int | None = None
        while remaining > 0:
            page = await self._fetch_page(below, min(self.page_size, remaining))
            if not page:
                return
            for summary in page:
                yield summary
            remaining -= len(page)
            below = page[-1].version_number

    async def _fetch_page(self, below: int | None, size: int) -> list[VersionSummary]:
        query = select(Version.id, Version.version_number, Version.created_at).where(
            Version.project_id == self.project_id
        )
        if below is not None:
            query = query.where(Version.version_number < below)
        query = query.order_by(Version.version_number.desc()).limit(size)

        async with self.session_factory() as session:
            result = await session.execute(query)
            return [
                VersionSummary(id=row.id, version_number=row.version_number, created_at=row.created_at)
                for row in result.all()
            ]

    async def to_list(self) -> list[VersionSummary]:
        return [summary async for summary in self]


class VersionStore:
    """Append, list, fetch and restore project versions."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        """Initialize with session factory.

        Args:
            session_factory: SQLAlchemy async session factory for database access
        """
        self.session_factory = session_factory
        self._append_locks: defaultdict[UUID, asyncio.Lock] = defaultdict(asyncio.Lock)

    async def append(
        self,
        project_id: UUID,
        snapshot: dict[str, Any] | None,
        artifact: Artifact,
    ) -> Version:
        """Record a new immutable version.

        Args:
            project_id: Project UUID
            snapshot: Canvas snapshot at generation time (copied)
            artifact: Generated artifact

        Returns:
            The persisted Version

        Raises:
            NotFoundError: If the project does not exist
            PersistenceFailure: If the write fails
        """
        async with self._append_locks[project_id]:
            try:
                async with self.session_factory() as session:
                    result = await session.execute(
                        select(Project).where(Project.id == project_id).with_for_update()
                    )
                    project = result.scalar_one_or_none()
                    if project is None:
                        raise NotFoundError("Project", project_id)

                    result = await session.execute(
                        select(func.max(Version.version_number)).where(Version.project_id == project_id)
                    )
                    current_max = max(result.scalar() or 0, project.last_version_number or 0)

                    version = Version(
                        project_id=project_id,
                        version_number=current_max + 1,
                        canvas_snapshot=copy.deepcopy(snapshot),
                        generated_artifact=artifact.to_stored(),
                    )
                    session.add(version)
                    project.last_version_number = version.version_number

                    await session.commit()
                    await session.refresh(version)
            except SQLAlchemyError as e:
                logger.error(
                    "version_append_failed",
                    project_id=str(project_id),
                    error=str(e),
                    error_type=type(e).__name__,
                )
                raise PersistenceFailure(f"Failed to record version for project {project_id}") from e

        logger.info("version_appended", project_id=str(project_id), version_number=version.version_number)
        return version

    def list(self, project_id: UUID, limit: int | None = None) -> VersionHistory:
        """Versions of a project, newest first, capped by limit."""
        settings = get_settings()
        if limit is None:
            limit = settings.version_list_limit
        limit = max(0, min(limit, settings.version_list_max_limit))
        return VersionHistory(self.session_factory, project_id, limit)

    async def get(self, version_id: UUID) -> Version:
        """Fetch a version by id.

        Raises:
            NotFoundError: If no such version exists
        """
        async with self.session_factory() as session:
            version = await session.get(Version, version_id)
            if version is None:
                raise NotFoundError("Version", version_id)
            return version

    async def get_for_project(self, project_id: UUID, version_id: UUID) -> Version:
        """Fetch a version, requiring it to belong to project_id."""
        version = await self.get(version_id)
        if version.project_id != project_id:
            raise NotFoundError("Version", version_id)
        return version

    async def restore(self, project_id: UUID, version_id: UUID) -> Project:
        """Copy a version's snapshot and artifact into the project's live fields.

        Overwrites live state and does not create a new version.

        Raises:
            NotFoundError: If the project or version is missing, or the version
                belongs to a different project
            PersistenceFailure: If the write fails
        """
        try:
            async with self.session_factory() as session:
                version = await session.get(Version, version_id)
                if version is None or version.project_id != project_id:
                    raise NotFoundError("Version", version_id)

                result = await session.execute(
                    select(Project).where(Project.id == project_id).with_for_update()
                )
                project = result.scalar_one_or_none()
                if project is None:
                    raise NotFoundError("Project", project_id)

                project.canvas_snapshot = copy.deepcopy(version.canvas_snapshot)
                project.live_artifact = Artifact.from_stored(version.generated_artifact).to_stored()

                await session.commit()
                await session.refresh(project)
        except SQLAlchemyError as e:
            logger.error("version_restore_failed", project_id=str(project_id), version_id=str(version_id), error=str(e))
            raise PersistenceFailure(f"Failed to restore version {version_id}") from e

        logger.info("version_restored", project_id=str(project_id), version_number=version.version_number)
        return project
