"""Version history API routes: list, fetch, milestone save and restore."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query

from sketchsite.api.deps import get_owner_id, get_project_service, get_version_store
from sketchsite.schemas.projects import ProjectDetail, VersionCreate, VersionDetail, VersionSummary
from sketchsite.services.project_service import ProjectService
from sketchsite.services.version_store import VersionStore

router = APIRouter()


@router.get("/{project_id}/versions", response_model=list[VersionSummary])
async def list_versions(
    project_id: UUID,
    limit: int | None = Query(default=None, ge=1),
    owner_id: str = Depends(get_owner_id),
    projects: ProjectService = Depends(get_project_service),
    versions: VersionStore = Depends(get_version_store),
):
    """Newest first. Limit defaults to 50 and is capped server-side."""
    await projects.get(project_id, owner_id=owner_id)
    return await versions.list(project_id, limit=limit).to_list()


@router.post("/{project_id}/versions", response_model=VersionSummary, status_code=201)
async def create_version(
    project_id: UUID,
    body: VersionCreate,
    owner_id: str = Depends(get_owner_id),
    projects: ProjectService = Depends(get_project_service),
    versions: VersionStore = Depends(get_version_store),
):
    """Save an explicit milestone of an already generated artifact."""
    if not body.generated_artifact.markup.strip():
        raise HTTPException(status_code=422, detail="A version needs generated markup")
    await projects.get(project_id, owner_id=owner_id)
    version = await versions.append(project_id, body.canvas_snapshot, body.generated_artifact)
    return VersionSummary.model_validate(version)


@router.get("/{project_id}/versions/{version_id}", response_model=VersionDetail)
async def get_version(
    project_id: UUID,
    version_id: UUID,
    owner_id: str = Depends(get_owner_id),
    projects: ProjectService = Depends(get_project_service),
    versions: VersionStore = Depends(get_version_store),
):
    await projects.get(project_id, owner_id=owner_id)
    version = await versions.get_for_project(project_id, version_id)
    return VersionDetail.from_model(version)


@router.post("/{project_id}/versions/{version_id}/restore", response_model=ProjectDetail)
async def restore_version(
    project_id: UUID,
    version_id: UUID,
    owner_id: str = Depends(get_owner_id),
    projects: ProjectService = Depends(get_project_service),
    versions: VersionStore = Depends(get_version_store),
):
    """Copy the version into the live project. No new version is recorded."""
    await projects.get(project_id, owner_id=owner_id)
    project = await versions.restore(project_id, version_id)
    return ProjectDetail.from_model(project)
