"""Project API routes: live project CRUD and the assembled preview document."""

from uuid import UUID

from fastapi import APIRouter, Depends, Response
from fastapi.responses import HTMLResponse

from sketchsite.api.deps import get_owner_id, get_project_service
from sketchsite.schemas.artifacts import Artifact
from sketchsite.schemas.projects import ProjectCreate, ProjectDetail, ProjectSummary, ProjectUpdate
from sketchsite.services.project_service import ProjectService

router = APIRouter()


@router.get("", response_model=list[ProjectSummary])
async def list_projects(
    owner_id: str = Depends(get_owner_id),
    projects: ProjectService = Depends(get_project_service),
):
    """The caller's projects, most recently updated first."""
    return await projects.list_for_owner(owner_id)


@router.post("", response_model=ProjectDetail, status_code=201)
async def create_project(
    body: ProjectCreate | None = None,
    owner_id: str = Depends(get_owner_id),
    projects: ProjectService = Depends(get_project_service),
):
    """Create an empty project. Without a name it gets the next untitled placeholder."""
    project = await projects.create(owner_id, name=body.name if body else None)
    return ProjectDetail.from_model(project)


@router.get("/{project_id}", response_model=ProjectDetail)
async def get_project(
    project_id: UUID,
    owner_id: str = Depends(get_owner_id),
    projects: ProjectService = Depends(get_project_service),
):
    project = await projects.get(project_id, owner_id=owner_id)
    return ProjectDetail.from_model(project)


@router.put("/{project_id}", response_model=ProjectDetail)
async def update_project(
    project_id: UUID,
    body: ProjectUpdate,
    owner_id: str = Depends(get_owner_id),
    projects: ProjectService = Depends(get_project_service),
):
    """Rename, save the canvas snapshot (auto-save target) or replace the live artifact.

    Only fields present in the body are written.
    """
    changes = {field: getattr(body, field) for field in body.model_fields_set}
    project = await projects.update(project_id, owner_id=owner_id, **changes)
    return ProjectDetail.from_model(project)


@router.delete("/{project_id}", status_code=204)
async def delete_project(
    project_id: UUID,
    owner_id: str = Depends(get_owner_id),
    projects: ProjectService = Depends(get_project_service),
):
    await projects.delete(project_id, owner_id=owner_id)
    return Response(status_code=204)


@router.get("/{project_id}/document", response_class=HTMLResponse)
async def get_document(
    project_id: UUID,
    owner_id: str = Depends(get_owner_id),
    projects: ProjectService = Depends(get_project_service),
):
    """Self-contained HTML document for the live artifact."""
    project = await projects.get(project_id, owner_id=owner_id)
    return HTMLResponse(Artifact.from_stored(project.live_artifact).to_document())
