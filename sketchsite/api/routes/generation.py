"""Generation API routes: sketch-to-site generation and chat-style edits.

Both calls are synchronous: the response arrives once the site has been
generated, parsed and recorded as a new version (or the call failed).
"""

from uuid import UUID

from fastapi import APIRouter, Depends

from sketchsite.api.deps import get_generation_service, get_owner_id
from sketchsite.schemas.projects import EditBody, GenerateBody, GenerationResponse, ProjectDetail, VersionSummary
from sketchsite.services.generation_service import GenerationOutcome, GenerationService

router = APIRouter()


def _response(outcome: GenerationOutcome) -> GenerationResponse:
    return GenerationResponse(
        project=ProjectDetail.from_model(outcome.project),
        version=VersionSummary.model_validate(outcome.version),
        analysis=outcome.parsed.analysis,
        changes=outcome.parsed.changes,
    )


@router.post("/{project_id}/generate", response_model=GenerationResponse)
async def generate_site(
    project_id: UUID,
    body: GenerateBody,
    owner_id: str = Depends(get_owner_id),
    service: GenerationService = Depends(get_generation_service),
):
    """Rasterize the canvas and generate a site from it.

    With regenerate=true the current live artifact is sent along for revision.
    """
    outcome = await service.generate(
        project_id,
        style=body.style,
        canvas_snapshot=body.canvas_snapshot,
        regenerate=body.regenerate,
        owner_id=owner_id,
    )
    return _response(outcome)


@router.post("/{project_id}/edit", response_model=GenerationResponse)
async def edit_site(
    project_id: UUID,
    body: EditBody,
    owner_id: str = Depends(get_owner_id),
    service: GenerationService = Depends(get_generation_service),
):
    """Apply a natural-language change to the live site."""
    outcome = await service.edit(project_id, body.message, style=body.style, owner_id=owner_id)
    return _response(outcome)
