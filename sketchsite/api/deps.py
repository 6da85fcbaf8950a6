"""FastAPI dependencies: caller identity and service providers.

Authentication happens upstream; the gateway forwards the caller's id in the
X-User-Id header. Services that hold per-process coordination state (version
number locks, the single-flight generation client) are shared across requests.
"""

from functools import lru_cache

from fastapi import Depends, Header, HTTPException

from sketchsite.canvas import PillowCanvasExporter
from sketchsite.db.base import get_session_factory
from sketchsite.generation.backend import AnthropicBackend
from sketchsite.generation.client import GenerationClient
from sketchsite.generation.request_builder import GenerationRequestBuilder
from sketchsite.services.generation_service import GenerationService
from sketchsite.services.project_service import ProjectService
from sketchsite.services.version_store import VersionStore

_version_store: VersionStore | None = None


async def get_owner_id(x_user_id: str | None = Header(default=None, alias="X-User-Id")) -> str:
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    return x_user_id.strip()


def get_project_service() -> ProjectService:
    return ProjectService(get_session_factory())


def get_version_store() -> VersionStore:
    global _version_store

    factory = get_session_factory()
    # Rebuilt when the database is re-initialized (tests swap engines)
    if _version_store is None or _version_store.session_factory is not factory:
        _version_store = VersionStore(factory)
    return _version_store


@lru_cache
def get_generation_client() -> GenerationClient:
    return GenerationClient(AnthropicBackend())


def get_generation_service(
    client: GenerationClient = Depends(get_generation_client),
    projects: ProjectService = Depends(get_project_service),
    versions: VersionStore = Depends(get_version_store),
) -> GenerationService:
    return GenerationService(
        builder=GenerationRequestBuilder(PillowCanvasExporter()),
        client=client,
        projects=projects,
        versions=versions,
    )
