"""Shared test fixtures for all test groups."""

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from sketchsite.canvas import PillowCanvasExporter
from sketchsite.db.base import create_tables, make_engine, make_session_factory
from sketchsite.generation.backend_fake import BackendFake
from sketchsite.generation.client import GenerationClient
from sketchsite.generation.request_builder import GenerationRequestBuilder
from sketchsite.services.generation_service import GenerationService
from sketchsite.services.project_service import ProjectService
from sketchsite.services.version_store import VersionStore

OWNER_ID = "user-test-001"


@pytest.fixture
def sample_snapshot():
    """Canvas with a navbar box, a hero box and an annotation."""
    return {
        "shapes": [
            {"id": "nav", "type": "rect", "x": 0, "y": 0, "w": 400, "h": 40},
            {"id": "hero", "type": "rect", "x": 0, "y": 60, "w": 400, "h": 200},
            {"id": "note", "type": "text", "x": 120, "y": 150, "text": "image of cat", "color": "#ef4444"},
        ]
    }


@pytest.fixture
def backend_fake():
    """Fresh BackendFake with happy_path scenario (default)."""
    return BackendFake(scenario="happy_path")


@pytest.fixture
def builder():
    return GenerationRequestBuilder(PillowCanvasExporter())


@pytest.fixture
def generation_client(backend_fake):
    return GenerationClient(backend_fake, timeout_seconds=5)


@pytest.fixture
async def engine(tmp_path) -> AsyncEngine:
    """File-backed SQLite engine with all tables created.

    Also installs the engine as the global session factory so code that calls
    get_session_factory() (the HTTP layer) uses it.
    """
    import sketchsite.db.base as db_mod

    engine = make_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await create_tables(engine)

    db_mod._engine = engine
    db_mod._session_factory = make_session_factory(engine)

    yield engine

    db_mod._engine = None
    db_mod._session_factory = None
    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    import sketchsite.db.base as db_mod

    return db_mod._session_factory


@pytest.fixture
def projects(session_factory) -> ProjectService:
    return ProjectService(session_factory)


@pytest.fixture
def versions(session_factory) -> VersionStore:
    return VersionStore(session_factory)


@pytest.fixture
def generation_service(builder, generation_client, projects, versions) -> GenerationService:
    return GenerationService(builder=builder, client=generation_client, projects=projects, versions=versions)


@pytest.fixture
async def project(projects, sample_snapshot):
    """A stored project that already has a drawing on its canvas."""
    created = await projects.create(OWNER_ID)
    return await projects.save_snapshot(created.id, sample_snapshot)
