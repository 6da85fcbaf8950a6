from fastapi import APIRouter

from sketchsite.api.routes import generation, health, projects, versions

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(projects.router, prefix="/projects", tags=["projects"])
api_router.include_router(versions.router, prefix="/projects", tags=["versions"])
api_router.include_router(generation.router, prefix="/projects", tags=["generation"])
