"""Response and request schemas for projects and versions."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from sketchsite.schemas.artifacts import Artifact, StyleConfig


class ProjectSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    created_at: datetime
    updated_at: datetime


class ProjectDetail(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    owner_id: str
    name: str
    canvas_snapshot: dict[str, Any] | None = None
    live_artifact: Artifact = Field(default_factory=Artifact)
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_model(cls, project) -> "ProjectDetail":
        return cls(
            id=project.id,
            owner_id=project.owner_id,
            name=project.name,
            canvas_snapshot=project.canvas_snapshot,
            live_artifact=Artifact.from_stored(project.live_artifact),
            created_at=project.created_at,
            updated_at=project.updated_at,
        )


class ProjectCreate(BaseModel):
    name: str | None = Field(None, max_length=255)


class ProjectUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    canvas_snapshot: dict[str, Any] | None = None
    live_artifact: Artifact | None = None


class VersionSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: UUID
    version_number: int
    created_at: datetime


class VersionDetail(BaseModel):
    id: UUID
    project_id: UUID
    version_number: int
    canvas_snapshot: dict[str, Any] | None = None
    generated_artifact: Artifact
    created_at: datetime

    @classmethod
    def from_model(cls, version) -> "VersionDetail":
        return cls(
            id=version.id,
            project_id=version.project_id,
            version_number=version.version_number,
            canvas_snapshot=version.canvas_snapshot,
            generated_artifact=Artifact.from_stored(version.generated_artifact),
            created_at=version.created_at,
        )


class VersionCreate(BaseModel):
    canvas_snapshot: dict[str, Any] | None = None
    generated_artifact: Artifact


class GenerateBody(BaseModel):
    canvas_snapshot: dict[str, Any] | None = None
    style: StyleConfig = Field(default_factory=StyleConfig)
    regenerate: bool = False


class EditBody(BaseModel):
    message: str = Field(..., min_length=1, pattern=r"\S")
    style: StyleConfig = Field(default_factory=StyleConfig)


class GenerationResponse(BaseModel):
    project: ProjectDetail
    version: VersionSummary
    analysis: dict[str, Any] | None = None
    changes: str | None = None
