"""Project model: the live, mutable unit of work."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String, Uuid

from sketchsite.db.base import Base, JSONDocument

UNTITLED_NAME = "Untitled document"


def empty_artifact() -> dict:
    return {"markup": "", "styles": "", "script": ""}


class Project(Base):
    __tablename__ = "projects"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    owner_id = Column(String(255), nullable=False, index=True)

    name = Column(String(255), nullable=False, default=UNTITLED_NAME)

    # Editor document; None until the first auto-save
    canvas_snapshot = Column(JSONDocument, nullable=True)
    # {markup, styles, script}; all empty until the first generation
    live_artifact = Column(JSONDocument, nullable=False, default=empty_artifact)

    # High-water mark of assigned version numbers, never decreases
    last_version_number = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        index=True,
    )
