"""Version model: immutable, append-only generated artifact history."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Integer, UniqueConstraint, Uuid

from sketchsite.db.base import Base, JSONDocument


class Version(Base):
    """One historical snapshot+artifact pair of a project.

    Rows are written once by VersionStore.append() and never updated.
    They are removed only together with their project.
    """

    __tablename__ = "versions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    project_id = Column(Uuid, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    version_number = Column(Integer, nullable=False)

    canvas_snapshot = Column(JSONDocument, nullable=True)
    generated_artifact = Column(JSONDocument, nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    # Version numbers never repeat within a project
    __table_args__ = (UniqueConstraint("project_id", "version_number", name="uq_project_version_number"),)
