"""Re-export all models so Base.metadata sees them."""

from sketchsite.db.models.project import Project
from sketchsite.db.models.version import Version

__all__ = [
    "Project",
    "Version",
]
