"""API routers for DocGuard."""

from . import documents
from . import comments

__all__ = ["documents", "comments"]
