"""API layer - FastAPI endpoints."""

from .hierarchical_tags import router as hierarchical_tags_router
from .questions import router as questions_router

__all__ = [
    "hierarchical_tags_router",
    "questions_router",
]
