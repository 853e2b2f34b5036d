"""SQLAlchemy models for the hierarchical tag service."""

from .base import Base, TimestampMixin
from .hierarchical_tag import HierarchicalTag, TagStatus, is_root_reference
from .question_tag import AssociationStatus, QuestionHierarchicalTagRel

__all__ = [
    "Base",
    "TimestampMixin",
    "HierarchicalTag",
    "TagStatus",
    "is_root_reference",
    "QuestionHierarchicalTagRel",
    "AssociationStatus",
]
