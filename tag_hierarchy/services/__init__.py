"""Service layer with business logic."""

from .assembler import PathResult, TagAssembler, TreeItem
from .question_tag import QuestionTagService
from .tag import HierarchicalTagService

__all__ = [
    "TreeItem",
    "PathResult",
    "TagAssembler",
    "HierarchicalTagService",
    "QuestionTagService",
]
