"""Repository layer for data access."""

from .base import BaseRepository
from .question_tag import QuestionTagRepository
from .tag import PATH_SEPARATOR, TagRepository, child_path

__all__ = [
    "BaseRepository",
    "TagRepository",
    "QuestionTagRepository",
    "PATH_SEPARATOR",
    "child_path",
]
