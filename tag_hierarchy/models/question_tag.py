"""Question to hierarchical tag association model."""

import enum
from datetime import datetime

from sqlalchemy import DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, utc_now


class AssociationStatus(enum.IntEnum):
    """Association status. ACTIVE -> REMOVED is the only transition."""

    REMOVED = 0
    ACTIVE = 1


class QuestionHierarchicalTagRel(Base):
    """
    Связь вопроса с иерархическим тегом.

    hierarchical_tag_path - копия HierarchicalTag.path на момент привязки,
    дальше не синхронизируется (даже если тег переименуют).
    """

    __tablename__ = "question_hierarchical_tag_rel"
    __table_args__ = (
        Index("ix_question_hierarchical_tag_rel_question_tag", "question_id", "hierarchical_tag_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False)
    question_id: Mapped[str] = mapped_column(String(64), nullable=False)
    hierarchical_tag_id: Mapped[str] = mapped_column(String(20), nullable=False)
    hierarchical_tag_path: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[int] = mapped_column(Integer, default=AssociationStatus.ACTIVE, nullable=False)

    def __repr__(self) -> str:
        return (
            f"<QuestionHierarchicalTagRel(question_id={self.question_id}, "
            f"tag_id={self.hierarchical_tag_id}, status={self.status})>"
        )
