"""Hierarchical tag model (materialized path)."""

import enum

from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin


class TagStatus(enum.IntEnum):
    """Hierarchical tag status."""

    AVAILABLE = 1
    DELETED = 10


class HierarchicalTag(Base, TimestampMixin):
    """
    Узел дерева тегов.

    Три избыточных представления положения в дереве:
    - parent_id: ссылка на родителя (NULL, "" или "0" - корень)
    - level: глубина (количество предков), корень = 0
    - path: "#" + display_name всех узлов от корня до текущего включительно,
      например "#Customer#Backend#Java"

    level и path вычисляются один раз при создании (TagRepository.create).
    """

    __tablename__ = "hierarchical_tag"

    id: Mapped[str] = mapped_column(String(20), primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    slug_name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    parent_id: Mapped[str | None] = mapped_column(String(20), index=True, nullable=True)
    level: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    path: Mapped[str] = mapped_column(Text, nullable=False)
    display_name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[int] = mapped_column(Integer, default=TagStatus.AVAILABLE, nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    @property
    def is_root(self) -> bool:
        return is_root_reference(self.parent_id)

    def __repr__(self) -> str:
        return f"<HierarchicalTag(id={self.id}, path='{self.path}', level={self.level})>"


def is_root_reference(parent_id: str | None) -> bool:
    """NULL, пустая строка и "0" в parent_id означают корень."""
    return parent_id is None or parent_id in ("", "0")
