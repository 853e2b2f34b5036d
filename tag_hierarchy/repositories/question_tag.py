"""Repository for question to hierarchical tag associations."""

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import AssociationStatus, QuestionHierarchicalTagRel
from .base import BaseRepository


class QuestionTagRepository(BaseRepository[QuestionHierarchicalTagRel]):
    """
    Репозиторий связей "вопрос ↔ иерархический тег".

    Строки не удаляются физически: ACTIVE → REMOVED, и обратно не возвращаются.
    При повторной привязке создаются новые строки.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(QuestionHierarchicalTagRel, db)

    async def add(self, question_id: str, tag_id: str, tag_path: str) -> QuestionHierarchicalTagRel:
        """
        Создать активную связь со снимком пути тега.

        Args:
            question_id: ID вопроса (внешний ключ, непрозрачная строка)
            tag_id: ID тега
            tag_path: path тега на момент привязки
        """
        rel = QuestionHierarchicalTagRel(
            question_id=question_id,
            hierarchical_tag_id=tag_id,
            hierarchical_tag_path=tag_path,
            status=AssociationStatus.ACTIVE,
        )
        return await self.create(rel)

    async def list_active(self, question_id: str) -> list[QuestionHierarchicalTagRel]:
        """
        Активные связи вопроса в порядке создания.

        SQL эквивалент:
            SELECT * FROM question_hierarchical_tag_rel
            WHERE question_id = {question_id} AND status = 1
            ORDER BY id;
        """
        statement = (
            select(QuestionHierarchicalTagRel)
            .where(
                QuestionHierarchicalTagRel.question_id == question_id,
                QuestionHierarchicalTagRel.status == AssociationStatus.ACTIVE,
            )
            .order_by(QuestionHierarchicalTagRel.id.asc())
        )
        return await self._scalars("list_active", statement)

    async def remove_all(self, question_id: str) -> int:
        """
        Пометить все активные связи вопроса как REMOVED.

        Returns:
            Количество затронутых строк

        SQL эквивалент:
            UPDATE question_hierarchical_tag_rel SET status = 0
            WHERE question_id = {question_id} AND status = 1;
        """
        statement = (
            update(QuestionHierarchicalTagRel)
            .where(
                QuestionHierarchicalTagRel.question_id == question_id,
                QuestionHierarchicalTagRel.status == AssociationStatus.ACTIVE,
            )
            .values(status=AssociationStatus.REMOVED)
        )
        with self._storage("remove_all"):
            result = await self.db.execute(statement)
        return result.rowcount
