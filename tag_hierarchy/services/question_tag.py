"""Question to hierarchical tag association service."""

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.logging import get_logger
from ..repositories import QuestionTagRepository, TagRepository
from .assembler import TagAssembler, TreeItem

logger = get_logger(__name__)


class QuestionTagService:
    """
    Сервис привязки иерархических тегов к вопросам.

    Набор тегов вопроса заменяется целиком: старые связи помечаются
    REMOVED, на каждый запрошенный тег создаётся новая связь со снимком
    пути тега. Частичного редактирования набора нет.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.tag_repo = TagRepository(db)
        self.rel_repo = QuestionTagRepository(db)
        self.assembler = TagAssembler(self.tag_repo)

    async def bind_tags(self, question_id: str, tag_ids: list[str]) -> list[TreeItem]:
        """
        Заменить набор тегов вопроса.

        Args:
            question_id: ID вопроса
            tag_ids: ID тегов в нужном порядке (дубликаты не схлопываются)

        Returns:
            Активные теги вопроса после привязки

        Raises:
            NotFoundError: какой-то из тегов не найден

        Всё или ничего:
        1. Сначала вычисляем пути ВСЕХ тегов; если хоть один не найден,
           ни одна связь не меняется
        2. Помечаем старые связи как REMOVED
        3. Создаём новые связи в порядке tag_ids

        Шаги 2-3 идут в одной сессии: get_db делает commit один раз
        в конце запроса и rollback при любой ошибке.
        """
        paths: dict[str, str] = {}
        for tag_id in tag_ids:
            if tag_id not in paths:
                _, paths[tag_id] = await self.tag_repo.resolve_ancestor_chain(tag_id)

        removed = await self.rel_repo.remove_all(question_id)
        for tag_id in tag_ids:
            await self.rel_repo.add(question_id, tag_id, paths[tag_id])

        logger.info(
            "Hierarchical tags bound to question",
            extra={"question_id": question_id, "tag_ids": tag_ids, "removed": removed},
        )
        return await self.list_for_entity(question_id)

    async def list_for_entity(self, question_id: str) -> list[TreeItem]:
        """
        Активные теги вопроса.

        path в ответе - снимок из связи (на момент привязки), а не текущий
        path тега. has_children вычисляется по текущему дереву.
        Связи с удалёнными тегами пропускаются.
        """
        items = []
        for rel in await self.rel_repo.list_active(question_id):
            tag = await self.tag_repo.get_by_id(rel.hierarchical_tag_id)
            if tag is None:
                continue
            items.append(await self.assembler.to_tree_item(tag, path=rel.hierarchical_tag_path))
        return items
