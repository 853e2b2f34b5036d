"""Hierarchical tag service with business logic."""

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..core.exceptions import NotFoundError
from ..core.ids import IdGenerator
from ..core.logging import get_logger
from ..models import HierarchicalTag, TagStatus
from ..repositories import TagRepository, child_path
from .assembler import PathResult, TagAssembler, TreeItem

logger = get_logger(__name__)


class HierarchicalTagService:
    """
    Сервис для работы с деревом тегов.

    Четыре основные операции API:
    - list_level: теги под родителем (один уровень)
    - create_tag: создать тег (level/path вычисляет репозиторий)
    - update_tag: изменить имя/slug/display_name/описание
    - get_path: цепочка предков тега

    Плюс явные операции:
    - get_tree: ограниченное рекурсивное разворачивание
    - repath_subtree: пересчитать level/path после переименования
    """

    def __init__(self, db: AsyncSession, id_generator: IdGenerator):
        """
        Args:
            db: Асинхронная сессия БД
            id_generator: Источник ID для новых тегов
        """
        self.db = db
        self.id_generator = id_generator
        self.tag_repo = TagRepository(db)
        self.assembler = TagAssembler(self.tag_repo)

    async def list_level(self, parent_id: str | None = None) -> list[TreeItem]:
        """Теги одного уровня под parent_id (None - корни)."""
        return await self.assembler.build_level_response(parent_id)

    async def get_path(self, tag_id: str) -> PathResult:
        """
        Путь тега от корня.

        Raises:
            NotFoundError: тег не найден
        """
        return await self.assembler.build_path_response(tag_id)

    async def get_tag(self, tag_id: str) -> TreeItem:
        """
        Raises:
            NotFoundError: тег не найден или удалён
        """
        tag = await self.tag_repo.get_by_id(tag_id)
        if tag is None:
            raise NotFoundError(tag_id)
        return await self.assembler.to_tree_item(tag)

    async def get_tag_by_slug(self, slug_name: str) -> TreeItem:
        """
        Raises:
            NotFoundError: тега с таким slug_name нет
        """
        tag = await self.tag_repo.get_by_slug(slug_name)
        if tag is None:
            raise NotFoundError(slug_name, f"tag with slug '{slug_name}' not found")
        return await self.assembler.to_tree_item(tag)

    async def create_tag(
        self,
        name: str,
        slug_name: str,
        display_name: str,
        parent_id: str | None = None,
        description: str | None = None,
        sort_order: int = 0,
    ) -> TreeItem:
        """
        Создать тег.

        Returns:
            Созданный тег

        Raises:
            InvalidReferenceError: parent_id указывает на несуществующий тег
            InfrastructureError: ошибка БД (в т.ч. дубликат slug_name)

        Уникальность slug_name проверяет только UNIQUE constraint в БД.

        Пример:
            root = await service.create_tag("customer", "customer", "Customer")
            # root.path == "#Customer", root.level == 0
        """
        tag = HierarchicalTag(
            id=self.id_generator(),
            name=name,
            slug_name=slug_name,
            parent_id=parent_id,
            display_name=display_name,
            description=description,
            status=TagStatus.AVAILABLE,
            sort_order=sort_order,
        )
        tag = await self.tag_repo.create(tag)

        logger.info(
            "Hierarchical tag created",
            extra={"tag_id": tag.id, "parent_id": tag.parent_id, "level": tag.level, "path": tag.path},
        )
        return await self.assembler.to_tree_item(tag)

    async def update_tag(
        self,
        tag_id: str,
        name: str,
        slug_name: str,
        display_name: str,
        description: str | None = None,
        sort_order: int | None = None,
    ) -> TreeItem:
        """
        Обновить тег.

        ВАЖНО: level и path не пересчитываются, даже если изменился
        display_name. Путь самого тега и всех потомков устаревает,
        пока не будет вызван repath_subtree(tag_id).

        Raises:
            NotFoundError: тег не найден
        """
        fields = {
            "name": name,
            "slug_name": slug_name,
            "display_name": display_name,
            "description": description,
        }
        if sort_order is not None:
            fields["sort_order"] = sort_order

        tag = await self.tag_repo.update(tag_id, **fields)
        if tag is None:
            raise NotFoundError(tag_id)

        if not tag.path.endswith(child_path(None, tag.display_name)):
            logger.info(
                "Tag display name changed, stored path is stale until re-path",
                extra={"tag_id": tag.id, "path": tag.path, "display_name": tag.display_name},
            )
        return await self.assembler.to_tree_item(tag)

    async def get_tree(self, parent_id: str | None = None, max_depth: int | None = None) -> list[TreeItem]:
        """
        Поддерево под parent_id с вложенными children.

        Args:
            parent_id: Откуда разворачивать (None - от корней)
            max_depth: Глубина (по умолчанию и максимум - settings.TREE_MAX_DEPTH)
        """
        depth = settings.TREE_MAX_DEPTH if max_depth is None else min(max_depth, settings.TREE_MAX_DEPTH)
        if depth < 1:
            raise ValueError("max_depth must be at least 1")
        return await self.assembler.build_subtree(parent_id, depth, settings.TREE_MAX_NODES)

    async def repath_subtree(self, tag_id: str) -> int:
        """
        Пересчитать level и path тега и всех его потомков.

        Returns:
            Количество тегов, у которых изменились level или path

        Raises:
            NotFoundError: тег не найден

        Бизнес-правила:
        1. Путь самого тега собирается из display_name текущей цепочки предков
           (оборванная цепочка обрезается так же, как в get_path)
        2. Потомки пересчитываются в ширину: path = parent.path + "#" + display_name
        3. Снимки путей в связях с вопросами НЕ меняются

        Пример:
            # Backend переименовали в "Server"
            await service.update_tag("2002", ..., display_name="Server")
            await service.repath_subtree("2002")
            # "#Customer#Backend#Java" → "#Customer#Server#Java"
        """
        chain, _ = await self.tag_repo.resolve_ancestor_chain(tag_id)
        target = chain[-1]

        path = None
        for ancestor in chain:
            path = child_path(path, ancestor.display_name)

        changed = 0
        if self._apply_position(target, len(chain) - 1, path):
            changed += 1

        seen = {target.id}
        frontier = [target]
        while frontier:
            by_id = {tag.id: tag for tag in frontier}
            children = await self.tag_repo.list_children_of(list(by_id))
            next_frontier = []
            for child in children:
                if child.id in seen:
                    continue
                seen.add(child.id)
                parent = by_id[child.parent_id]
                if self._apply_position(child, parent.level + 1, child_path(parent.path, child.display_name)):
                    changed += 1
                next_frontier.append(child)
            frontier = next_frontier

        await self.tag_repo.save(target)
        logger.info(
            "Tag subtree re-pathed",
            extra={"tag_id": tag_id, "path": target.path, "visited": len(seen), "updated": changed},
        )
        return changed

    @staticmethod
    def _apply_position(tag: HierarchicalTag, level: int, path: str) -> bool:
        if tag.level == level and tag.path == path:
            return False
        tag.level = level
        tag.path = path
        return True
