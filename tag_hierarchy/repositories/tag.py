"""Hierarchical tag repository: materialized path bookkeeping."""

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import InvalidReferenceError, NotFoundError
from ..core.logging import get_logger
from ..models import HierarchicalTag, TagStatus, is_root_reference
from .base import BaseRepository

logger = get_logger(__name__)

PATH_SEPARATOR = "#"

# Поля, которые меняет update(). level/path/parent_id сюда не входят:
# после создания они этим репозиторием не пересчитываются.
MUTABLE_FIELDS = frozenset({"name", "slug_name", "display_name", "description", "sort_order"})


def child_path(parent_path: str | None, display_name: str) -> str:
    """
    Материализованный путь узла.

    Примеры:
        child_path(None, "Customer")        → "#Customer"
        child_path("#Customer", "Backend")  → "#Customer#Backend"
    """
    return (parent_path or "") + PATH_SEPARATOR + display_name


class TagRepository(BaseRepository[HierarchicalTag]):
    """
    Репозиторий иерархических тегов.

    Все чтения видят только теги со status = AVAILABLE:
    удалённый тег считается отсутствующим, а не скрытым.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(HierarchicalTag, db)

    @staticmethod
    def _available():
        return select(HierarchicalTag).where(HierarchicalTag.status == TagStatus.AVAILABLE)

    @staticmethod
    def _sibling_order():
        # стабильный порядок внутри группы: sort_order, затем display_name
        return (HierarchicalTag.sort_order.asc(), HierarchicalTag.display_name.asc())

    async def list_by_parent(self, parent_id: str | None) -> list[HierarchicalTag]:
        """
        Получить дочерние теги одного уровня.

        Args:
            parent_id: ID родителя; None, "" и "0" - корневой уровень

        Returns:
            Список тегов (может быть пустым, "не найдено" не бывает)

        SQL эквивалент:
            SELECT * FROM hierarchical_tag
            WHERE status = 1 AND (parent_id IS NULL OR parent_id = '')
            ORDER BY sort_order ASC, display_name ASC;
        """
        statement = self._available()
        if is_root_reference(parent_id):
            statement = statement.where(
                or_(HierarchicalTag.parent_id.is_(None), HierarchicalTag.parent_id.in_(("", "0")))
            )
        else:
            statement = statement.where(HierarchicalTag.parent_id == parent_id)

        return await self._scalars("list_by_parent", statement.order_by(*self._sibling_order()))

    async def list_children_of(self, parent_ids: list[str]) -> list[HierarchicalTag]:
        """
        Получить детей сразу нескольких родителей одним запросом.

        Используется для обхода дерева в ширину (один запрос на уровень).

        SQL эквивалент:
            SELECT * FROM hierarchical_tag
            WHERE status = 1 AND parent_id IN (...)
            ORDER BY sort_order ASC, display_name ASC;
        """
        if not parent_ids:
            return []
        statement = (
            self._available()
            .where(HierarchicalTag.parent_id.in_(parent_ids))
            .order_by(*self._sibling_order())
        )
        return await self._scalars("list_children_of", statement)

    async def get_by_id(self, id: str) -> HierarchicalTag | None:
        """
        Получить доступный тег по ID.

        Returns:
            Тег или None (если не существует или удалён)
        """
        return await self._scalar_one_or_none(
            "get_by_id", self._available().where(HierarchicalTag.id == id)
        )

    async def get_by_slug(self, slug_name: str) -> HierarchicalTag | None:
        """Получить доступный тег по slug_name."""
        return await self._scalar_one_or_none(
            "get_by_slug", self._available().where(HierarchicalTag.slug_name == slug_name)
        )

    async def create(self, tag: HierarchicalTag) -> HierarchicalTag:
        """
        Создать тег, вычислив level и path.

        Алгоритм:
        1. parent_id пустой / "0" → level = 0, path = "#" + display_name
        2. Иначе читаем родителя (только AVAILABLE):
           level = parent.level + 1, path = parent.path + "#" + display_name

        Raises:
            InvalidReferenceError: родитель не найден
            InfrastructureError: ошибка БД (в т.ч. дубликат slug_name)

        Пример:
            root = await repo.create(HierarchicalTag(id="1", display_name="Customer", ...))
            root.path   # "#Customer"
            child = await repo.create(HierarchicalTag(id="2", parent_id="1", display_name="Backend", ...))
            child.path  # "#Customer#Backend", child.level == 1
        """
        if is_root_reference(tag.parent_id):
            tag.parent_id = None
            tag.level = 0
            tag.path = child_path(None, tag.display_name)
        else:
            parent = await self.get_by_id(tag.parent_id)
            if parent is None:
                raise InvalidReferenceError(tag.parent_id)
            tag.level = parent.level + 1
            tag.path = child_path(parent.path, tag.display_name)

        return await super().create(tag)

    async def update(self, id: str, **fields) -> HierarchicalTag | None:
        """
        Обновить редактируемые поля тега.

        level, path и parent_id не трогаются, даже если изменился display_name:
        путь самого тега, его потомков и снимки в связях с вопросами
        остаются прежними (см. TagService.repath_subtree).

        Returns:
            Обновлённый тег или None, если тег не найден
        """
        unknown = set(fields) - MUTABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields are not updatable: {', '.join(sorted(unknown))}")

        tag = await self.get_by_id(id)
        if tag is None:
            return None

        for key, value in fields.items():
            setattr(tag, key, value)
        return await self.save(tag)

    async def has_children(self, id: str) -> bool:
        """
        Есть ли у тега доступные дети.

        SQL эквивалент:
            SELECT COUNT(*) FROM hierarchical_tag WHERE parent_id = {id} AND status = 1;
        """
        count = await self.count(
            HierarchicalTag.parent_id == id, HierarchicalTag.status == TagStatus.AVAILABLE
        )
        return count > 0

    async def count_children(self, parent_ids: list[str]) -> dict[str, int]:
        """
        Количество доступных детей для нескольких тегов одним запросом.

        Returns:
            {parent_id: count}; теги без детей в словарь не попадают
        """
        if not parent_ids:
            return {}
        statement = (
            select(HierarchicalTag.parent_id, func.count())
            .where(
                HierarchicalTag.status == TagStatus.AVAILABLE,
                HierarchicalTag.parent_id.in_(parent_ids),
            )
            .group_by(HierarchicalTag.parent_id)
        )
        with self._storage("count_children"):
            result = await self.db.execute(statement)
            return {parent_id: count for parent_id, count in result.all()}

    async def resolve_ancestor_chain(self, tag_id: str) -> tuple[list[HierarchicalTag], str]:
        """
        Цепочка предков от корня до тега включительно.

        Returns:
            (теги от корня к листу, path самого тега)

        Raises:
            NotFoundError: сам тег не найден

        Поднимаемся по parent_id через get_by_id. Если родитель
        отсутствует или удалён, цепочка обрезается на этом месте
        (допуск на целостность данных, не ошибка).

        Пример для "#Customer#Backend#Java":
            ([Customer, Backend, Java], "#Customer#Backend#Java")
        """
        tag = await self.get_by_id(tag_id)
        if tag is None:
            raise NotFoundError(tag_id)

        chain = [tag]
        seen = {tag.id}
        current = tag
        while not is_root_reference(current.parent_id):
            if current.parent_id in seen:
                logger.warning(
                    "Cycle in tag ancestry, chain truncated",
                    extra={"tag_id": tag_id, "parent_id": current.parent_id},
                )
                break

            parent = await self.get_by_id(current.parent_id)
            if parent is None:
                logger.warning(
                    "Parent tag missing, chain truncated",
                    extra={"tag_id": tag_id, "missing_parent_id": current.parent_id},
                )
                break

            chain.insert(0, parent)
            seen.add(parent.id)
            current = parent

        return chain, tag.path
