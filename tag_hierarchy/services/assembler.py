"""Tag assembler: shapes tag rows into tree items for the API."""

from collections import defaultdict
from dataclasses import dataclass, field

from ..core.exceptions import InfrastructureError
from ..core.logging import get_logger
from ..models import HierarchicalTag
from ..repositories import TagRepository

logger = get_logger(__name__)


@dataclass
class TreeItem:
    """
    Внешнее представление тега.

    children заполняется только при явном рекурсивном разворачивании
    (TagAssembler.build_subtree); None означает "не разворачивали".
    """

    id: str
    name: str
    slug_name: str
    display_name: str
    parent_id: str | None
    level: int
    path: str
    description: str | None
    sort_order: int
    has_children: bool
    children: list["TreeItem"] | None = None


@dataclass
class PathResult:
    """Цепочка предков тега и его материализованный путь."""

    path: str
    display_path: str
    tags: list[TreeItem] = field(default_factory=list)


def make_tree_item(tag: HierarchicalTag, has_children: bool, path: str | None = None) -> TreeItem:
    """Скопировать описательные поля тега в TreeItem (path можно подменить)."""
    return TreeItem(
        id=tag.id,
        name=tag.name,
        slug_name=tag.slug_name,
        display_name=tag.display_name,
        parent_id=tag.parent_id,
        level=tag.level,
        path=tag.path if path is None else path,
        description=tag.description,
        sort_order=tag.sort_order,
        has_children=has_children,
    )


class TagAssembler:
    """
    Превращает строки HierarchicalTag в TreeItem.

    Политика для has_children: ошибка вычисления флага для одного тега
    логируется и заменяется на False, чтобы одна плохая строка
    не ломала весь список.
    """

    def __init__(self, tag_repo: TagRepository):
        self.tag_repo = tag_repo

    async def to_tree_item(self, tag: HierarchicalTag, path: str | None = None) -> TreeItem:
        """
        Args:
            tag: Тег из репозитория
            path: Путь для ответа вместо tag.path (снимок из связи с вопросом)
        """
        try:
            has_children = await self.tag_repo.has_children(tag.id)
        except InfrastructureError:
            logger.error(
                "has_children computation failed, defaulting to false",
                extra={"tag_id": tag.id},
                exc_info=True,
            )
            has_children = False
        return make_tree_item(tag, has_children, path)

    async def build_level_response(self, parent_id: str | None) -> list[TreeItem]:
        """
        Один уровень дерева под parent_id, без рекурсии.

        Порядок сохраняется из list_by_parent (sort_order, display_name).
        """
        tags = await self.tag_repo.list_by_parent(parent_id)
        return [await self.to_tree_item(tag) for tag in tags]

    async def build_path_response(self, tag_id: str) -> PathResult:
        """
        Путь тега: цепочка предков от корня + path листа.

        path и display_path совпадают: оба равны материализованному path тега.

        Raises:
            NotFoundError: тег не найден
        """
        chain, path = await self.tag_repo.resolve_ancestor_chain(tag_id)
        tags = [await self.to_tree_item(tag) for tag in chain]
        return PathResult(path=path, display_path=path, tags=tags)

    async def build_subtree(
        self, parent_id: str | None, max_depth: int, max_nodes: int
    ) -> list[TreeItem]:
        """
        Развернуть поддерево под parent_id обходом в ширину.

        Args:
            parent_id: Откуда начинать (None/""/"0" - от корней)
            max_depth: Сколько уровней разворачивать (1 = как build_level_response)
            max_nodes: Максимум узлов в ответе

        Returns:
            Узлы первого уровня; у развёрнутых узлов заполнен children

        Один запрос на уровень (parent_id IN (...)), без рекурсивного SQL.
        has_children у развёрнутых узлов берётся из уже прочитанных детей,
        у узлов на границе - одним групповым COUNT.
        """
        roots = (await self.tag_repo.list_by_parent(parent_id))[:max_nodes]
        top = [make_tree_item(tag, has_children=False) for tag in roots]
        budget = max_nodes - len(top)

        frontier = top
        depth = 1
        while frontier and depth < max_depth:
            rows = await self.tag_repo.list_children_of([item.id for item in frontier])

            by_parent: dict[str, list[HierarchicalTag]] = defaultdict(list)
            for row in rows:
                by_parent[row.parent_id].append(row)

            next_frontier = []
            for item in frontier:
                kids = by_parent.get(item.id, [])
                item.has_children = bool(kids)
                item.children = []
                for kid in kids:
                    if budget <= 0:
                        break
                    child = make_tree_item(kid, has_children=False)
                    item.children.append(child)
                    next_frontier.append(child)
                    budget -= 1

            frontier = next_frontier
            depth += 1

        # last level reached: children were not loaded, only counted
        await self._fill_has_children(frontier)
        return top

    async def _fill_has_children(self, items: list[TreeItem]) -> None:
        if not items:
            return
        try:
            counts = await self.tag_repo.count_children([item.id for item in items])
        except InfrastructureError:
            logger.error(
                "has_children computation failed, defaulting to false",
                extra={"tag_ids": [item.id for item in items]},
                exc_info=True,
            )
            counts = {}
        for item in items:
            item.has_children = counts.get(item.id, 0) > 0
