"""
API endpoints для дерева иерархических тегов.

Каждый тег хранит путь от корня: "#Customer#Backend#Java".
Путь вычисляется при создании и дальше не пересчитывается сам,
для этого есть POST /hierarchical-tags/{tag_id}/repath.
"""

from fastapi import APIRouter, Depends, Query, status

from ..services import HierarchicalTagService
from .dependencies import get_tag_service
from .schemas import (
    ErrorResponse,
    HierarchicalTagCreate,
    HierarchicalTagItem,
    HierarchicalTagPathResponse,
    HierarchicalTagsResponse,
    HierarchicalTagUpdate,
    RepathResponse,
)

router = APIRouter(prefix="/hierarchical-tags", tags=["hierarchical-tags"])


# ============================================================================
# LIST ONE LEVEL
# ============================================================================


@router.get("", response_model=HierarchicalTagsResponse, summary="Теги под родителем")
async def get_hierarchical_tags(
    parent_id: str | None = Query(None, description="ID родителя (пусто или 0 - корни)"),
    service: HierarchicalTagService = Depends(get_tag_service),
) -> HierarchicalTagsResponse:
    """
    Получить один уровень дерева.

    Пример запроса:
    ```
    GET /hierarchical-tags?parent_id=1001
    ```

    Порядок: sort_order, затем display_name. Удалённые теги не возвращаются.
    """
    items = await service.list_level(parent_id)
    return HierarchicalTagsResponse(tags=[HierarchicalTagItem.model_validate(i) for i in items])


# ============================================================================
# CREATE / UPDATE
# ============================================================================


@router.post(
    "",
    response_model=HierarchicalTagItem,
    status_code=status.HTTP_201_CREATED,
    summary="Создать тег",
    responses={
        201: {"description": "Тег создан"},
        400: {"model": ErrorResponse, "description": "Родительский тег не найден"},
    },
)
async def create_hierarchical_tag(
    data: HierarchicalTagCreate, service: HierarchicalTagService = Depends(get_tag_service)
) -> HierarchicalTagItem:
    """
    Создать тег.

    Пример запроса:
    ```json
    {
        "name": "java",
        "slug_name": "java",
        "display_name": "Java",
        "parent_id": "2002"
    }
    ```

    Ответ содержит вычисленные level и path: 2, "#Customer#Backend#Java".
    """
    item = await service.create_tag(
        name=data.name,
        slug_name=data.slug_name,
        display_name=data.display_name,
        parent_id=data.parent_id,
        description=data.description,
        sort_order=data.sort_order,
    )
    return HierarchicalTagItem.model_validate(item)


@router.put(
    "",
    response_model=HierarchicalTagItem,
    summary="Обновить тег",
    description="""
    Обновить name, slug_name, display_name, description.

    ВАЖНО: path тега и его потомков при этом НЕ пересчитывается.
    После смены display_name вызовите POST /hierarchical-tags/{tag_id}/repath.
    """,
    responses={404: {"model": ErrorResponse, "description": "Тег не найден"}},
)
async def update_hierarchical_tag(
    data: HierarchicalTagUpdate, service: HierarchicalTagService = Depends(get_tag_service)
) -> HierarchicalTagItem:
    item = await service.update_tag(
        tag_id=data.id,
        name=data.name,
        slug_name=data.slug_name,
        display_name=data.display_name,
        description=data.description,
        sort_order=data.sort_order,
    )
    return HierarchicalTagItem.model_validate(item)


# ============================================================================
# PATH / TREE
# ============================================================================


@router.get(
    "/path",
    response_model=HierarchicalTagPathResponse,
    summary="Путь тега",
    responses={404: {"model": ErrorResponse, "description": "Тег не найден"}},
)
async def get_hierarchical_tag_path(
    tag_id: str = Query(..., min_length=1, description="ID тега"),
    service: HierarchicalTagService = Depends(get_tag_service),
) -> HierarchicalTagPathResponse:
    """
    Получить цепочку предков тега.

    Пример запроса:
    ```
    GET /hierarchical-tags/path?tag_id=3002
    ```

    Пример ответа:
    ```json
    {
        "path": "#Customer#Backend#Java",
        "display_path": "#Customer#Backend#Java",
        "tags": [{"id": "1001", ...}, {"id": "2002", ...}, {"id": "3002", ...}]
    }
    ```
    """
    result = await service.get_path(tag_id)
    return HierarchicalTagPathResponse.model_validate(result)


@router.get("/tree", response_model=HierarchicalTagsResponse, summary="Поддерево")
async def get_hierarchical_tag_tree(
    parent_id: str | None = Query(None, description="ID родителя (пусто - от корней)"),
    max_depth: int | None = Query(None, ge=1, description="Сколько уровней разворачивать"),
    service: HierarchicalTagService = Depends(get_tag_service),
) -> HierarchicalTagsResponse:
    """
    Развернуть поддерево с вложенными children.

    Глубина и количество узлов ограничены настройками
    TREE_MAX_DEPTH и TREE_MAX_NODES.

    Пример запроса:
    ```
    GET /hierarchical-tags/tree?parent_id=1001&max_depth=2
    ```
    """
    items = await service.get_tree(parent_id, max_depth)
    return HierarchicalTagsResponse(tags=[HierarchicalTagItem.model_validate(i) for i in items])


# ============================================================================
# GET SINGLE TAG
# ============================================================================


@router.get(
    "/by-slug/{slug_name}",
    response_model=HierarchicalTagItem,
    summary="Получить тег по slug",
    responses={404: {"model": ErrorResponse, "description": "Тег не найден"}},
)
async def get_hierarchical_tag_by_slug(
    slug_name: str, service: HierarchicalTagService = Depends(get_tag_service)
) -> HierarchicalTagItem:
    item = await service.get_tag_by_slug(slug_name)
    return HierarchicalTagItem.model_validate(item)


@router.get(
    "/{tag_id}",
    response_model=HierarchicalTagItem,
    summary="Получить тег по ID",
    responses={404: {"model": ErrorResponse, "description": "Тег не найден"}},
)
async def get_hierarchical_tag(
    tag_id: str, service: HierarchicalTagService = Depends(get_tag_service)
) -> HierarchicalTagItem:
    item = await service.get_tag(tag_id)
    return HierarchicalTagItem.model_validate(item)


# ============================================================================
# REPATH
# ============================================================================


@router.post(
    "/{tag_id}/repath",
    response_model=RepathResponse,
    summary="Пересчитать пути поддерева",
    description="""
    Пересчитать level и path тега и всех его потомков
    по текущим display_name.

    Снимки путей в привязках к вопросам не меняются.
    """,
    responses={404: {"model": ErrorResponse, "description": "Тег не найден"}},
)
async def repath_hierarchical_tag(
    tag_id: str, service: HierarchicalTagService = Depends(get_tag_service)
) -> RepathResponse:
    updated = await service.repath_subtree(tag_id)
    return RepathResponse(tag_id=tag_id, updated_count=updated)
