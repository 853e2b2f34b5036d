"""
API endpoints для привязки иерархических тегов к вопросам.

Набор тегов вопроса заменяется целиком (PUT), путь каждого тега
запоминается на момент привязки.
"""

from fastapi import APIRouter, Depends

from ..services import QuestionTagService
from .dependencies import get_question_tag_service
from .schemas import ErrorResponse, HierarchicalTagItem, QuestionTagsBind

router = APIRouter(prefix="/questions", tags=["questions"])


@router.put(
    "/{question_id}/hierarchical-tags",
    response_model=list[HierarchicalTagItem],
    summary="Заменить теги вопроса",
    responses={404: {"model": ErrorResponse, "description": "Один из тегов не найден"}},
)
async def bind_question_tags(
    question_id: str,
    data: QuestionTagsBind,
    service: QuestionTagService = Depends(get_question_tag_service),
) -> list[HierarchicalTagItem]:
    """
    Заменить набор тегов вопроса.

    Пример запроса:
    ```json
    {"tag_ids": ["2002", "3002"]}
    ```

    Если хоть один тег не найден - 404, прежние теги вопроса остаются.
    Пустой список отвязывает все теги.
    """
    items = await service.bind_tags(question_id, data.tag_ids)
    return [HierarchicalTagItem.model_validate(i) for i in items]


@router.get(
    "/{question_id}/hierarchical-tags",
    response_model=list[HierarchicalTagItem],
    summary="Теги вопроса",
)
async def get_question_tags(
    question_id: str, service: QuestionTagService = Depends(get_question_tag_service)
) -> list[HierarchicalTagItem]:
    """
    Получить теги вопроса.

    path в ответе - путь тега на момент привязки (не текущий).
    """
    items = await service.list_for_entity(question_id)
    return [HierarchicalTagItem.model_validate(i) for i in items]
