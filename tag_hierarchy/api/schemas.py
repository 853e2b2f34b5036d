"""
Pydantic схемы для API.

DTOs (Data Transfer Objects) - объекты для передачи данных через HTTP.
Сервисы возвращают dataclass'ы (TreeItem, PathResult), схемы ответа
строятся из них через model_validate (from_attributes=True).
"""

from pydantic import BaseModel, ConfigDict, Field

# display_name становится сегментом пути "#A#B", поэтому "#" в нём запрещён
DISPLAY_NAME_PATTERN = r"^[^#]+$"

# ============================================================================
# HIERARCHICAL TAG SCHEMAS
# ============================================================================


class HierarchicalTagItem(BaseModel):
    """
    Тег в ответе API.

    Пример:
    {
        "id": "2002",
        "name": "backend",
        "slug_name": "backend",
        "display_name": "Backend",
        "parent_id": "1001",
        "level": 1,
        "path": "#Customer#Backend",
        "description": "Backend development",
        "sort_order": 2,
        "has_children": true,
        "children": null
    }
    """

    id: str
    name: str
    slug_name: str
    display_name: str
    parent_id: str | None = None
    level: int
    path: str
    description: str | None = None
    sort_order: int = 0
    has_children: bool
    children: list["HierarchicalTagItem"] | None = None

    model_config = ConfigDict(from_attributes=True)


class HierarchicalTagsResponse(BaseModel):
    """Ответ для GET /hierarchical-tags и GET /hierarchical-tags/tree."""

    tags: list[HierarchicalTagItem]


class HierarchicalTagCreate(BaseModel):
    """
    Схема для создания тега (POST /hierarchical-tags).

    Пример запроса:
    {
        "name": "java",
        "slug_name": "java",
        "display_name": "Java",
        "parent_id": "2002",
        "description": "Java backend development"
    }

    parent_id пустой / "0" / не передан - корневой тег.
    """

    name: str = Field(..., min_length=1, max_length=100)
    slug_name: str = Field(..., min_length=1, max_length=100)
    display_name: str = Field(..., min_length=1, max_length=100, pattern=DISPLAY_NAME_PATTERN)
    parent_id: str | None = Field(None, max_length=20, description="ID родительского тега")
    description: str | None = None
    sort_order: int = Field(0, ge=0, description="Порядок среди соседей")


class HierarchicalTagUpdate(BaseModel):
    """
    Схема для обновления тега (PUT /hierarchical-tags).

    level, path и parent_id не меняются.
    """

    id: str = Field(..., min_length=1, max_length=20)
    name: str = Field(..., min_length=1, max_length=100)
    slug_name: str = Field(..., min_length=1, max_length=100)
    display_name: str = Field(..., min_length=1, max_length=100, pattern=DISPLAY_NAME_PATTERN)
    description: str | None = None
    sort_order: int | None = Field(None, ge=0)


class HierarchicalTagPathResponse(BaseModel):
    """
    Ответ для GET /hierarchical-tags/path.

    Пример:
    {
        "path": "#Customer#Backend#Java",
        "display_path": "#Customer#Backend#Java",
        "tags": [{...Customer}, {...Backend}, {...Java}]
    }
    """

    path: str
    display_path: str
    tags: list[HierarchicalTagItem]

    model_config = ConfigDict(from_attributes=True)


class RepathResponse(BaseModel):
    """Ответ для POST /hierarchical-tags/{tag_id}/repath."""

    tag_id: str
    updated_count: int


# ============================================================================
# QUESTION ASSOCIATION SCHEMAS
# ============================================================================


class QuestionTagsBind(BaseModel):
    """
    Схема для привязки тегов к вопросу (PUT /questions/{id}/hierarchical-tags).

    Пример:
    {
        "tag_ids": ["2002", "3002"]
    }

    Пустой список отвязывает все теги.
    """

    tag_ids: list[str] = Field(default_factory=list)


# ============================================================================
# COMMON SCHEMAS
# ============================================================================


class ErrorDetail(BaseModel):
    """Ошибка по конкретному полю запроса."""

    field: str = Field(..., description="Название поля с ошибкой")
    message: str = Field(..., description="Описание ошибки")


class ErrorBody(BaseModel):
    """
    Тело ошибки с кодом и деталями.

    Коды:
    - VALIDATION_ERROR: ошибка валидации полей
    - INVALID_REFERENCE: родительский тег не найден
    - NOT_FOUND: тег не найден
    - INTERNAL_ERROR: ошибка хранилища / сервера
    """

    code: str = Field(..., description="Код ошибки")
    message: str = Field(..., description="Человекочитаемое сообщение")
    details: list[ErrorDetail] | None = None


class ErrorResponse(BaseModel):
    """
    Единый формат ответа для всех ошибок API.

    Пример:
    {
        "error": {
            "code": "INVALID_REFERENCE",
            "message": "parent tag not found",
            "details": [{"field": "parent_id", "message": "Tag '999' does not exist"}]
        }
    }
    """

    error: ErrorBody
