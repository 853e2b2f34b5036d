"""Domain exceptions for the hierarchical tag core."""


class TagHierarchyError(Exception):
    """Base class for all errors raised by the tag hierarchy."""


class NotFoundError(TagHierarchyError):
    """
    Тег не найден (отсутствует или помечен как удалённый).

    Attributes:
        tag_id: ID (или slug) тега, который искали
    """

    def __init__(self, tag_id: str, message: str | None = None) -> None:
        self.tag_id = tag_id
        super().__init__(message or f"tag '{tag_id}' not found")


class InvalidReferenceError(TagHierarchyError):
    """
    Запрос ссылается на родительский тег, которого нет.

    Attributes:
        parent_id: ID родителя из запроса на создание
    """

    def __init__(self, parent_id: str) -> None:
        self.parent_id = parent_id
        super().__init__("parent tag not found")


class InfrastructureError(TagHierarchyError):
    """
    Ошибка хранилища (соединение, нарушение ограничений, сериализация).

    Оборачивает исходное исключение SQLAlchemy, клиенту детали не показываются.
    """

    def __init__(self, operation: str, cause: Exception) -> None:
        self.operation = operation
        self.cause = cause
        super().__init__(f"storage failure during {operation}: {type(cause).__name__}")
