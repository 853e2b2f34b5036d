"""Base repository with common CRUD operations."""

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, Generic, TypeVar

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import InfrastructureError
from ..models.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Базовый репозиторий с CRUD операциями.

    Все обращения к БД идут через self._storage(...): любая ошибка SQLAlchemy
    (соединение, нарушение UNIQUE, сериализация) превращается в
    InfrastructureError и дальше не интерпретируется.

    Пример использования:
        repo = BaseRepository[HierarchicalTag](HierarchicalTag, db_session)
        tag = await repo.get_by_id("1001")
    """

    def __init__(self, model: type[ModelType], db: AsyncSession):
        """
        Args:
            model: Класс модели SQLAlchemy
            db: Асинхронная сессия базы данных
        """
        self.model = model
        self.db = db

    @contextmanager
    def _storage(self, operation: str) -> Iterator[None]:
        """Обернуть ошибки хранилища в InfrastructureError."""
        try:
            yield
        except SQLAlchemyError as exc:
            raise InfrastructureError(f"{self.model.__tablename__}.{operation}", exc) from exc

    async def _scalars(self, operation: str, statement) -> list[ModelType]:
        with self._storage(operation):
            result = await self.db.execute(statement)
            return list(result.scalars().all())

    async def _scalar_one_or_none(self, operation: str, statement) -> Any:
        with self._storage(operation):
            result = await self.db.execute(statement)
            return result.scalar_one_or_none()

    async def create(self, obj: ModelType) -> ModelType:
        """
        Создать новую запись в БД.

        Returns:
            Созданный объект (с ID и timestamps из БД)

        Raises:
            InfrastructureError: например, при нарушении UNIQUE
        """
        with self._storage("create"):
            self.db.add(obj)
            await self.db.flush()  # отправляет INSERT, но не commit
            await self.db.refresh(obj)
        return obj

    async def get_by_id(self, id: Any) -> ModelType | None:
        """
        Получить объект по первичному ключу (без учёта статуса).

        SQL эквивалент:
            SELECT * FROM table WHERE id = {id} LIMIT 1;
        """
        return await self._scalar_one_or_none(
            "get_by_id", select(self.model).where(self.model.id == id)
        )

    async def save(self, obj: ModelType) -> ModelType:
        """Сбросить изменения объекта в БД и перечитать его."""
        with self._storage("save"):
            await self.db.flush()
            await self.db.refresh(obj)
        return obj

    async def count(self, *criteria: Any) -> int:
        """
        Подсчитать записи, удовлетворяющие условиям.

        SQL эквивалент:
            SELECT COUNT(*) FROM table WHERE {criteria};
        """
        statement = select(func.count()).select_from(self.model)
        if criteria:
            statement = statement.where(*criteria)
        with self._storage("count"):
            result = await self.db.execute(statement)
            return result.scalar_one()
