"""
Dependencies для FastAPI endpoints.

Цепочка зависимостей:
    get_tag_service зависит от get_db и get_id_generator
    → FastAPI создаёт сессию и берёт общий генератор ID
    → endpoint получает готовый сервис

В тестах get_db и get_id_generator подменяются через app.dependency_overrides.
"""

from collections.abc import AsyncGenerator

from fastapi import Depends, HTTPException, status
from fastapi.security import APIKeyHeader
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..core.database import AsyncSessionLocal
from ..core.ids import IdGenerator, SnowflakeIdGenerator
from ..services import HierarchicalTagService, QuestionTagService

# ============================================================================
# API KEY AUTHENTICATION
# ============================================================================

api_key_header = APIKeyHeader(
    name="X-API-Key",
    auto_error=False,
    description="API ключ для авторизации. Передавайте в заголовке X-API-Key",
)


async def verify_api_key(api_key: str | None = Depends(api_key_header)) -> str:
    """
    Проверить заголовок X-API-Key.

    Пример запроса:
        curl -H "X-API-Key: your-secret-key" http://localhost:8000/api/v1/hierarchical-tags
    """
    if api_key is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="API key is missing. Add header: X-API-Key: your-key",
            headers={"WWW-Authenticate": "ApiKey"},
        )

    if api_key != settings.API_KEY:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid API key",
            headers={"WWW-Authenticate": "ApiKey"},
        )

    return api_key


# ============================================================================
# DATABASE SESSION DEPENDENCY
# ============================================================================


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Сессия БД на время запроса.

    1. Создаёт сессию
    2. commit() при успехе - все изменения запроса фиксируются разом
    3. rollback() при любой ошибке - например, привязка тегов к вопросу
       не оставит половину связей
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


# ============================================================================
# ID GENERATOR DEPENDENCY
# ============================================================================

# Один генератор на процесс: порядковый номер внутри миллисекунды
# должен быть общим для всех запросов.
_id_generator = SnowflakeIdGenerator(worker_id=settings.ID_WORKER_ID)


def get_id_generator() -> IdGenerator:
    """Генератор ID для новых тегов."""
    return _id_generator


# ============================================================================
# SERVICE DEPENDENCIES
# ============================================================================


async def get_tag_service(
    db: AsyncSession = Depends(get_db),
    id_generator: IdGenerator = Depends(get_id_generator),
) -> HierarchicalTagService:
    """Dependency для HierarchicalTagService."""
    return HierarchicalTagService(db, id_generator)


async def get_question_tag_service(db: AsyncSession = Depends(get_db)) -> QuestionTagService:
    """Dependency для QuestionTagService."""
    return QuestionTagService(db)
