"""
Pytest fixtures для тестов.

Предоставляет:
- test_db: изолированная SQLite in-memory БД для каждого теста
- id_generator: предсказуемые ID ("1", "2", ...)
- tag_service / sample_tree: сервис и готовое дерево тегов
- test_client: HTTP клиент для тестирования API endpoints
"""

import itertools

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from tag_hierarchy.api.dependencies import get_db, get_id_generator
from tag_hierarchy.core.config import settings
from tag_hierarchy.main import app
from tag_hierarchy.models import Base
from tag_hierarchy.services import HierarchicalTagService

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


class CountingIdGenerator:
    """ID по порядку: "1", "2", "3", ..."""

    def __init__(self, start: int = 1):
        self._counter = itertools.count(start)

    def __call__(self) -> str:
        return str(next(self._counter))


@pytest_asyncio.fixture
async def test_engine():
    """
    Async engine для тестовой БД (SQLite in-memory).

    StaticPool - одно соединение на всё время теста, иначе in-memory БД теряется.
    Таблицы пересоздаются для каждого теста.
    """
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def test_db(test_engine):
    """Async session для работы с тестовой БД."""
    TestSessionLocal = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)

    async with TestSessionLocal() as session:
        yield session
        await session.rollback()


@pytest.fixture
def id_generator():
    return CountingIdGenerator()


@pytest.fixture
def tag_service(test_db, id_generator):
    return HierarchicalTagService(test_db, id_generator)


@pytest_asyncio.fixture
async def sample_tree(tag_service, test_db):
    """
    Дерево тегов:

        Customer (sort 1)
        ├── FullStack (1)
        │   └── Java (java-fullstack)
        └── Backend (2)
            ├── Node.js (1)
            ├── Java (2)
            └── Python (3)
        Internal (sort 2)

    Returns:
        {slug_name: TreeItem}
    """
    tags = {}

    async def add(slug, display_name, parent=None, sort_order=0):
        tags[slug] = await tag_service.create_tag(
            name=slug,
            slug_name=slug,
            display_name=display_name,
            parent_id=tags[parent].id if parent else None,
            description=f"{display_name} topics",
            sort_order=sort_order,
        )

    await add("customer", "Customer", sort_order=1)
    await add("internal", "Internal", sort_order=2)
    await add("fullstack", "FullStack", "customer", 1)
    await add("backend", "Backend", "customer", 2)
    await add("nodejs", "Node.js", "backend", 1)
    await add("java", "Java", "backend", 2)
    await add("python", "Python", "backend", 3)
    await add("java-fullstack", "Java", "fullstack", 1)
    await test_db.commit()
    return tags


@pytest_asyncio.fixture
async def test_client(test_engine):
    """
    HTTP клиент для тестирования API endpoints.

    Использует тестовую БД и счётчик ID, передаёт X-API-Key.
    """

    TestSessionLocal = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_db():
        async with TestSessionLocal() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    counter = CountingIdGenerator(start=100)
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_id_generator] = lambda: counter

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers={"X-API-Key": settings.API_KEY},
    ) as client:
        yield client

    app.dependency_overrides.clear()
