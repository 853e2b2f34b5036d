"""
Главный файл FastAPI приложения.

Запуск:
    uvicorn tag_hierarchy.main:app --reload

API документация:
    http://localhost:8000/docs       - Swagger UI
    http://localhost:8000/redoc      - ReDoc
"""

import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from .api import hierarchical_tags_router, questions_router
from .api.dependencies import verify_api_key
from .api.errors import register_error_handlers
from .api.middleware import RequestLoggingMiddleware
from .core.config import settings
from .core.database import AsyncSessionLocal
from .core.logging import get_logger, setup_logging

setup_logging(log_level=settings.LOG_LEVEL, log_format=settings.LOG_FORMAT)

logger = get_logger(__name__)

APP_VERSION = "1.0.0"
APP_START_TIME: float = 0.0  # set on startup

# ============================================================================
# RATE LIMITER SETUP
# ============================================================================

# key_func группирует запросы по IP адресу
limiter = Limiter(key_func=get_remote_address)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Превышение лимита запросов в едином формате ErrorResponse."""
    return JSONResponse(
        status_code=429,
        content={
            "error": {
                "code": "RATE_LIMIT_EXCEEDED",
                "message": f"Слишком много запросов. Лимит: {exc.detail}",
                "details": [{"field": "rate_limit", "message": str(exc.detail)}],
            }
        },
    )


# ============================================================================
# LIFESPAN EVENT HANDLER
# ============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    global APP_START_TIME

    APP_START_TIME = time.time()
    logger.info(
        "Application started",
        extra={
            "app_name": settings.APP_NAME,
            "version": APP_VERSION,
            "debug": settings.DEBUG,
            "log_level": settings.LOG_LEVEL,
        },
    )

    yield

    uptime = int(time.time() - APP_START_TIME)
    logger.info("Application stopped", extra={"uptime_seconds": uptime})


# ============================================================================
# CREATE APPLICATION
# ============================================================================

app = FastAPI(
    lifespan=lifespan,
    title=settings.APP_NAME,
    description="""
    Дерево иерархических тегов (materialized path) и их привязка к вопросам.

    ## Модель данных

    ```
    hierarchical_tag:  id, parent_id, level, path = "#Customer#Backend#Java"
            ↑
    question_hierarchical_tag_rel:  question_id, tag_id, снимок path
    ```

    ## 3-Layer Architecture

    ```
    API Layer (FastAPI) → Service Layer (TagAssembler, services) → Repository Layer (Database)
    ```

    Все endpoints доступны по пути `/api/v1/` и требуют заголовок `X-API-Key`.
    """,
    version=APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)  # type: ignore[arg-type]

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)

# ============================================================================
# API VERSIONING
# ============================================================================

api_v1_router = APIRouter(prefix="/api/v1")
api_v1_router.include_router(hierarchical_tags_router)
api_v1_router.include_router(questions_router)

app.include_router(api_v1_router, dependencies=[Depends(verify_api_key)])

register_error_handlers(app)


# ============================================================================
# ROOT / HEALTH
# ============================================================================


@app.get("/", tags=["root"], summary="Root endpoint", description="Информация о API")
@limiter.limit(settings.RATE_LIMIT)
async def root(request: Request):
    return {
        "name": settings.APP_NAME,
        "version": APP_VERSION,
        "api_version": "v1",
        "docs": "/docs",
        "endpoints": {
            "hierarchical_tags": "/api/v1/hierarchical-tags",
            "hierarchical_tag_path": "/api/v1/hierarchical-tags/path",
            "hierarchical_tag_tree": "/api/v1/hierarchical-tags/tree",
            "question_tags": "/api/v1/questions/{question_id}/hierarchical-tags",
        },
        "rate_limit": settings.RATE_LIMIT,
    }


@app.get(
    "/health", tags=["health"], summary="Health check", description="Проверка работоспособности API"
)
@limiter.limit(settings.RATE_LIMIT)
async def health_check(request: Request):
    """
    Health check endpoint.

    Проверяет подключение к базе данных: 200 если БД доступна, иначе 503.

    Пример ответа:
    ```json
    {
        "status": "ok",
        "checks": {"database": "connected", "version": "1.0.0", "uptime_seconds": 3600},
        "timestamp": "2026-10-19T12:00:00+00:00"
    }
    ```
    """
    uptime_seconds = int(time.time() - APP_START_TIME) if APP_START_TIME > 0 else 0

    db_status = "disconnected"
    try:
        async with AsyncSessionLocal() as session:
            await session.execute(text("SELECT 1"))
            db_status = "connected"
    except (SQLAlchemyError, OSError):
        logger.warning("Health check: database unavailable", exc_info=True)

    overall_status = "ok" if db_status == "connected" else "error"
    return JSONResponse(
        status_code=200 if overall_status == "ok" else 503,
        content={
            "status": overall_status,
            "checks": {
                "database": db_status,
                "version": APP_VERSION,
                "uptime_seconds": uptime_seconds,
            },
            "timestamp": datetime.now(UTC).isoformat(),
        },
    )
