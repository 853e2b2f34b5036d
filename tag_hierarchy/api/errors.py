"""
Обработчики ошибок (Exception Handlers) для API.

Доменные исключения сервисов превращаются в единый формат ErrorResponse:
- InvalidReferenceError → 400 INVALID_REFERENCE
- NotFoundError         → 404 NOT_FOUND
- InfrastructureError   → 500 INTERNAL_ERROR (без деталей)
- RequestValidationError (Pydantic) → 422 VALIDATION_ERROR
"""

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..core.exceptions import InfrastructureError, InvalidReferenceError, NotFoundError
from ..core.logging import get_logger
from .schemas import ErrorBody, ErrorDetail, ErrorResponse

logger = get_logger(__name__)


def error_response(
    status_code: int, code: str, message: str, details: list[ErrorDetail] | None = None
) -> JSONResponse:
    body = ErrorResponse(error=ErrorBody(code=code, message=message, details=details))
    return JSONResponse(status_code=status_code, content=body.model_dump())


async def invalid_reference_handler(request: Request, exc: InvalidReferenceError) -> JSONResponse:
    logger.warning("Invalid parent reference", extra={"parent_id": exc.parent_id})
    return error_response(
        status.HTTP_400_BAD_REQUEST,
        "INVALID_REFERENCE",
        str(exc),
        [ErrorDetail(field="parent_id", message=f"Tag '{exc.parent_id}' does not exist")],
    )


async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    logger.warning("Tag not found", extra={"tag_id": exc.tag_id})
    return error_response(status.HTTP_404_NOT_FOUND, "NOT_FOUND", str(exc))


async def infrastructure_error_handler(request: Request, exc: InfrastructureError) -> JSONResponse:
    """
    Ошибки хранилища (500).

    ВАЖНО: детали (SQL, constraint) клиенту не показываем, только в лог.
    """
    logger.error(
        "Storage failure",
        extra={"operation": exc.operation, "cause": repr(exc.cause)},
        exc_info=exc,
    )
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR, "INTERNAL_ERROR", "Внутренняя ошибка сервера"
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Ошибки валидации Pydantic (422).

    {"detail": [{"loc": ["body", "display_name"], "msg": "..."}]}
    → {"error": {"code": "VALIDATION_ERROR", "details": [{"field": "display_name", ...}]}}
    """
    logger.warning("Validation Error", extra={"errors": exc.errors()})

    details = []
    for error in exc.errors():
        field_path = error.get("loc", [])
        field_name = field_path[-1] if field_path else "unknown"
        if len(field_path) > 1 and field_path[0] == "body":
            field_name = ".".join(str(p) for p in field_path[1:])
        details.append(
            ErrorDetail(field=str(field_name), message=error.get("msg", "Ошибка валидации"))
        )

    return error_response(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "VALIDATION_ERROR",
        "Ошибка валидации входных данных",
        details,
    )


def register_error_handlers(app: FastAPI) -> None:
    """Регистрирует все error handlers в приложении FastAPI."""
    app.add_exception_handler(InvalidReferenceError, invalid_reference_handler)
    app.add_exception_handler(NotFoundError, not_found_handler)
    app.add_exception_handler(InfrastructureError, infrastructure_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
