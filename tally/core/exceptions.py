"""Application-level exceptions and FastAPI exception handlers."""


import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AppException(Exception):
    """Base application exception."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        code: str = "INTERNAL_ERROR",
        errors: list[str] | None = None,
    ):
        self.message = message
        self.status_code = status_code
        self.code = code
        self.errors = errors
        super().__init__(message)

class NotFoundError(AppException):
    def __init__(self, entity: str, entity_id: str | None = None):
        msg = f"{entity} not found" if not entity_id else f"{entity} '{entity_id}' not found"
        super().__init__(msg, status_code=404, code="NOT_FOUND")

class ForbiddenError(AppException):
    def __init__(self, message: str = "Insufficient permissions"):
        super().__init__(message, status_code=403, code="FORBIDDEN")

class UnauthorizedError(AppException):
    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message, status_code=401, code="UNAUTHORIZED")

class ConflictError(AppException):
    def __init__(self, message: str):
        super().__init__(message, status_code=409, code="CONFLICT")

class ValidationError(AppException):
    """Bad request carrying every violated rule, not just the first one."""

    def __init__(self, errors: list[str] | str, message: str = "Validation failed"):
        if isinstance(errors, str):
            errors = [errors]
        super().__init__(message, status_code=400, code="VALIDATION_ERROR", errors=list(errors))

class UnsupportedMediaTypeError(AppException):
    def __init__(self, message: str):
        super().__init__(message, status_code=415, code="UNSUPPORTED_MEDIA_TYPE")

class PayloadTooLargeError(AppException):
    def __init__(self, message: str):
        super().__init__(message, status_code=413, code="PAYLOAD_TOO_LARGE")

class StorageError(AppException):
    """Raised when an uploaded file cannot be written to disk."""

    def __init__(self, message: str = "Failed to store uploaded file"):
        super().__init__(message, status_code=500, code="STORAGE_ERROR")

# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

def _error_body(code: str, message: str, errors: list[str] | None = None) -> dict:
    body: dict = {"code": code, "message": message}
    if errors is not None:
        body["errors"] = errors
    return {"error": body}

def _describe_request_error(err: dict) -> str:
    loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
    where = ".".join(loc)
    return f"{where}: {err.get('msg')}" if where else str(err.get("msg"))

def register_exception_handlers(app: FastAPI) -> None:
    """Attach all custom exception handlers to the FastAPI app."""

    @app.exception_handler(AppException)
    async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.code, exc.message, exc.errors),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content=_error_body(
                "VALIDATION_ERROR",
                "Validation failed",
                [_describe_request_error(err) for err in exc.errors()],
            ),
        )

    @app.exception_handler(404)
    async def not_found_handler(request: Request, exc: Exception) -> JSONResponse:
        return JSONResponse(
            status_code=404,
            content=_error_body("NOT_FOUND", "Resource not found"),
        )

    @app.exception_handler(Exception)
    async def internal_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content=_error_body("INTERNAL_ERROR", "An unexpected error occurred"),
        )
