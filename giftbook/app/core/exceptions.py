"""
Custom exceptions and error handlers for consistent error responses.

Provides standardized error codes and global exception handlers.
Every error body has the shape {"error_code", "message", "details"}.
"""

import logging
from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

GENERIC_FAILURE_MESSAGE = "서버 오류가 발생했습니다. 잠시 후 다시 시도해주세요."


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, error_code: str, status_code: int = 500, details: Dict[str, Any] = None):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class ValidationError(AppException):
    """Raised when caller-supplied data violates a field or import rule."""

    def __init__(self, message: str, details: Dict[str, Any] = None, error_code: str = "ERR_VALIDATION_001"):
        super().__init__(
            message=message,
            error_code=error_code,
            status_code=status.HTTP_400_BAD_REQUEST,
            details=details
        )


class RowParseError(ValidationError):
    """
    Raised when a single import row cannot be turned into a ledger entry.

    Always carries the 1-based row number of the offending sheet row.
    """

    def __init__(self, row: int, reason: str):
        self.row = row
        self.reason = reason
        super().__init__(
            message=reason,
            details={"row": row},
            error_code="ERR_VALIDATION_002"
        )


class BatchImportError(ValidationError):
    """Raised when a batch import is rejected; carries every row error."""

    def __init__(self, errors: List[Dict[str, Any]]):
        self.errors = errors
        super().__init__(
            message=self.summarize(errors),
            details={
                "success_count": 0,
                "fail_count": len(errors),
                "errors": errors,
            },
            error_code="ERR_IMPORT_001"
        )

    @staticmethod
    def summarize(errors: List[Dict[str, Any]]) -> str:
        lines = [
            "Excel 업로드 실패",
            "",
            f"총 {len(errors)}건의 오류가 발생했습니다.",
            "",
            "오류 내역:",
        ]
        lines.extend(f"- {error['row']}행: {error['reason']}" for error in errors)
        lines.append("")
        lines.append("양식에 맞춰 수정 후 다시 업로드해주세요.")
        lines.append("템플릿 다운로드: 대시보드 > Excel 업로드 > 템플릿 다운로드")
        return "\n".join(lines)


class TableReadError(ValidationError):
    """Raised when the uploaded bytes cannot be read as a table."""

    def __init__(self, message: str = "파일을 읽을 수 없습니다. 양식에 맞는 Excel(.xlsx) 또는 CSV 파일인지 확인해주세요."):
        super().__init__(message=message, error_code="ERR_IMPORT_002")


class ResourceNotFoundError(AppException):
    """
    Raised when requested resource is not found.

    Also used when the resource exists but belongs to another owner, so the
    two cases cannot be told apart by the caller.
    """

    def __init__(self, resource: str, resource_id: Any = None, message: Optional[str] = None):
        if message is None:
            message = f"{resource} not found"
        super().__init__(
            message=message,
            error_code="ERR_NOT_FOUND_001",
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource": resource, "id": resource_id}
        )


class LedgerEntryNotFoundError(ResourceNotFoundError):
    """Raised when a ledger entry does not exist for the calling owner."""

    def __init__(self, entry_id: Any = None):
        super().__init__("ledger_entry", entry_id, message="항목을 찾을 수 없습니다")


class OwnerNotFoundError(ResourceNotFoundError):
    """Raised when the owner account cannot be resolved."""

    def __init__(self, owner_id: Any = None):
        super().__init__("owner", owner_id, message="사용자를 찾을 수 없습니다")


class StorageError(AppException):
    """
    Raised when the persistence layer fails.

    The caller only ever sees a generic message; the underlying database
    error is logged where it is caught.
    """

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(
            message=GENERIC_FAILURE_MESSAGE,
            error_code="ERR_STORAGE_001",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
        )


class AuthenticationError(AppException):
    """Raised for authentication failures."""

    def __init__(self, message: str = "인증이 필요합니다. 다시 로그인해주세요."):
        super().__init__(
            message=message,
            error_code="ERR_AUTH_001",
            status_code=status.HTTP_401_UNAUTHORIZED
        )


# Global Exception Handlers

async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handler for custom application exceptions."""
    if exc.status_code >= 500:
        logger.error("%s on %s %s", exc.error_code, request.method, request.url.path)
    else:
        logger.warning("%s on %s %s: %s", exc.error_code, request.method, request.url.path, exc.message)

    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthenticationError) else None
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": exc.error_code,
            "message": exc.message,
            "details": exc.details
        },
        headers=headers
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handler for FastAPI HTTPException with standardized format."""
    # Map status code to error code
    error_code_map = {
        400: "ERR_BAD_REQUEST",
        401: "ERR_UNAUTHORIZED",
        403: "ERR_FORBIDDEN",
        404: "ERR_NOT_FOUND",
        500: "ERR_INTERNAL_SERVER"
    }

    error_code = error_code_map.get(exc.status_code, "ERR_UNKNOWN")

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": error_code,
            "message": exc.detail,
            "details": {}
        },
        headers=getattr(exc, "headers", None)
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handler for Pydantic validation errors."""
    errors = []
    for error in exc.errors():
        ctx_error = (error.get("ctx") or {}).get("error")
        errors.append({
            "field": ".".join(str(part) for part in error.get("loc", ()) if part != "body"),
            "message": str(ctx_error) if ctx_error is not None else error.get("msg"),
        })

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error_code": "ERR_VALIDATION",
            "message": "입력값 검증 실패",
            "details": {
                "errors": errors
            }
        }
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handler for unhandled exceptions."""
    logger.error(
        "Unhandled exception on %s %s: %s",
        request.method, request.url.path, type(exc).__name__,
        exc_info=exc
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error_code": "ERR_INTERNAL_SERVER",
            "message": GENERIC_FAILURE_MESSAGE,
            "details": {}
        }
    )
