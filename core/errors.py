"""Centralized error types and response helpers."""

from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from core.logging import get_logger

logger = get_logger(__name__)


class DotPrintError(Exception):
    """Base class for all DotPrint errors."""
    pass


class ValidationError(DotPrintError):
    """
    Raised when a pattern or query parameter violates an input constraint.

    The ``constraint`` attribute names which rule failed so callers can
    report it without parsing the message.
    """

    def __init__(self, message: str, constraint: str):
        self.constraint = constraint
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for JSON serialization."""
        return {
            'error': str(self),
            'constraint': self.constraint,
        }


class StorageError(DotPrintError):
    """Raised when the underlying database fails. Never shown verbatim to users."""
    pass


class ConsistencyError(DotPrintError):
    """
    Raised when a submission was persisted but the ledger update was not.

    Re-extracting features is safe to repeat; re-incrementing the ledger is
    not. A retry must re-check the ledger before incrementing again.
    """

    def __init__(self, message: str, submission_id: Optional[int] = None):
        self.submission_id = submission_id
        super().__init__(message)


def validation_error_response(error: ValidationError, code: int = 400) -> JSONResponse:
    """Create standardized validation error response."""
    body = error.to_dict()
    body["code"] = code
    return JSONResponse(status_code=code, content=body)


def storage_error_response() -> JSONResponse:
    """Generic failure body; storage detail stays in the logs."""
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error. Please try again.",
            "code": 500,
        }
    )


def consistency_error_response(error: ConsistencyError) -> JSONResponse:
    """Partial write: the pattern is stored but credit was not recorded."""
    return JSONResponse(
        status_code=409,
        content={
            "error": "Pattern stored but contribution credit could not be recorded.",
            "code": 409,
            "submissionId": error.submission_id,
            "retryable": False,
        }
    )


def install_error_handlers(app: FastAPI) -> None:
    """Register DotPrint exception handlers on a FastAPI app."""

    async def _on_validation(request: Request, exc: ValidationError) -> JSONResponse:
        logger.info(
            f"Rejected request on {request.url.path}: {exc}",
            extra={"constraint": exc.constraint, "path": request.url.path}
        )
        return validation_error_response(exc)

    async def _on_storage(request: Request, exc: StorageError) -> JSONResponse:
        logger.error(
            f"Storage failure on {request.url.path}",
            extra={"path": request.url.path, "error": str(exc)},
            exc_info=exc
        )
        return storage_error_response()

    async def _on_consistency(request: Request, exc: ConsistencyError) -> JSONResponse:
        logger.error(
            f"Partial write on {request.url.path}",
            extra={"path": request.url.path, "submission_id": exc.submission_id},
            exc_info=exc
        )
        return consistency_error_response(exc)

    app.add_exception_handler(ValidationError, _on_validation)
    app.add_exception_handler(StorageError, _on_storage)
    app.add_exception_handler(ConsistencyError, _on_consistency)
