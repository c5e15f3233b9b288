from functools import wraps
from typing import Any, Callable, TypeVar

from fastapi import HTTPException
from postgrest.exceptions import APIError

from lumindoc.config import setup_logger


logger = setup_logger("exceptions")

F = TypeVar("F", bound=Callable[..., Any])


class AppException(Exception):
    def __init__(
        self,
        status_code: int,
        detail: str,
        log_error: bool = True
    ) -> None:
        self.status_code = status_code
        self.detail = detail
        self.log_error = log_error
        super().__init__(detail)


class DocumentProcessingError(AppException):
    def __init__(self, document_id: str, reason: str) -> None:
        self.document_id = document_id
        self.reason = reason
        super().__init__(
            status_code=500,
            detail=f"Document processing failed: {reason}"
        )


class UnsupportedFileTypeError(AppException):
    def __init__(self, filename: str, content_type: str | None) -> None:
        self.filename = filename
        self.content_type = content_type
        super().__init__(
            status_code=400,
            detail=f"Unsupported file type for {filename}: only PDF and plain text files are accepted",
            log_error=False,
        )


class TextExtractionError(AppException):
    def __init__(self, filename: str, reason: str) -> None:
        self.filename = filename
        self.reason = reason
        super().__init__(
            status_code=400,
            detail=f"Text extraction failed for {filename}: {reason}",
            log_error=False,
        )


class StorageError(AppException):
    def __init__(self, operation: str, path: str, reason: str) -> None:
        self.operation = operation
        self.path = path
        self.reason = reason
        super().__init__(
            status_code=502,
            detail=f"Storage {operation} of {path} failed: {reason}"
        )


class DatabaseError(AppException):
    def __init__(self, operation: str, table: str, reason: str) -> None:
        self.operation = operation
        self.table = table
        self.reason = reason
        super().__init__(
            status_code=500,
            detail=f"Database {operation} on {table} failed: {reason}"
        )


class ModelError(AppException):
    def __init__(self, model: str, reason: str) -> None:
        self.model = model
        self.reason = reason
        super().__init__(
            status_code=503,
            detail=f"Model {model} failed: {reason}"
        )


class SummaryParseError(AppException):
    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(
            status_code=502,
            detail=f"Invalid summary response from model: {reason}"
        )


def handle_exceptions(func: F) -> F:
    @wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return await func(*args, **kwargs)
        except HTTPException:
            raise
        except AppException as e:
            if e.log_error:
                logger.error(f"{func.__name__}: {e.detail}")
            raise HTTPException(status_code=e.status_code, detail=e.detail)
        except APIError as e:
            logger.error(f"{func.__name__}: Database error - {e.message}")
            raise HTTPException(status_code=500, detail=f"Database error: {e.message}")
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except Exception as e:
            logger.error(f"{func.__name__}: Unexpected error - {str(e)}")
            raise HTTPException(status_code=500, detail="Internal server error")
    return wrapper
