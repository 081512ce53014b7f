from typing import Optional, Dict, Any
from fastapi import HTTPException
from .errors import ErrorDetail

class APIError(HTTPException):
    def __init__(
        self,
        error: ErrorDetail,
        details: Optional[Dict[str, Any]] = None,
        override_message: Optional[str] = None,
    ):
        self.error_code = error.code
        self.details = details or {}
        #override message if provided
        message = override_message or error.message
        super().__init__(status_code=error.status_code, detail=message)


class StoreError(Exception):
    """Base class for failures raised by the storage layer."""


class StoreUnavailableError(StoreError):
    """The underlying database could not be reached or rejected the statement."""


class DuplicateKeyError(StoreError):
    """A unique constraint rejected the write. The existing row is untouched."""

    def __init__(self, table: str, message: Optional[str] = None):
        self.table = table
        super().__init__(message or f"Duplicate key in table '{table}'")


class RecordNotFoundError(StoreError):
    def __init__(self, table: str, record_id: Any):
        self.table = table
        self.record_id = record_id
        super().__init__(f"No record with id '{record_id}' in table '{table}'")


class RecordValidationError(StoreError):
    """Input to a create/update was rejected before reaching the database."""


class FileTooLargeError(RecordValidationError):
    def __init__(self, limit_bytes: int):
        self.limit_bytes = limit_bytes
        super().__init__(f"File exceeds the maximum size of {limit_bytes} bytes")
