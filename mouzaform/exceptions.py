"""
MouzaForm Backend — Custom Exception Hierarchy
================================================

What:  Application-specific exceptions for each failure class of the service.
Why:   Services raise domain errors; global handlers in main.py turn them into
       JSON responses with the right status code.
How:   Each exception carries a human-readable message, a machine-readable
       code and an optional context dict.

Exception Hierarchy:
    MouzaFormError (base)
    ├── ValidationError         → 400 Bad Request (malformed payload)
    ├── StoreWriteError         → 500 (insert/delete failed)
    ├── StoreReadError          → 500 (select failed)
    ├── PartialWriteError       → 500 (some child inserts failed)
    └── StoreUnavailableError   → 500 (connection not usable)
"""

from typing import Any, Dict, Optional


class MouzaFormError(Exception):
    """
    Base exception for all MouzaForm application errors.

    Attributes:
        message:  User-facing error description (returned in the API response)
        code:     Stable machine-readable error code
        context:  Additional debug info (returned under `error`, never raw SQL)
    """

    code = "server_error"
    status_code = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)

    def to_error_payload(self) -> Dict[str, Any]:
        """The `error` member of the JSON error body."""
        return {"code": self.code, **self.context}


class ValidationError(MouzaFormError):
    """
    Raised when a submission payload is malformed or missing fields.

    No store writes have happened when this is raised.
    """

    code = "validation_error"
    status_code = 400

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class StoreWriteError(MouzaFormError):
    """Raised when an insert or delete statement fails."""

    code = "store_write_error"

    def __init__(
        self,
        message: str = "Error writing to the database",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class StoreReadError(MouzaFormError):
    """Raised when a select statement fails."""

    code = "store_read_error"

    def __init__(
        self,
        message: str = "Error reading from the database",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class PartialWriteError(MouzaFormError):
    """
    Raised when one or more child inserts of a submission failed.

    Whether the parent and the successful siblings survive depends on
    `settings.atomic_submissions`; the `persisted` context flag says which.
    """

    code = "partial_write_error"

    def __init__(
        self,
        failed_count: int,
        persisted: bool = False,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["failed_count"] = failed_count
        ctx["persisted"] = persisted
        super().__init__(message="Error inserting some mouza data", context=ctx)
        self.failed_count = failed_count
        self.persisted = persisted


class StoreUnavailableError(MouzaFormError):
    """
    Raised when the store connection is not usable at call time.

    When:  The Database handle is closed, the server refused the connection,
           or the driver reported a disconnect.
    """

    code = "store_unavailable"

    def __init__(
        self,
        message: str = "The database is currently unavailable",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
