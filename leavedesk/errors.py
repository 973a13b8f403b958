# leavedesk/errors.py
"""
Domain exceptions.

Raised by the schema validator and the storage engine, translated into
HTTP responses by the router.
"""
from typing import Any, Dict, List, Optional


class LeaveDeskError(Exception):
    """Base exception for all leave desk errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(LeaveDeskError):
    """Raised when an inbound payload does not match its schema."""

    def __init__(self, message: str, errors: Optional[List[Dict[str, Any]]] = None) -> None:
        super().__init__(message, {"errors": errors or []})
        self.errors = errors or []


class NotFoundError(LeaveDeskError):
    """Raised when a requested entity does not exist."""

    def __init__(self, resource_type: str, identifier: str) -> None:
        super().__init__(f"{resource_type} not found")
        self.resource_type = resource_type
        self.identifier = identifier


class ConflictError(LeaveDeskError):
    """Raised when a leave request is not in the status the caller expected."""

    def __init__(self, identifier: str, expected: str, actual: str) -> None:
        super().__init__(
            f"Leave request is {actual}, expected {expected}",
            {"expected": expected, "actual": actual},
        )
        self.identifier = identifier
        self.expected = expected
        self.actual = actual


class StorageError(LeaveDeskError):
    """Raised when a storage backend fails."""
