# errors.py
from __future__ import annotations
from typing import Any, Dict, Optional


class CVBuilderError(Exception):
    """Base for every error the CV backend raises on purpose.

    `details` carries extra context for logs; it is never sent to clients.
    """

    status_code = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class BadRequest(CVBuilderError):
    """Incomplete or malformed request (missing id or data)."""
    status_code = 400


class NotFoundError(CVBuilderError):
    """Raised by a record store when no record exists for an identifier."""
    status_code = 404

    def __init__(self, identifier: str):
        super().__init__("CV not found", details={"id": identifier})
        self.identifier = identifier


class NotFound(CVBuilderError):
    """Service-level 'not found' outcome."""
    status_code = 404


class StorageError(CVBuilderError):
    """Persistence medium failure, unserializable payload or corrupted row."""
    status_code = 500
