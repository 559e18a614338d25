"""
Error types raised by handlers, the media adapter and the document store.

The app factory maps each of these onto a JSON response.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional


@dataclass
class FieldError:
    field: str
    message: str

    def as_dict(self) -> dict:
        return {"field": self.field, "message": self.message}


class SiteError(Exception):
    """Base class for errors the API reports to callers."""


class ValidationError(SiteError):
    """Malformed or missing input; raised before any side effect."""

    def __init__(self, errors: Iterable[FieldError]):
        self.errors = list(errors)
        fields = ", ".join(e.field for e in self.errors)
        super().__init__(f"Invalid fields: {fields}")

    @classmethod
    def single(cls, field: str, message: str) -> "ValidationError":
        return cls([FieldError(field=field, message=message)])


class UploadError(SiteError):
    """The remote media host rejected or failed an upload."""

    def __init__(self, message: str, *, remote_error: Optional[BaseException] = None):
        super().__init__(message)
        self.remote_error = remote_error


class NotFoundError(SiteError):
    """Requested record is absent (or, for blog posts, unpublished)."""

    def __init__(self, message: str, *, debug: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.debug = debug


class PersistenceError(SiteError):
    """A document store operation failed."""
