"""Result envelope shared by every public operation."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel

from .errors import ErrorKind, ProvisioningError


class ActionResult(BaseModel):
    """Outcome of a public operation.

    :param success: Whether the operation succeeded
    :param data: Payload on success
    :param message: Human readable outcome
    :param error: Failure category, set only on failure
    """

    success: bool
    data: Any = None
    message: str | None = None
    error: ErrorKind | None = None

    @classmethod
    def ok(cls, data: Any = None, message: str | None = None) -> ActionResult:
        return cls(success=True, data=data, message=message)

    @classmethod
    def fail(cls, error: ErrorKind, message: str) -> ActionResult:
        return cls(success=False, error=error, message=message)

    @classmethod
    def from_error(cls, error: ProvisioningError) -> ActionResult:
        return cls.fail(error.kind, error.message)

    @property
    def status_code(self) -> int:
        """HTTP status matching this result."""
        if self.success:
            return 200
        return _STATUS_CODES.get(self.error, 500)


_STATUS_CODES = {
    ErrorKind.VALIDATION: 422,
    ErrorKind.AUTHENTICATION: 401,
    ErrorKind.PERMISSION: 403,
    ErrorKind.CONFLICT: 409,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.INFRASTRUCTURE: 503,
    ErrorKind.UNEXPECTED: 500,
}
