"""Exceptions raised by the provisioning engine.

Every failure a public operation can report is one of these. The service
layer turns them into failure results; nothing below it catches them.
"""

from enum import StrEnum


class ErrorKind(StrEnum):
    """Failure categories reported to callers."""

    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    PERMISSION = "permission"
    CONFLICT = "conflict"
    NOT_FOUND = "not-found"
    INFRASTRUCTURE = "infrastructure"
    UNEXPECTED = "unexpected"


class ConflictKind(StrEnum):
    """What an email or invite collided with."""

    EXISTING_ACCOUNT = "existing-account"
    PENDING_INVITE = "pending-invite"
    ROLE_UNASSIGNED = "role-unassigned"
    NOT_PENDING = "not-pending"
    TARGET_ACTIVE = "target-active"


class DenialReason(StrEnum):
    """Why the permission guard refused an action."""

    INSUFFICIENT_ROLE = "insufficient-role"
    MALFORMED_TARGET_ROLE = "malformed-target-role"
    ACTOR_SCOPE_INCOMPLETE = "actor-scope-incomplete"
    OUT_OF_SCOPE = "out-of-scope"


class ProvisioningError(Exception):
    """Base class for failures of a provisioning operation."""

    kind: ErrorKind = ErrorKind.UNEXPECTED

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(ProvisioningError):
    """Malformed or missing input, reported with the offending field."""

    kind = ErrorKind.VALIDATION

    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"{field}: {message}")
        self.field = field


class PermissionDeniedError(ProvisioningError):
    """The actor's role or scope does not allow the action."""

    kind = ErrorKind.PERMISSION

    def __init__(self, reason: DenialReason, message: str) -> None:
        super().__init__(message)
        self.reason = reason


class ConflictError(ProvisioningError):
    """The request collides with existing state."""

    kind = ErrorKind.CONFLICT

    def __init__(self, conflict: ConflictKind, message: str) -> None:
        super().__init__(message)
        self.conflict = conflict


class NotFoundError(ProvisioningError):
    """A referenced account or invite does not exist."""

    kind = ErrorKind.NOT_FOUND


class InfrastructureError(ProvisioningError):
    """The store or identity backend failed; carries remediation text."""

    kind = ErrorKind.INFRASTRUCTURE

    def __init__(self, message: str, remediation: str) -> None:
        super().__init__(f"{message} {remediation}")
        self.remediation = remediation


class PartialDeletionError(InfrastructureError):
    """Only one of the directory record and the credential was deleted."""


class AuthenticationError(ProvisioningError):
    """The email and password do not match a credential."""

    kind = ErrorKind.AUTHENTICATION
