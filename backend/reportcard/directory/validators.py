"""Input validation for provisioning payloads."""

import re

from reportcard.common import AccountStatus, ValidationError

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def validate_email(email: str, field: str = "email") -> str:
    """Check that a normalized email looks like an address.

    :raises ValidationError: If the email is empty or malformed
    """
    if not email:
        raise ValidationError(field, "Email is required")
    if not EMAIL_PATTERN.match(email):
        raise ValidationError(field, f"'{email}' is not a valid email address")
    return email


def validate_required(value: str | None, field: str, label: str) -> str:
    """Return a trimmed required text value.

    :raises ValidationError: If the value is missing or blank
    """
    if value is None or not value.strip():
        raise ValidationError(field, f"{label} is required")
    return value.strip()


def parse_status(value: str | AccountStatus) -> AccountStatus:
    """Parse an account status.

    :raises ValidationError: If the value is not active or inactive
    """
    try:
        return AccountStatus(value.strip().lower() if isinstance(value, str) else value)
    except ValueError as e:
        msg = f"'{value}' is not a valid status; use active or inactive"
        raise ValidationError("status", msg) from e
