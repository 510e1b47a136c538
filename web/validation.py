"""Input validation for user-facing forms and JSON bodies."""
from typing import Any


class ValidationError(ValueError):
    """A submitted value was missing or malformed. ``error`` is safe to show to the user."""

    def __init__(self, error: str):
        super().__init__(error)
        self.error = error


def validate_email(email: Any) -> str:
    if not isinstance(email, str) or not email:
        raise ValidationError("E-mail must be set")
    if "@" not in email:
        raise ValidationError("Invalid e-mail")
    return email


def validate_password(password: Any) -> str:
    if not isinstance(password, str) or not password:
        raise ValidationError("Password must be set")
    if password == "1234":
        raise ValidationError("Insecure password")
    return password
