import re

from clientportal.errors import ValidationError

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def normalize_login(value: str) -> str:
    return value.strip().lower()


def validate_email(email: str) -> None:
    if not EMAIL_RE.fullmatch(email):
        raise ValidationError("Invalid email address")


def validate_password(password: str) -> None:
    """Validate password meets requirements.

    Requirements:
    - Length between 8 and 128 characters
    - At least one digit

    Raises:
        ValidationError: If password doesn't meet requirements
    """
    if len(password) < 8:
        raise ValidationError("Password must be at least 8 characters long")

    if len(password) > 128:
        raise ValidationError("Password cannot be longer than 128 characters")

    if not any(char.isdigit() for char in password):
        raise ValidationError("Password must contain at least one digit")
