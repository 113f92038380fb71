"""Input validation for wakeful.

Validation failures raise ``ValueError`` before any store access. The CLI
and the HTTP layer both route user input through these helpers.
"""

import re
from typing import Any, Optional

MAX_CONTENT_LENGTH = 20000
MAX_FIELD_LENGTH = 200

_ID_PATTERN = re.compile(r"^[A-Za-z0-9_.:-]{1,128}$")


def sanitize_string(
    value: Any, field_name: str, max_length: int = 1000, required: bool = True
) -> str:
    """Sanitize and validate string inputs.

    Args:
        value: The value to sanitize.
        field_name: Name of the field for error messages.
        max_length: Maximum allowed string length.
        required: If True, empty strings are rejected.

    Returns:
        Sanitized string.

    Raises:
        ValueError: If validation fails.
    """
    if value is None and not required:
        return ""

    if not isinstance(value, str):
        raise ValueError(f"{field_name} must be a string, got {type(value).__name__}")

    if required and not value.strip():
        raise ValueError(f"{field_name} cannot be empty")

    if len(value) > max_length:
        raise ValueError(f"{field_name} too long (max {max_length} characters, got {len(value)})")

    # Remove null bytes and control characters except newlines and tabs
    return re.sub(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]", "", value)


def sanitize_score(value: Any, field_name: str, default: Optional[int] = None) -> Optional[int]:
    """Validate a 0-100 integer score (salience or emotion intensity)."""
    if value is None:
        return default

    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{field_name} must be a number, got {type(value).__name__}")

    if isinstance(value, float):
        if value != value or value in (float("inf"), float("-inf")):
            raise ValueError(f"{field_name} must be a finite number, got {value}")
        if not value.is_integer():
            raise ValueError(f"{field_name} must be a whole number, got {value}")

    if value < 0 or value > 100:
        raise ValueError(f"{field_name} must be between 0 and 100, got {value}")

    return int(value)


def validate_observation_id(value: Any, field_name: str = "id") -> str:
    """Reject empty or malformed ids."""
    if not isinstance(value, str) or not value:
        raise ValueError(f"{field_name} is required")
    if not _ID_PATTERN.match(value):
        raise ValueError(f"{field_name} is malformed: {value!r}")
    return value
