"""
Input Validators
Validates query parameters and request bodies for the analytics endpoints
"""

from datetime import datetime, timezone
from typing import Iterable, Tuple, Optional


def validate_choice(value, choices: Iterable[str], field_name: str = "Value") -> Tuple[bool, str]:
    """
    Validate that value is one of the allowed choices
    Returns (is_valid, error_message)
    """
    # Only strings are valid choices; lists or objects from a JSON body are not
    if not isinstance(value, str) or value not in set(choices):
        return False, f"Invalid {field_name.lower()}"
    return True, ""


def parse_iso_datetime(value, field_name: str = "Date") -> Tuple[Optional[datetime], str]:
    """
    Parse an ISO-8601 date or datetime string.
    Naive values are taken as UTC.
    Returns (datetime_or_None, error_message)
    """
    if value is None or value == "":
        return None, ""

    if not isinstance(value, str):
        return None, f"Invalid {field_name.lower()} format"

    text = value.strip()
    # fromisoformat only accepts a trailing Z from Python 3.11 on
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'

    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None, f"Invalid {field_name.lower()} format"

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed, ""
