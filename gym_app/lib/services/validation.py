"""
Input checks run by the services before any transaction opens.

Every check raises ValidationError with a message naming the offending
field; nothing here touches the store.
"""

from datetime import date as date_type
from typing import Iterable, Optional

from ..errors import ValidationError
from ..group_validator import check_group_range, ensure_valid_groups

MIN_YEAR = 1900
MAX_YEAR = 2100


def validate_id(value: Optional[int], label: str = "ID") -> int:
    if value is None or value <= 0:
        raise ValidationError(f"Invalid {label}: {value}")
    return value


def is_valid_date_format(value: str) -> bool:
    """
    Check a YYYY-MM-DD string.

    Year must be within 1900..2100, and the day must exist in the calendar.
    """
    if not isinstance(value, str) or len(value) != 10:
        return False
    parts = value.split("-")
    if len(parts) != 3 or [len(p) for p in parts] != [4, 2, 2]:
        return False
    if not all(p.isdigit() for p in parts):
        return False

    year, month, day = (int(p) for p in parts)
    if not MIN_YEAR <= year <= MAX_YEAR:
        return False
    if not 1 <= month <= 12 or not 1 <= day <= 31:
        return False
    try:
        date_type(year, month, day)
    except ValueError:
        return False
    return True


def validate_date(value: str, label: str = "date") -> str:
    if not is_valid_date_format(value):
        raise ValidationError(f"Invalid {label} format: {value!r}. Use YYYY-MM-DD")
    return value


def validate_prescription(
    sets: Optional[int],
    reps: Optional[int],
    weight: Optional[float],
    order_index: Optional[int] = None,
    prefix: str = ""
) -> None:
    """Optional numeric fields shared by workout and routine entries."""
    if sets is not None and sets <= 0:
        raise ValidationError(f"{prefix}Sets must be greater than 0")
    if reps is not None and reps <= 0:
        raise ValidationError(f"{prefix}Reps must be greater than 0")
    if weight is not None and weight < 0:
        raise ValidationError(f"{prefix}Weight cannot be negative")
    if order_index is not None and order_index < 0:
        raise ValidationError(f"{prefix}Order cannot be negative")


def validate_group_number(group_number: int, prefix: str = "") -> None:
    result = check_group_range(group_number)
    if not result:
        raise ValidationError(f"{prefix}{result.message}")


def validate_batch_groups(group_numbers: Iterable[int]) -> None:
    """A batch inserted together must be contiguous from 1 on its own."""
    ensure_valid_groups(set(), group_numbers)


def clean_notes(notes: Optional[str]) -> Optional[str]:
    """Trim notes; blank notes are stored as NULL."""
    if notes is None:
        return None
    notes = notes.strip()
    return notes or None


def require_text(value: Optional[str], label: str) -> str:
    if value is None or not value.strip():
        raise ValidationError(f"{label} cannot be empty")
    return value.strip()
