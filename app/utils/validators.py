"""
Custom validators for application data.
Provides reusable validation functions that raise InvalidInput.
"""
import re
from datetime import date
from typing import Iterable, Optional

from email_validator import EmailNotValidError, validate_email as _validate_email

from app.core.errors import InvalidInput
from app.utils.datetime_utils import calculate_age

MIN_AGE = 18
MAX_AGE_RANGE = 99
DISPLAY_NAME_MAX = 50
BIO_MAX = 500
PASSWORD_MIN = 8
MIN_DISTANCE_KM = 1
MAX_DISTANCE_KM = 100

_LETTER = re.compile(r"[A-Za-z]")
_DIGIT = re.compile(r"\d")


def normalize_email(email: Optional[str]) -> str:
    """
    Validate email syntax and return the lowercase normalized address.

    Raises:
        InvalidInput: If the address is missing or malformed
    """
    if not email or not email.strip():
        raise InvalidInput("Email is required")
    try:
        result = _validate_email(email.strip(), check_deliverability=False)
    except EmailNotValidError:
        raise InvalidInput("Invalid email format")
    return result.normalized.lower()


def validate_password(password: Optional[str]) -> str:
    """Require at least 8 characters with at least one letter and one digit."""
    if not password or len(password) < PASSWORD_MIN:
        raise InvalidInput(f"Password must be at least {PASSWORD_MIN} characters long")
    if not _LETTER.search(password) or not _DIGIT.search(password):
        raise InvalidInput("Password must contain at least one letter and one digit")
    return password


def validate_display_name(name: Optional[str]) -> str:
    """Display names are required and at most 50 characters."""
    if name is None or not name.strip():
        raise InvalidInput("Display name is required")
    if len(name) > DISPLAY_NAME_MAX:
        raise InvalidInput(f"Display name cannot exceed {DISPLAY_NAME_MAX} characters")
    return name.strip()


def validate_bio(bio: Optional[str]) -> str:
    """Bio is optional free text of at most 500 characters."""
    bio = bio or ""
    if len(bio) > BIO_MAX:
        raise InvalidInput(f"Bio cannot exceed {BIO_MAX} characters")
    return bio


def validate_choice(value: Optional[str], choices: Iterable[str], field_name: str) -> str:
    """
    Check enum membership.

    Args:
        value: Raw value from the request
        choices: Allowed values
        field_name: Name used in the error message
    """
    allowed = list(choices)
    if value not in allowed:
        raise InvalidInput(f"Invalid {field_name}: must be one of {', '.join(allowed)}")
    return value


def validate_adult(birth_date: Optional[date], today: Optional[date] = None) -> date:
    """
    Require a birth date at least 18 full years before today.

    The 18th birthday itself is accepted.
    """
    if birth_date is None:
        raise InvalidInput("Birth date is required")
    if calculate_age(birth_date, today) < MIN_AGE:
        raise InvalidInput(f"You must be at least {MIN_AGE} years old to register")
    return birth_date


def validate_age_range(age_min: int, age_max: int) -> None:
    """Enforce 18 <= age_range_min <= age_range_max <= 99."""
    if age_min < MIN_AGE:
        raise InvalidInput(f"age_range_min must be at least {MIN_AGE}")
    if age_max > MAX_AGE_RANGE:
        raise InvalidInput(f"age_range_max cannot exceed {MAX_AGE_RANGE}")
    if age_max < age_min:
        raise InvalidInput("age_range_max must be greater than or equal to age_range_min")


def validate_max_distance(distance_km: int) -> int:
    """max_distance_km must lie in [1, 100]."""
    if distance_km < MIN_DISTANCE_KM or distance_km > MAX_DISTANCE_KM:
        raise InvalidInput(
            f"max_distance_km must be between {MIN_DISTANCE_KM} and {MAX_DISTANCE_KM}"
        )
    return distance_km


def validate_coordinates(latitude: float, longitude: float) -> None:
    """Latitude in [-90, 90], longitude in [-180, 180]."""
    if not -90 <= latitude <= 90:
        raise InvalidInput("latitude must be between -90 and 90")
    if not -180 <= longitude <= 180:
        raise InvalidInput("longitude must be between -180 and 180")


def validate_text_length(
    value: Optional[str],
    field_name: str,
    min_length: int = 0,
    max_length: Optional[int] = None
) -> str:
    """
    Length check on raw text (no trimming; content is stored verbatim).

    Raises:
        InvalidInput: If the text is missing or outside the bounds
    """
    value = value or ""
    if len(value) < min_length:
        if min_length <= 1:
            raise InvalidInput(f"{field_name} cannot be empty")
        raise InvalidInput(f"{field_name} must be at least {min_length} characters")
    if max_length is not None and len(value) > max_length:
        raise InvalidInput(f"{field_name} cannot exceed {max_length} characters")
    return value


def validate_page_limit(limit: Optional[int], default: int, maximum: int, clamp: bool = False) -> int:
    """
    Validate and normalize a page size.

    Args:
        limit: Requested limit (None means default)
        default: Value used when the caller sent nothing
        maximum: Upper bound
        clamp: Clamp values above ``maximum`` instead of rejecting them

    Raises:
        InvalidInput: If the limit is below 1, or above maximum without clamping
    """
    if limit is None:
        return default
    if limit < 1:
        raise InvalidInput("Limit must be at least 1")
    if limit > maximum:
        if clamp:
            return maximum
        raise InvalidInput(f"Limit cannot exceed {maximum}")
    return limit
