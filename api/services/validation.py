"""Pure validation helpers shared by every service.

Each helper returns the normalized value or raises ValidationError with a
message suitable for the API client.
"""

import math
from collections.abc import Iterable
from datetime import UTC, date, datetime, time
from enum import Enum

from services.errors import ValidationError


def require_id(value: object, message: str) -> str:
    """Non-empty string identifier, returned stripped."""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(message)
    return value.strip()


def require_non_empty(value: object, message: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(message)
    return value.strip()


def require_choice(value: object, allowed: type[Enum] | Iterable[str], label: str) -> str:
    """Membership in a fixed set. The error lists the allowed values."""
    if isinstance(allowed, type) and issubclass(allowed, Enum):
        choices = [member.value for member in allowed]
    else:
        choices = list(allowed)
    if value not in choices:
        raise ValidationError(f"Invalid {label}. Allowed values: {', '.join(choices)}")
    return str(value)


def coerce_number(value: object, message: str) -> float:
    """Numbers and numeric strings. Booleans and NaN are rejected."""
    if isinstance(value, bool):
        raise ValidationError(message)
    if isinstance(value, int | float):
        number = float(value)
    elif isinstance(value, str) and value.strip():
        try:
            number = float(value.strip())
        except ValueError:
            raise ValidationError(message) from None
    else:
        raise ValidationError(message)
    if math.isnan(number) or math.isinf(number):
        raise ValidationError(message)
    return number


def require_range(
    value: object,
    message: str,
    *,
    minimum: float | None = None,
    maximum: float | None = None,
) -> float:
    number = coerce_number(value, message)
    if minimum is not None and number < minimum:
        raise ValidationError(message)
    if maximum is not None and number > maximum:
        raise ValidationError(message)
    return number


def coerce_int(value: object, message: str) -> int:
    """Whole numbers, including numeric strings such as query parameters."""
    if isinstance(value, bool):
        raise ValidationError(message)
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            raise ValidationError(message) from None
    raise ValidationError(message)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes (SQLite drops tzinfo on the way back)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def parse_date(value: object, message: str) -> datetime:
    """Parse ISO-8601 strings, date/datetime objects or epoch milliseconds."""
    if isinstance(value, datetime):
        return as_utc(value)
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=UTC)
    if isinstance(value, bool):
        raise ValidationError(message)
    if isinstance(value, int | float):
        try:
            return datetime.fromtimestamp(value / 1000, tz=UTC)
        except (OverflowError, OSError, ValueError):
            raise ValidationError(message) from None
    if isinstance(value, str) and value.strip():
        try:
            return as_utc(datetime.fromisoformat(value.strip()))
        except ValueError:
            raise ValidationError(message) from None
    raise ValidationError(message)
