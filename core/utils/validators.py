"""Input normalization for marketplace payloads."""

import json
import logging
from datetime import date, datetime, time, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from core.errors import ValidationError

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")

# Monetary columns are NUMERIC(12, 2)
MAX_AMOUNT = Decimal(10) ** 10

DATETIME_FORMATS = [
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%m/%d/%Y",
    "%m/%d/%Y %H:%M",
]


def is_blank(value: Any) -> bool:
    """None, empty string and whitespace-only strings are blank."""
    return value is None or (isinstance(value, str) and not value.strip())


def clean_text(value: Optional[str]) -> Optional[str]:
    """Trim free text; blank becomes None."""
    if value is None:
        return None
    stripped = str(value).strip()
    return stripped or None


def parse_service_date(value: Any) -> datetime:
    """
    Parse a service date into an aware UTC datetime.

    Accepts datetime/date objects, ISO-8601 strings (with or without a
    trailing ``Z``) and a few common non-ISO formats.

    Raises:
        ValidationError: value cannot be parsed
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time.min)
    elif isinstance(value, str) and value.strip():
        parsed = _parse_datetime_string(value.strip())
    else:
        parsed = None

    if parsed is None:
        raise ValidationError("Invalid date format. Please provide a valid date.")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _parse_datetime_string(raw: str) -> Optional[datetime]:
    candidate = raw[:-1] + "+00:00" if raw.endswith(("Z", "z")) else raw
    try:
        return datetime.fromisoformat(candidate)
    except ValueError:
        pass

    for fmt in DATETIME_FORMATS:
        try:
            return datetime.strptime(raw, fmt)
        except ValueError:
            continue
    return None


def parse_amount(value: Any, field: str, required: bool = True) -> Optional[Decimal]:
    """
    Parse a monetary amount, rounded to cents.

    Optional amounts treat blank input as "not given". Required amounts must
    be strictly positive after rounding. Amounts must fit NUMERIC(12, 2).

    Raises:
        ValidationError: missing, non-numeric, non-finite or out of range
    """
    if is_blank(value):
        if required:
            raise ValidationError(f"{field} is required.")
        return None

    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number.")

    try:
        amount = Decimal(str(value).strip())
        if not amount.is_finite():
            raise ValidationError(f"{field} must be a number.")
        amount = amount.quantize(CENTS)
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be a number.")

    if abs(amount) >= MAX_AMOUNT:
        raise ValidationError(f"{field} must be less than {MAX_AMOUNT}.")
    if required and amount <= 0:
        raise ValidationError(f"{field} must be a positive number.")
    if not required and amount < 0:
        raise ValidationError(f"{field} cannot be negative.")

    return amount


def encode_images(images: Optional[list[str]]) -> str:
    """Serialize an image URI list for storage."""
    if images is None:
        return "[]"
    if not isinstance(images, (list, tuple)) or not all(
        isinstance(item, str) for item in images
    ):
        raise ValidationError("images must be a list of URIs.")
    return json.dumps([item.strip() for item in images if item.strip()])


def decode_images(stored: Any) -> list[str]:
    """
    Deserialize a stored image list.

    Anything that is not a JSON array of strings reads as an empty list.
    """
    if isinstance(stored, list):
        items = stored
    elif isinstance(stored, (str, bytes)) and stored:
        try:
            items = json.loads(stored)
        except (TypeError, ValueError):
            logger.warning("Discarding unparseable stored image list")
            return []
    else:
        return []

    if not isinstance(items, list):
        return []
    return [item for item in items if isinstance(item, str)]
