"""Helpers for reading JSON request payloads into typed values."""
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Iterable

from .errors import ValidationError


def require(data: dict, *fields: str) -> None:
    missing = [f for f in fields if data.get(f) in (None, '')]
    if missing:
        raise ValidationError(f"Missing required field(s): {', '.join(missing)}")


def reject_unknown(data: dict, allowed: Iterable[str]) -> None:
    unknown = sorted(set(data) - set(allowed))
    if unknown:
        raise ValidationError(f"Field(s) not updatable: {', '.join(unknown)}")


def parse_datetime(value, field: str):
    if value is None or isinstance(value, datetime):
        return value
    try:
        # Accept the trailing "Z" that JS clients send
        parsed = datetime.fromisoformat(str(value).replace('Z', '+00:00'))
    except ValueError:
        raise ValidationError(f"{field} must be an ISO-8601 datetime")
    # Stored as naive UTC like every other timestamp column
    if parsed.tzinfo is not None:
        parsed = parsed.replace(tzinfo=None) - parsed.utcoffset()
    return parsed


def parse_decimal(value, field: str, minimum: Decimal = Decimal('0')) -> Decimal:
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be a decimal amount")
    if not amount.is_finite() or amount < minimum:
        raise ValidationError(f"{field} must be at least {minimum}")
    return amount


def parse_int(value, field: str, minimum: int = None) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be an integer")
    if isinstance(value, float) and value != number:
        raise ValidationError(f"{field} must be an integer")
    if minimum is not None and number < minimum:
        raise ValidationError(f"{field} must be at least {minimum}")
    return number


def parse_choice(value, field: str, choices: Iterable[str]) -> str:
    choices = list(choices)
    if value not in choices:
        raise ValidationError(f"{field} must be one of: {', '.join(choices)}")
    return value
