"""
Utility functions for the application.
"""
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Union
import time

TWO_PLACES = Decimal("0.01")
ONE_PLACE = Decimal("0.1")

Number = Union[Decimal, int, float, str]


def to_decimal(value: Number) -> Decimal:
    """Convert a number to Decimal without binary float artifacts."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_money(value: Number) -> Decimal:
    """Round an amount to 2 decimal places (half-up) for reporting."""
    return to_decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def round_percentage(value: Number) -> Decimal:
    """Round a percentage to 1 decimal place (half-up)."""
    return to_decimal(value).quantize(ONE_PLACE, rounding=ROUND_HALF_UP)


def now_millis() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def datetime_to_millis(value: datetime) -> int:
    """Convert a datetime to epoch milliseconds, treating naive values as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(value.timestamp() * 1000)


def millis_to_datetime(millis: int) -> datetime:
    """Convert epoch milliseconds to an aware UTC datetime."""
    return datetime.fromtimestamp(millis / 1000, tz=timezone.utc)


def format_error(message: str, details: Any = None) -> Dict[str, Any]:
    """Format error response."""
    response = {"error": message}
    if details:
        response["details"] = details
    return response
