"""
Formatting and parsing helpers shared by services, the PDF renderer and
the API layer.
"""
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Iterable, Optional, Union

from rebath.exceptions import ValidationError


def format_currency(value: Union[int, float, Decimal, str, None]) -> str:
    """
    Format an amount as US currency.

    Examples:
        format_currency(1500) -> "$1,500.00"
        format_currency(Decimal('28.8')) -> "$28.80"
        format_currency(None) -> "$0.00"
    """
    if value is None or value == "":
        return "$0.00"
    try:
        num = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return "$0.00"
    sign = "-" if num < 0 else ""
    return f"{sign}${abs(num):,.2f}"


def format_date(value: Union[date, datetime, None]) -> str:
    """'January 5, 2025' style date; '-' when missing."""
    if value is None:
        return "-"
    return f"{value.strftime('%B')} {value.day}, {value.year}"


def humanize(value: Optional[str]) -> str:
    """'quote_ready' -> 'Quote Ready'."""
    if not value:
        return "-"
    return value.replace('_', ' ').title()


def parse_date(value, field_name: str = 'date') -> Optional[date]:
    """Accept a date, a datetime or an ISO 'YYYY-MM-DD' string. Blank -> None."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        raise ValidationError(f'{field_name} must be a date (YYYY-MM-DD)')


def parse_choice(value, choices: Iterable[str], field_name: str) -> str:
    """Validate a value against an enum's string values."""
    choices = list(choices)
    if value not in choices:
        raise ValidationError(f"{field_name} must be one of: {', '.join(choices)}")
    return value


def parse_text(value, field_name: str, required: bool = False) -> Optional[str]:
    """Strip a text field from JSON. Blank -> None; non-strings are rejected."""
    if value is None:
        text = ''
    elif isinstance(value, str):
        text = value.strip()
    else:
        raise ValidationError(f'{field_name} must be text')
    if required and not text:
        raise ValidationError(f'{field_name} is required')
    return text or None


def parse_int(value, field_name: str, default: int = 0) -> int:
    """Whole numbers from JSON or query strings. Blank -> default."""
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        raise ValidationError(f'{field_name} must be a whole number')
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        raise ValidationError(f'{field_name} must be a whole number')
