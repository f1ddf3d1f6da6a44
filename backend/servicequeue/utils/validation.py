from __future__ import annotations
"""Reusable validation helpers for request payloads and query strings.

Failures raise ValidationError so handlers get the standard 400 error shape.
"""
from datetime import date, datetime
from typing import Any, Iterable, Optional
from servicequeue.errors import ValidationError

DATE_FORMAT = '%Y-%m-%d'


def validate_status(new_status: str, allowed: Iterable[str], field_name: str = 'status') -> str:
    """Validate that new_status is inside allowed.

    Returns the status (to enable inline usage) or raises ValidationError.
    """
    if new_status not in allowed:
        raise ValidationError(f"{field_name} invalid")
    return new_status


def parse_service_date(raw: Optional[str], default: Optional[date] = None) -> date:
    """Parse a YYYY-MM-DD string; ``default`` is returned when raw is empty."""
    if not raw:
        if default is not None:
            return default
        raise ValidationError('service_date is required')
    try:
        return datetime.strptime(raw, DATE_FORMAT).date()
    except (TypeError, ValueError):
        raise ValidationError('Invalid service_date format. Use YYYY-MM-DD')


def require_fields(data: dict, *names: str) -> None:
    missing = [n for n in names if data.get(n) in (None, '')]
    if missing:
        raise ValidationError(f"{', '.join(missing)} required")


def as_number(value: Any, field_name: str, default: float = 0.0) -> float:
    if value is None:
        return default
    if isinstance(value, bool):
        raise ValidationError(f'{field_name} must be a number')
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValidationError(f'{field_name} must be a number')


def as_int(value: Any, field_name: str, default: Optional[int] = None) -> int:
    if value is None:
        if default is None:
            raise ValidationError(f'{field_name} required')
        return default
    if isinstance(value, bool):
        raise ValidationError(f'{field_name} must be an integer')
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f'{field_name} must be an integer')


__all__ = ['validate_status', 'parse_service_date', 'require_fields', 'as_number', 'as_int', 'DATE_FORMAT']
