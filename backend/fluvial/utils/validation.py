from __future__ import annotations
"""Reusable validation helpers for request payloads.

Missing or malformed input raises ValidationError (400) before any store call.
"""
from datetime import date, time
from typing import Any, Iterable, Mapping, Optional
from fluvial.errors import ValidationError


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ''
    return False


def require_fields(data: Mapping[str, Any], fields: Iterable[str], message: Optional[str] = None):
    missing = [f for f in fields if is_blank(data.get(f))]
    if missing:
        raise ValidationError(message or f"Campos obrigatórios faltando: {', '.join(missing)}.")


def parse_date(value: Any, field_name: str) -> Optional[date]:
    if is_blank(value):
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        raise ValidationError(f"{field_name} inválida (use AAAA-MM-DD).")


def parse_time(value: Any, field_name: str) -> Optional[time]:
    if is_blank(value):
        return None
    if isinstance(value, time):
        return value
    try:
        return time.fromisoformat(str(value))
    except ValueError:
        raise ValidationError(f"{field_name} inválido (use HH:MM ou HH:MM:SS).")


def parse_id(value: Any, field_name: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} inválido.")

__all__ = ['is_blank', 'require_fields', 'parse_date', 'parse_time', 'parse_id']
