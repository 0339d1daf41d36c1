from __future__ import annotations
"""Persistence boundary.

Repositories receive the session they work on; they flush but never commit,
leaving the transaction boundary to the calling service.
"""
from functools import wraps
from sqlalchemy.exc import SQLAlchemyError
from fluvial.errors import StoreError


def store_call(message: str):
    """Translate SQLAlchemy faults raised by the wrapped call into StoreError(message)."""
    def outer(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            try:
                return fn(*args, **kwargs)
            except SQLAlchemyError as e:
                raise StoreError(message) from e
        return wrapper
    return outer

__all__ = ['store_call']
