from __future__ import annotations
"""Configuration defaults resolved from the environment.

Values are read once by `create_app`; callers (tests) may override any key by
passing a dict to the factory.
"""
import os
from typing import Any, Dict
from urllib.parse import quote_plus

DEFAULT_DATABASE_URL = 'sqlite:///fluvial.db'
DEFAULT_POOL_SIZE = 10
DEFAULT_POOL_TIMEOUT = 30
DEFAULT_IDENTIFIER_MAX_ATTEMPTS = 50


def _flag(raw: str | None, default: bool = False) -> bool:
    if raw is None:
        return default
    return raw.strip().lower() in ('1', 'true', 'yes', 'on')


def database_url_from_env() -> str:
    """DATABASE_URL wins; otherwise assemble a MySQL URL from the DB_* variables."""
    url = os.getenv('DATABASE_URL')
    if url:
        return url
    host = os.getenv('DB_HOST')
    name = os.getenv('DB_NAME')
    if host and name:
        user = quote_plus(os.getenv('DB_USER', ''))
        password = quote_plus(os.getenv('DB_PASS', ''))
        port = os.getenv('DB_PORT') or '3306'
        return f"mysql+pymysql://{user}:{password}@{host}:{port}/{name}"
    return DEFAULT_DATABASE_URL


def load_config() -> Dict[str, Any]:
    return {
        'DATABASE_URL': database_url_from_env(),
        'DB_POOL_SIZE': int(os.getenv('DB_POOL_SIZE', DEFAULT_POOL_SIZE)),
        'DB_POOL_TIMEOUT': int(os.getenv('DB_POOL_TIMEOUT', DEFAULT_POOL_TIMEOUT)),
        'JWT_SECRET_KEY': os.getenv('JWT_SECRET_KEY', 'dev-secret'),
        'PORT': int(os.getenv('PORT', 3001)),
        'IDENTIFIER_MAX_ATTEMPTS': int(os.getenv('IDENTIFIER_MAX_ATTEMPTS', DEFAULT_IDENTIFIER_MAX_ATTEMPTS)),
        # Both default off to keep the historical permissive behaviour
        'STRICT_TRANSITIONS': _flag(os.getenv('STRICT_TRANSITIONS')),
        'VERIFY_SCANNED_CODE': _flag(os.getenv('VERIFY_SCANNED_CODE')),
    }

__all__ = ['load_config', 'database_url_from_env']
