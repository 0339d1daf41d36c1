from __future__ import annotations
from typing import Protocol
from werkzeug.security import generate_password_hash, check_password_hash


class CredentialVerifier(Protocol):
    def hash(self, raw: str) -> str: ...

    def verify(self, stored: str, raw: str) -> bool: ...


class WerkzeugCredentialVerifier:
    """Salted hash storage (werkzeug's scrypt/pbkdf2 format)."""

    def hash(self, raw: str) -> str:
        return generate_password_hash(raw)

    def verify(self, stored: str, raw: str) -> bool:
        if not stored:
            return False
        return check_password_hash(stored, raw)


default_verifier = WerkzeugCredentialVerifier()

__all__ = ['CredentialVerifier', 'WerkzeugCredentialVerifier', 'default_verifier']
