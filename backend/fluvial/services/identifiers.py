from __future__ import annotations
"""Collision-checked generators for the public identifiers of a requisition.

Both generators check the store through `exists_with_value(column, value)` and
draw a fresh candidate on collision. The check only reduces retry cost: two
concurrent callers can pass it with the same value, so the unique constraints
on `codigo_publico` / `numero_formatado` remain the real guarantee and the
caller retries an insert that hits them.

Formatted numbers escalate 4 -> 5 -> 6 digits after a single collision in the
current range; the 6 digit range keeps retrying up to the attempt ceiling.
"""
import logging
import random
import string
from typing import Optional, Protocol, Sequence, Tuple

from fluvial.errors import GenerationError, StoreError

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits
CODE_LENGTH = 10
NUMBER_RANGES: Sequence[Tuple[int, int]] = ((1000, 9999), (10000, 99999), (100000, 999999))
DEFAULT_MAX_ATTEMPTS = 50


class ExistenceProbe(Protocol):
    def exists_with_value(self, column: str, value: str) -> bool: ...


class IdentifierGenerator:
    def __init__(self, store: ExistenceProbe, rng: Optional[random.Random] = None, max_attempts: int = DEFAULT_MAX_ATTEMPTS):
        self.store = store
        self.rng = rng or random.SystemRandom()
        self.max_attempts = max(1, max_attempts)

    def draw_public_code(self) -> str:
        return ''.join(self.rng.choice(CODE_ALPHABET) for _ in range(CODE_LENGTH))

    def _exists(self, column: str, value: str) -> bool:
        try:
            return self.store.exists_with_value(column, value)
        except StoreError as e:
            raise GenerationError() from e

    def generate_unique_public_code(self) -> str:
        for attempt in range(1, self.max_attempts + 1):
            code = self.draw_public_code()
            if not self._exists('codigo_publico', code):
                return code
            logger.info('codigo_publico collision on attempt %d', attempt)
        raise GenerationError('Não foi possível gerar um código público único.')

    def generate_unique_formatted_number(self, year: int) -> str:
        range_idx = 0
        for attempt in range(1, self.max_attempts + 1):
            low, high = NUMBER_RANGES[range_idx]
            candidate = f"{self.rng.randint(low, high)}/{year}"
            if not self._exists('numero_formatado', candidate):
                return candidate
            logger.info('numero_formatado collision on attempt %d (%s)', attempt, candidate)
            if range_idx < len(NUMBER_RANGES) - 1:
                range_idx += 1
        raise GenerationError('Não foi possível gerar um número de requisição único.')

__all__ = ['IdentifierGenerator', 'CODE_ALPHABET', 'CODE_LENGTH', 'NUMBER_RANGES']
