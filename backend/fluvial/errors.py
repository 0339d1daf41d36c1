from __future__ import annotations
"""Error taxonomy shared by services, repositories and route handlers.

Services raise these instead of calling `flask.abort`; the application error
handler renders them as JSON with a human readable `message`.
"""
from typing import Optional


class AppError(Exception):
    status_code = 500
    title = 'Internal Server Error'
    kind = 'internal'
    default_message = 'Erro interno no servidor.'

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self):
        return {
            'message': self.message,
            'error': {
                'status': self.status_code,
                'title': self.title,
                'detail': self.message,
                'kind': self.kind,
            },
        }


class ValidationError(AppError):
    status_code = 400
    title = 'Bad Request'
    kind = 'validation'
    default_message = 'Dados incompletos.'


class AuthenticationError(AppError):
    status_code = 401
    title = 'Unauthorized'
    kind = 'authentication'
    default_message = 'Usuário ou senha inválidos.'


class NotFoundError(AppError):
    status_code = 404
    title = 'Not Found'
    kind = 'not_found'
    default_message = 'Registro não encontrado.'


class ConflictError(AppError):
    status_code = 409
    title = 'Conflict'
    kind = 'conflict'
    default_message = 'Registro já existe.'


class InvalidTransitionError(ConflictError):
    kind = 'invalid_transition'
    default_message = 'Transição de status inválida.'


class ValidationMismatchError(AppError):
    status_code = 422
    title = 'Unprocessable Entity'
    kind = 'validation_mismatch'
    default_message = 'Código lido não corresponde à requisição.'


class GenerationError(AppError):
    """Identifier generation gave up (store fault or retry ceiling reached)."""
    kind = 'generation'
    default_message = 'Erro ao gerar código público da requisição.'


class StoreError(AppError):
    kind = 'store'
    default_message = 'Erro interno no servidor.'


__all__ = [
    'AppError', 'ValidationError', 'AuthenticationError', 'NotFoundError', 'ConflictError',
    'InvalidTransitionError', 'ValidationMismatchError', 'GenerationError', 'StoreError',
]
