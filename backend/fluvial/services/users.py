from __future__ import annotations
import logging
from typing import Any, Dict, List, Optional
from sqlalchemy.orm import Session

from fluvial.errors import AuthenticationError, ConflictError, NotFoundError, ValidationError
from fluvial.models import User
from fluvial.repositories.users import UserRepository, UserChanges
from fluvial.services.credentials import CredentialVerifier, default_verifier
from fluvial.utils.validation import is_blank, require_fields, parse_id

logger = logging.getLogger(__name__)


def _optional(value):
    return None if is_blank(value) else value


class UserService:
    def __init__(self, session: Session, verifier: Optional[CredentialVerifier] = None):
        self.session = session
        self.repo = UserRepository(session)
        self.verifier = verifier or default_verifier

    def authenticate(self, login: Any, password: Any) -> User:
        if is_blank(login) or is_blank(password):
            raise ValidationError('Informe login e senha.')
        user = self.repo.find_by_login(str(login).strip())
        if user is None or not user.active or not self.verifier.verify(user.password_hash, str(password)):
            logger.info('login rejected for %s', login)
            raise AuthenticationError()
        return user

    def list(self, profile: Optional[str] = None) -> List[User]:
        return self.repo.list_active(_optional(profile))

    def create(self, data: Dict[str, Any]) -> User:
        require_fields(data, ['nome', 'login', 'senha', 'tipo'], 'Nome, login, senha e tipo são obrigatórios.')
        login = str(data['login']).strip()
        if self.repo.find_by_login(login):
            raise ConflictError('Já existe um usuário com esse login.')
        user = User(
            name=str(data['nome']).strip(),
            login=login,
            password_hash=self.verifier.hash(str(data['senha'])),
            profile=str(data['tipo']).lower(),
            cpf=_optional(data.get('cpf')),
            boat=_optional(data.get('barco')),
            sector_id=parse_id(data['setor_id'], 'setor_id') if not is_blank(data.get('setor_id')) else None,
            active=True,
        )
        self.repo.add(user)
        self.session.commit()
        logger.info('user %s (%s) created', user.id, user.login)
        return user

    def update(self, user_id: int, data: Dict[str, Any]) -> None:
        require_fields(data, ['nome', 'login', 'tipo'], 'Nome, login e tipo são obrigatórios.')
        login = str(data['login']).strip()
        if self.repo.find_by_login(login, exclude_id=user_id):
            raise ConflictError('Já existe um usuário com esse login.')
        changes = UserChanges(
            name=str(data['nome']).strip(),
            login=login,
            profile=str(data['tipo']).lower(),
            cpf=_optional(data.get('cpf')),
            boat=_optional(data.get('barco')),
            sector_id=parse_id(data['setor_id'], 'setor_id') if not is_blank(data.get('setor_id')) else None,
            clear=('cpf', 'boat', 'sector_id'),
        )
        # Password only changes when a non blank one is sent
        if not is_blank(data.get('senha')):
            changes.password_hash = self.verifier.hash(str(data['senha']))
        if self.repo.update(user_id, changes) == 0:
            self.session.rollback()
            raise NotFoundError('Usuário não encontrado.')
        self.session.commit()

    def delete(self, user_id: int) -> None:
        if self.repo.delete(user_id) == 0:
            self.session.rollback()
            raise NotFoundError('Usuário não encontrado.')
        self.session.commit()

__all__ = ['UserService']
