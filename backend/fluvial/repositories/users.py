from __future__ import annotations
from dataclasses import dataclass, fields
from typing import Any, Dict, List, Optional
from sqlalchemy import select, update, delete, func
from sqlalchemy.orm import Session

from fluvial.models import User
from . import store_call


@dataclass
class UserChanges:
    """Partial update: only attributes left as non-None are written."""
    name: Optional[str] = None
    login: Optional[str] = None
    profile: Optional[str] = None
    cpf: Optional[str] = None
    boat: Optional[str] = None
    sector_id: Optional[int] = None
    password_hash: Optional[str] = None
    active: Optional[bool] = None
    # Nullable attributes that must be cleared explicitly
    clear: tuple = ()

    def values(self) -> Dict[str, Any]:
        out = {}
        for f in fields(self):
            if f.name == 'clear':
                continue
            val = getattr(self, f.name)
            if val is not None:
                out[f.name] = val
            elif f.name in self.clear:
                out[f.name] = None
        return out


class UserRepository:
    def __init__(self, session: Session):
        self.session = session

    @store_call('Erro ao listar usuários.')
    def list_active(self, profile: Optional[str] = None) -> List[User]:
        stmt = select(User).where(User.active.is_(True))
        if profile:
            stmt = stmt.where(func.lower(User.profile) == profile.lower())
        return list(self.session.execute(stmt.order_by(User.name.asc())).scalars())

    @store_call('Erro ao buscar usuário.')
    def get(self, user_id: int) -> Optional[User]:
        return self.session.get(User, user_id)

    @store_call('Erro ao verificar existência do login.')
    def find_by_login(self, login: str, exclude_id: Optional[int] = None) -> Optional[User]:
        stmt = select(User).where(func.lower(User.login) == login.lower())
        if exclude_id is not None:
            stmt = stmt.where(User.id != exclude_id)
        return self.session.execute(stmt.limit(1)).scalar_one_or_none()

    @store_call('Erro ao criar usuário.')
    def add(self, user: User) -> User:
        self.session.add(user)
        self.session.flush()
        return user

    @store_call('Erro ao atualizar usuário.')
    def update(self, user_id: int, changes: UserChanges) -> int:
        values = changes.values()
        if not values:
            return 1 if self.get(user_id) else 0
        result = self.session.execute(
            update(User).where(User.id == user_id)
            .values({getattr(User, k): v for k, v in values.items()})
            .execution_options(synchronize_session='fetch')
        )
        return result.rowcount

    @store_call('Erro ao excluir usuário.')
    def delete(self, user_id: int) -> int:
        result = self.session.execute(delete(User).where(User.id == user_id))
        return result.rowcount

__all__ = ['UserRepository', 'UserChanges']
