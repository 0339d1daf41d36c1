from __future__ import annotations
from flask import Blueprint, request
from fluvial import get_db
from fluvial.models import User
from fluvial.services.users import UserService

users_bp = Blueprint('users', __name__)


def _user_json(u: User):
    return {
        'id': u.id,
        'nome': u.name,
        'login': u.login,
        'perfil': u.profile,
        'cpf': u.cpf,
        'barco': u.boat,
        'setor_id': u.sector_id,
        'ativo': u.active,
    }


@users_bp.get('/usuarios')
def list_users():
    return [_user_json(u) for u in UserService(get_db()).list(request.args.get('perfil'))]


@users_bp.post('/usuarios')
def create_user():
    user = UserService(get_db()).create(request.get_json(silent=True) or {})
    return _user_json(user), 201


@users_bp.put('/usuarios/<int:user_id>')
def update_user(user_id: int):
    UserService(get_db()).update(user_id, request.get_json(silent=True) or {})
    return {'message': 'Usuário atualizado com sucesso.'}


@users_bp.delete('/usuarios/<int:user_id>')
def delete_user(user_id: int):
    UserService(get_db()).delete(user_id)
    return {'message': 'Usuário excluído com sucesso.'}
