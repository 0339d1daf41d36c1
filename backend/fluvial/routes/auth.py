from __future__ import annotations
from flask import Blueprint, request
from flask_jwt_extended import create_access_token
from fluvial import get_db
from fluvial.services.users import UserService

auth_bp = Blueprint('auth', __name__)


@auth_bp.post('/login')
def login():
    data = request.get_json(silent=True) or {}
    user = UserService(get_db()).authenticate(data.get('login'), data.get('senha'))
    tipo = (user.profile or '').lower()
    token = create_access_token(identity=str(user.id), additional_claims={'tipo': tipo, 'setor_id': user.sector_id})
    return {
        'user': {
            'id': user.id,
            'nome': user.name,
            'login': user.login,
            'tipo': tipo,
            'setor_id': user.sector_id,
        },
        'token': token,
    }
