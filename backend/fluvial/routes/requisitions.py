from __future__ import annotations
from typing import Any, Dict
from flask import Blueprint, request, current_app

from fluvial import get_db
from fluvial.models import Requisition, StatusLogEntry, SignatureRecord, ValidationRecord
from fluvial.services.requisitions import RequisitionService, RequisitionDraft

req_bp = Blueprint('requisitions', __name__)


def _service() -> RequisitionService:
    cfg = current_app.config
    return RequisitionService(
        get_db(),
        strict=cfg.get('STRICT_TRANSITIONS', False),
        verify_scanned_code=cfg.get('VERIFY_SCANNED_CODE', False),
        max_attempts=cfg.get('IDENTIFIER_MAX_ATTEMPTS', 50),
    )


def _iso(value):
    return value.isoformat() if value is not None and hasattr(value, 'isoformat') else value


def _requisition_json(r: Requisition) -> Dict[str, Any]:
    return {
        'id': r.id,
        'codigo_publico': r.public_code,
        'numero_formatado': r.formatted_number,
        'emissor_id': r.issuer_id,
        'setor_id': r.sector_id,
        'passageiro_nome': r.passenger_name,
        'passageiro_cpf': r.passenger_cpf,
        'passageiro_matricula': r.passenger_registration,
        'origem': r.origin,
        'destino': r.destination,
        'data_ida': _iso(r.departure_date),
        'data_volta': _iso(r.return_date),
        'horario_embarque': _iso(r.boarding_time),
        'justificativa': r.justification,
        'observacoes': r.notes,
        'status': r.status,
        'created_at': _iso(r.created_at),
        'updated_at': _iso(r.updated_at),
    }


def _detail_json(detail: Dict[str, Any]) -> Dict[str, Any]:
    body = _requisition_json(detail['requisition'])
    body.update({
        'emissor_nome': detail['issuer_name'],
        'emissor_cpf': detail['issuer_cpf'],
        'setor_nome': detail['sector_name'],
    })
    if 'representative_name' in detail:
        body['representante_nome'] = detail['representative_name']
        body['representante_cpf'] = detail['representative_cpf']
    if 'signatures' in detail:
        body['assinaturas'] = [_signature_json(s) for s in detail['signatures']]
        body['validacoes'] = [_validation_json(v) for v in detail['validations']]
    return body


def _signature_json(s: SignatureRecord) -> Dict[str, Any]:
    return {
        'id': s.id,
        'representante_id': s.representative_id,
        'acao': s.action,
        'motivo_recusa': s.rejection_reason,
        'created_at': _iso(s.created_at),
    }


def _validation_json(v: ValidationRecord) -> Dict[str, Any]:
    return {
        'id': v.id,
        'transportador_id': v.carrier_id,
        'tipo_validacao': v.validation_type,
        'codigo_lido': v.scanned_code,
        'local_validacao': v.location,
        'observacao': v.note,
        'created_at': _iso(v.created_at),
    }


def _log_json(e: StatusLogEntry) -> Dict[str, Any]:
    return {
        'id': e.id,
        'requisicao_id': e.requisition_id,
        'status_anterior': e.previous_status,
        'status_novo': e.new_status,
        'usuario_id': e.user_id,
        'observacao': e.note,
        'created_at': _iso(e.created_at),
    }


@req_bp.get('/requisicoes')
def list_requisitions():
    args = request.args
    rows = _service().list(
        status=args.get('status'),
        date_from=args.get('data_ini') or args.get('date_from'),
        date_to=args.get('data_fim') or args.get('date_to'),
        issuer_id=args.get('emissor_id'),
    )
    return [_detail_json(d) for d in rows]


@req_bp.post('/requisicoes')
def create_requisition():
    data = request.get_json(silent=True) or {}
    result = _service().create(RequisitionDraft(
        issuer_id=data.get('emissor_id'),
        passenger_name=data.get('passageiro_nome'),
        origin=data.get('origem'),
        destination=data.get('destino'),
        departure_date=data.get('data_ida'),
        passenger_cpf=data.get('passageiro_cpf'),
        passenger_registration=data.get('passageiro_matricula'),
        sector_id=data.get('setor_id'),
        return_date=data.get('data_volta'),
        boarding_time=data.get('horario_embarque'),
        justification=data.get('justificativa'),
        notes=data.get('observacoes'),
    ))
    return {
        'id': result.id,
        'codigo_publico': result.public_code,
        'numero_formatado': result.formatted_number,
        'status': result.status,
    }, 201


@req_bp.get('/requisicoes/pendentes')
def list_pending():
    return [_detail_json(d) for d in _service().list_pending()]


@req_bp.get('/requisicoes/emissor/<int:issuer_id>')
def list_by_issuer(issuer_id: int):
    return [_detail_json(d) for d in _service().list_by_issuer(issuer_id)]


@req_bp.get('/requisicoes/<int:requisition_id>')
def get_requisition(requisition_id: int):
    return _detail_json(_service().get(requisition_id))


@req_bp.get('/requisicoes/<int:requisition_id>/historico')
def get_history(requisition_id: int):
    return [_log_json(e) for e in _service().history(requisition_id)]


@req_bp.put('/requisicoes/<int:requisition_id>/autorizar')
def authorize_requisition(requisition_id: int):
    data = request.get_json(silent=True) or {}
    result = _service().authorize(requisition_id, data.get('usuario_id'), data.get('observacao'))
    return {'id': result.id, 'status': result.status, 'message': result.message}


@req_bp.put('/requisicoes/<int:requisition_id>/cancelar')
def cancel_requisition(requisition_id: int):
    data = request.get_json(silent=True) or {}
    result = _service().cancel(requisition_id, data.get('usuario_id'), data.get('observacao'))
    return {'id': result.id, 'status': result.status, 'message': result.message}


@req_bp.post('/requisicoes/<int:requisition_id>/assinar')
def sign_requisition(requisition_id: int):
    data = request.get_json(silent=True) or {}
    result = _service().sign(requisition_id, data.get('representante_id'), data.get('acao'), data.get('motivo_recusa'))
    return {'ok': True, 'id': result.id, 'status': result.status}


@req_bp.post('/requisicoes/<int:requisition_id>/validar')
def validate_requisition(requisition_id: int):
    data = request.get_json(silent=True) or {}
    result = _service().validate(
        requisition_id,
        data.get('transportador_id'),
        data.get('codigo_lido'),
        validation_type=data.get('tipo_validacao'),
        location=data.get('local_validacao'),
        note=data.get('observacao'),
    )
    return {'ok': True, 'id': result.id, 'status': result.status}
