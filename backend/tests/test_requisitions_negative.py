import pytest
from fluvial.models import Requisition
from tests.test_lifecycle_helpers import requisition_payload, create_requisition_and_assert, assert_transition, log_entries

MISSING = 999999


@pytest.mark.parametrize('field', ['emissor_id', 'passageiro_nome', 'origem', 'destino', 'data_ida'])
def test_create_requires_fields(client, field):
    payload = requisition_payload(7)
    payload.pop(field)
    resp = client.post('/api/requisicoes', json=payload)
    assert resp.status_code == 400
    body = resp.get_json()
    assert body['message']
    assert body['error']['kind'] == 'validation'


def test_create_rejects_malformed_date(client):
    resp = client.post('/api/requisicoes', json=requisition_payload(7, data_ida='10/12/2025'))
    assert resp.status_code == 400
    assert 'data_ida' in resp.get_json()['message']


def test_transitions_require_actor(client):
    body = create_requisition_and_assert(client, requisition_payload(7))
    rid = body['id']
    assert_transition(client, 'put', f'/api/requisicoes/{rid}/autorizar', {}, 400)
    assert_transition(client, 'put', f'/api/requisicoes/{rid}/cancelar', {'observacao': 'x'}, 400)
    assert_transition(client, 'post', f'/api/requisicoes/{rid}/assinar', {'representante_id': 8}, 400)
    assert_transition(client, 'post', f'/api/requisicoes/{rid}/assinar', {'acao': 'APROVAR'}, 400)
    assert_transition(client, 'post', f'/api/requisicoes/{rid}/validar', {'transportador_id': 9}, 400)
    assert_transition(client, 'post', f'/api/requisicoes/{rid}/validar', {'codigo_lido': body['codigo_publico']}, 400)
    # nothing reached the store
    assert len(log_entries(rid)) == 1
    assert client.get(f'/api/requisicoes/{rid}').get_json()['status'] == Requisition.STATUS_PENDING


def test_unknown_requisition_is_404(client):
    assert client.get(f'/api/requisicoes/{MISSING}').status_code == 404
    assert client.get(f'/api/requisicoes/{MISSING}/historico').status_code == 404
    assert_transition(client, 'put', f'/api/requisicoes/{MISSING}/autorizar', {'usuario_id': 8}, 404)
    assert_transition(client, 'put', f'/api/requisicoes/{MISSING}/cancelar', {'usuario_id': 8}, 404)
    assert_transition(client, 'post', f'/api/requisicoes/{MISSING}/assinar', {'representante_id': 8, 'acao': 'APROVAR'}, 404)
    resp = assert_transition(client, 'post', f'/api/requisicoes/{MISSING}/validar', {'transportador_id': 9, 'codigo_lido': 'X'}, 404)
    assert resp.get_json()['message'] == 'Requisição não encontrada.'


def test_strict_mode_rejects_undeclared_transitions(client, app_instance, monkeypatch):
    monkeypatch.setitem(app_instance.config, 'STRICT_TRANSITIONS', True)
    body = create_requisition_and_assert(client, requisition_payload(7))
    rid = body['id']
    # validate before approval
    resp = assert_transition(client, 'post', f'/api/requisicoes/{rid}/validar', {'transportador_id': 9, 'codigo_lido': 'X'}, 409)
    assert resp.get_json()['error']['kind'] == 'invalid_transition'
    assert_transition(client, 'put', f'/api/requisicoes/{rid}/cancelar', {'usuario_id': 8}, 200, Requisition.STATUS_CANCELLED)
    # still idempotent in strict mode
    assert_transition(client, 'put', f'/api/requisicoes/{rid}/cancelar', {'usuario_id': 8}, 200, Requisition.STATUS_CANCELLED)
    assert_transition(client, 'put', f'/api/requisicoes/{rid}/autorizar', {'usuario_id': 8}, 409)
    assert client.get(f'/api/requisicoes/{rid}').get_json()['status'] == Requisition.STATUS_CANCELLED
    assert len(log_entries(rid)) == 2


def test_validate_accepts_any_code_by_default(client):
    body = create_requisition_and_assert(client, requisition_payload(7))
    rid = body['id']
    assert_transition(client, 'post', f'/api/requisicoes/{rid}/validar', {'transportador_id': 9, 'codigo_lido': 'NOT-THE-CODE'}, 200, Requisition.STATUS_USED)


def test_validate_checks_scanned_code_when_enabled(client, app_instance, monkeypatch):
    monkeypatch.setitem(app_instance.config, 'VERIFY_SCANNED_CODE', True)
    body = create_requisition_and_assert(client, requisition_payload(7))
    rid = body['id']
    resp = assert_transition(client, 'post', f'/api/requisicoes/{rid}/validar', {'transportador_id': 9, 'codigo_lido': 'WRONGCODE0'}, 422)
    assert resp.get_json()['error']['kind'] == 'validation_mismatch'
    assert client.get(f'/api/requisicoes/{rid}').get_json()['status'] == Requisition.STATUS_PENDING
    assert_transition(client, 'post', f'/api/requisicoes/{rid}/validar', {'transportador_id': 9, 'codigo_lido': body['codigo_publico'].lower()}, 200, Requisition.STATUS_USED)
