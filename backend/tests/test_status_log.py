from sqlalchemy.exc import SQLAlchemyError
from fluvial.models import Requisition
from fluvial.errors import StoreError
from fluvial.repositories.requisitions import RequisitionRepository
from fluvial.services.status_log import StatusLogWriter
from tests.test_lifecycle_helpers import requisition_payload, create_requisition_and_assert, assert_transition, log_entries


def _boom(self, entry):
    raise SQLAlchemyError('status log table unavailable')


def test_creation_survives_log_failure(client, monkeypatch):
    monkeypatch.setattr(StatusLogWriter, '_insert', _boom)
    body = create_requisition_and_assert(client, requisition_payload(7))
    monkeypatch.undo()
    rid = body['id']
    assert log_entries(rid) == []
    detail = client.get(f'/api/requisicoes/{rid}').get_json()
    assert detail['status'] == Requisition.STATUS_PENDING
    assert detail['codigo_publico'] == body['codigo_publico']


def test_transitions_survive_log_failure(client, monkeypatch):
    body = create_requisition_and_assert(client, requisition_payload(7))
    rid = body['id']
    monkeypatch.setattr(StatusLogWriter, '_insert', _boom)
    assert_transition(client, 'post', f'/api/requisicoes/{rid}/assinar', {'representante_id': 8, 'acao': 'APROVAR'}, 200, Requisition.STATUS_APPROVED)
    assert_transition(client, 'post', f'/api/requisicoes/{rid}/validar', {'transportador_id': 9, 'codigo_lido': 'X'}, 200, Requisition.STATUS_USED)
    monkeypatch.undo()
    assert client.get(f'/api/requisicoes/{rid}').get_json()['status'] == Requisition.STATUS_USED
    assert [e.new_status for e in log_entries(rid)] == [Requisition.STATUS_PENDING]


def test_log_writer_reports_soft_failure(session, monkeypatch):
    monkeypatch.setattr(StatusLogWriter, '_insert', _boom)
    result = StatusLogWriter(session).append(1, None, Requisition.STATUS_PENDING, 7)
    assert result.ok is False
    assert isinstance(result.error, SQLAlchemyError)
    session.rollback()


def test_store_fault_during_generation_is_500(client, monkeypatch):
    def down(self, column, value):
        raise StoreError('down')
    monkeypatch.setattr(RequisitionRepository, 'exists_with_value', down)
    resp = client.post('/api/requisicoes', json=requisition_payload(7))
    assert resp.status_code == 500
    body = resp.get_json()
    assert body['message'] == 'Erro ao gerar código público da requisição.'
    assert body['error']['kind'] == 'generation'


def test_store_fault_on_status_update_is_500(client, monkeypatch):
    body = create_requisition_and_assert(client, requisition_payload(7))
    rid = body['id']

    def broken(self, requisition, new_status):
        raise StoreError('Erro ao atualizar status.')
    monkeypatch.setattr(RequisitionRepository, 'update_status', broken)
    resp = client.put(f'/api/requisicoes/{rid}/autorizar', json={'usuario_id': 8})
    assert resp.status_code == 500
    assert resp.get_json()['error']['status'] == 500
    monkeypatch.undo()
    assert client.get(f'/api/requisicoes/{rid}').get_json()['status'] == Requisition.STATUS_PENDING
    assert len(log_entries(rid)) == 1


def test_signature_write_failure_fails_sign(client, monkeypatch):
    body = create_requisition_and_assert(client, requisition_payload(7))
    rid = body['id']

    def broken(self, record):
        raise StoreError('Erro ao registrar assinatura.')
    monkeypatch.setattr(RequisitionRepository, 'add_signature', broken)
    resp = client.post(f'/api/requisicoes/{rid}/assinar', json={'representante_id': 8, 'acao': 'APROVAR'})
    assert resp.status_code == 500
    monkeypatch.undo()
    # the status change rolled back with the signature
    assert client.get(f'/api/requisicoes/{rid}').get_json()['status'] == Requisition.STATUS_PENDING
    assert len(log_entries(rid)) == 1
