def test_health(client):
    resp = client.get('/api/health')
    assert resp.status_code == 200
    assert resp.get_json()['ok'] is True


def test_unknown_path_returns_error_json(client):
    resp = client.get('/non-existent-path')
    # Flask default 404 should be wrapped by error handler
    assert resp.status_code == 404
    body = resp.get_json()
    assert 'error' in body
    assert body['error']['status'] == 404
    assert 'detail' in body['error']
    assert body['message']


def test_internal_error_shape(client, monkeypatch):
    import fluvial.routes.requisitions as req_mod

    class BoomSession:
        def execute(self, *a, **k):
            raise RuntimeError('explode')

        def rollback(self):
            pass
    monkeypatch.setattr(req_mod, 'get_db', lambda: BoomSession())
    resp = client.get('/api/requisicoes/pendentes')
    assert resp.status_code == 500
    body = resp.get_json()
    assert body['error']['status'] == 500
    assert body['error']['title'] == 'Internal Server Error'
    assert 'explode' not in body['message']
