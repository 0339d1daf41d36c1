from datetime import date, time
import pytest
from fluvial.errors import ValidationError
from fluvial.utils.filters import apply_filters
from fluvial.utils.validation import require_fields, parse_date, parse_time, parse_id, is_blank


class RecordingQuery:
    def __init__(self, applied=()):
        self.applied = list(applied)

    def where(self, clause):
        return RecordingQuery(self.applied + [clause])


SPECS = {
    'status': {'op': lambda q, v: q.where(('status', v))},
    'issuer_id': {'op': lambda q, v: q.where(('issuer_id', v)), 'coerce': int, 'validate': lambda v: v > 0},
}


def test_apply_filters_skips_omitted_params():
    q = apply_filters(RecordingQuery(), SPECS, {'status': None})
    assert q.applied == []


def test_apply_filters_chains_and_coerces():
    q = apply_filters(RecordingQuery(), SPECS, {'status': 'PENDENTE', 'issuer_id': '12'})
    assert q.applied == [('status', 'PENDENTE'), ('issuer_id', 12)]


@pytest.mark.parametrize('raw', ['abc', '0'])
def test_apply_filters_rejects_bad_values(raw):
    with pytest.raises(ValidationError):
        apply_filters(RecordingQuery(), SPECS, {'issuer_id': raw})


def test_require_fields_lists_missing():
    with pytest.raises(ValidationError) as exc:
        require_fields({'a': 'x', 'b': '  '}, ['a', 'b', 'c'])
    assert 'b, c' in exc.value.message
    require_fields({'a': 0}, ['a'])


def test_parsers():
    assert parse_date('2025-12-10', 'data_ida') == date(2025, 12, 10)
    assert parse_date('2025-12-10T08:00:00', 'data_ida') == date(2025, 12, 10)
    assert parse_date('', 'data_volta') is None
    assert parse_time('07:30', 'horario_embarque') == time(7, 30)
    assert parse_id('42', 'usuario_id') == 42
    assert is_blank(None) and is_blank(' ') and not is_blank(0)
    with pytest.raises(ValidationError):
        parse_time('7h30', 'horario_embarque')
    with pytest.raises(ValidationError):
        parse_id(None, 'usuario_id')
