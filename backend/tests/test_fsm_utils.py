from fluvial.utils.fsm import TransitionValidator
from fluvial.errors import InvalidTransitionError
from fluvial.services.requisitions import REQUISITION_FSM
from fluvial.models import Requisition
import pytest


def test_transition_validator_allows_valid():
    fsm = TransitionValidator({'A': {'B'}, 'B': set()})
    assert fsm.assert_can_transition('A', 'B') is True


def test_transition_validator_blocks_invalid():
    fsm = TransitionValidator({'A': {'B'}, 'B': set()})
    with pytest.raises(InvalidTransitionError):
        fsm.assert_can_transition('A', 'C')


def test_merged_graph_unions_targets():
    a = TransitionValidator({'A': {'B'}})
    b = TransitionValidator({'A': {'C'}, 'C': {'D'}})
    merged = a.merged(b)
    assert merged.can_transition('A', 'B')
    assert merged.can_transition('A', 'C')
    assert merged.can_transition('C', 'D')
    assert merged.states == {'A', 'B', 'C', 'D'}
    # source graphs untouched
    assert a.graph == {'A': {'B'}}


def test_requisition_graph_covers_every_status():
    assert REQUISITION_FSM.states == set(Requisition.ALL_STATUSES)
    assert REQUISITION_FSM.can_transition(Requisition.STATUS_PENDING, Requisition.STATUS_AUTHORIZED)
    assert REQUISITION_FSM.can_transition(Requisition.STATUS_APPROVED, Requisition.STATUS_USED)
    assert not REQUISITION_FSM.can_transition(Requisition.STATUS_CANCELLED, Requisition.STATUS_AUTHORIZED)
    assert not REQUISITION_FSM.can_transition(Requisition.STATUS_USED, Requisition.STATUS_USED)
