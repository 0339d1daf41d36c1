from __future__ import annotations
"""Finite state machine utility describing the allowed requisition transitions.

Usage:
    from fluvial.utils.fsm import TransitionValidator
    FSM = TransitionValidator({
        'PENDENTE': {'AUTORIZADA', 'CANCELADA'},
        'AUTORIZADA': set(),
    })
    FSM.can_transition(current_status, target_status)
    FSM.assert_can_transition(current_status, target_status)

`assert_can_transition` raises InvalidTransitionError (409) when the edge is not declared.
"""
from typing import Dict, Set
from fluvial.errors import InvalidTransitionError


class TransitionValidator:
    def __init__(self, graph: Dict[str, Set[str]], field_name: str = 'status'):
        self.graph = graph
        self.field_name = field_name

    @property
    def states(self) -> Set[str]:
        out = set(self.graph)
        for targets in self.graph.values():
            out |= targets
        return out

    def can_transition(self, current: str, target: str) -> bool:
        return target in self.graph.get(current, set())

    def assert_can_transition(self, current: str, target: str):
        if not self.can_transition(current, target):
            raise InvalidTransitionError(f"Invalid {self.field_name} transition {current} -> {target}")
        return True

    def merged(self, *others: 'TransitionValidator') -> 'TransitionValidator':
        graph: Dict[str, Set[str]] = {k: set(v) for k, v in self.graph.items()}
        for other in others:
            for state, targets in other.graph.items():
                graph.setdefault(state, set()).update(targets)
        return TransitionValidator(graph, self.field_name)

__all__ = ['TransitionValidator']
