from __future__ import annotations
"""Small finite state machine helper for status lifecycles.

Usage:
    from servicequeue.utils.fsm import TransitionValidator
    TICKET_FSM = TransitionValidator({
        'waiting': {'called', 'canceled'},
        'called': {'in_service'},
        'in_service': set(),
    }, messages={'in_service': 'customer must be called before starting service'})
    TICKET_FSM.assert_can_transition(ticket.status, 'in_service')

Raises InvalidStateTransition when the edge is not in the graph. A message
registered for the target status replaces the generic description.
"""
from typing import Dict, Optional, Set
from servicequeue.errors import InvalidStateTransition


class TransitionValidator:
    def __init__(self, graph: Dict[str, Set[str]], field_name: str = 'status',
                 messages: Optional[Dict[str, str]] = None):
        self.graph = graph
        self.field_name = field_name
        self.messages = messages or {}

    def can_transition(self, current: str, target: str) -> bool:
        return target in self.graph.get(current, set())

    def assert_can_transition(self, current: str, target: str, message: Optional[str] = None):
        if not self.can_transition(current, target):
            detail = message or self.messages.get(target) or f"invalid {self.field_name} transition {current} -> {target}"
            raise InvalidStateTransition(detail)
        return True

    def targets(self, current: str) -> Set[str]:
        return set(self.graph.get(current, set()))


__all__ = ['TransitionValidator']
