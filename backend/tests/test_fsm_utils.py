from servicequeue.errors import InvalidStateTransition, ValidationError
from servicequeue.services.queue import TICKET_FSM
from servicequeue.utils.fsm import TransitionValidator
from servicequeue.utils.validation import validate_status, parse_service_date
from datetime import date
import pytest


def test_transition_validator_allows_valid():
    fsm = TransitionValidator({'A': {'B'}, 'B': set()})
    assert fsm.assert_can_transition('A', 'B') is True


def test_transition_validator_blocks_invalid():
    fsm = TransitionValidator({'A': {'B'}, 'B': set()})
    with pytest.raises(InvalidStateTransition) as exc:
        fsm.assert_can_transition('A', 'C')
    assert 'A -> C' in exc.value.description


def test_transition_validator_uses_target_message():
    fsm = TransitionValidator({'A': {'B'}, 'B': set()}, messages={'B': 'must be A first'})
    with pytest.raises(InvalidStateTransition) as exc:
        fsm.assert_can_transition('B', 'B')
    assert exc.value.description == 'must be A first'


def test_ticket_fsm_terminal_states_have_no_exits():
    for status in ('completed', 'canceled', 'no_show'):
        assert TICKET_FSM.targets(status) == set()


def test_validate_status_helper():
    assert validate_status('high', ('urgent', 'high')) == 'high'
    with pytest.raises(ValidationError):
        validate_status('whenever', ('urgent', 'high'), field_name='priority')


def test_parse_service_date():
    assert parse_service_date('2026-03-02') == date(2026, 3, 2)
    assert parse_service_date(None, default=date(2026, 1, 1)) == date(2026, 1, 1)
    with pytest.raises(ValidationError) as exc:
        parse_service_date('02/03/2026')
    assert exc.value.description == 'Invalid service_date format. Use YYYY-MM-DD'
