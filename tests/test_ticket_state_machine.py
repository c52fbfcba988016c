import pytest

from helpdesk.tickets.errors import InvalidStatusError
from helpdesk.tickets.state import AuthorRole, TicketStateMachine, TicketStatus


def test_initial_state_is_open():
    assert TicketStateMachine.initial_state() is TicketStatus.OPEN


@pytest.mark.parametrize("current", list(TicketStatus))
@pytest.mark.parametrize("target", list(TicketStatus))
def test_agents_may_move_between_any_states(current, target):
    assert TicketStateMachine.agent_transition(current, target.value) is target


@pytest.mark.parametrize("value", ["bogus", "Closed", "in_progress", "", None])
def test_unknown_status_values_are_rejected(value):
    with pytest.raises(InvalidStatusError):
        TicketStateMachine.parse(value)


def test_requester_message_forces_new_alert():
    assert TicketStateMachine.status_forced_by_message(AuthorRole.REQUESTER) is TicketStatus.NEW_ALERT
    assert TicketStateMachine.status_forced_by_message(AuthorRole.AGENT) is None


def test_agent_transition_rejects_unknown_target():
    with pytest.raises(InvalidStatusError):
        TicketStateMachine.agent_transition(TicketStatus.OPEN, "archived")
