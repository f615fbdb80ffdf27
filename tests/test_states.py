import pytest

from wa_gateway.core.exceptions import InvalidUserIdError, MissingUserIdError
from wa_gateway.flow.states import ConnectorState, is_terminal, is_valid_transition
from wa_gateway.utils.validation_utils import normalize_user_id, session_dir_name


def test_terminal_states_have_no_exits():
    for terminal in (ConnectorState.DISCONNECTED, ConnectorState.AUTH_FAILED):
        assert is_terminal(terminal)
        for state in ConnectorState:
            assert not is_valid_transition(terminal, state)


def test_ready_cannot_go_back_to_pairing():
    assert not is_valid_transition(ConnectorState.READY, ConnectorState.AWAITING_PAIRING)
    assert is_valid_transition(ConnectorState.AWAITING_PAIRING, ConnectorState.READY)
    assert is_valid_transition(ConnectorState.INITIALIZING, ConnectorState.READY)


def test_every_live_state_can_fail():
    for state in (ConnectorState.INITIALIZING, ConnectorState.AWAITING_PAIRING, ConnectorState.READY):
        assert is_valid_transition(state, ConnectorState.DISCONNECTED)
        assert is_valid_transition(state, ConnectorState.AUTH_FAILED)


def test_normalize_user_id():
    assert normalize_user_id(42) == "42"
    assert normalize_user_id(" abc-1 ") == "abc-1"
    assert session_dir_name("42") == "user-42"

    with pytest.raises(MissingUserIdError):
        normalize_user_id(None)
    with pytest.raises(MissingUserIdError):
        normalize_user_id("")
    for bad in ("..", "a/b", "x y", "a" * 200):
        with pytest.raises(InvalidUserIdError):
            normalize_user_id(bad)
