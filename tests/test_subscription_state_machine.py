

import pytest

from app.subscriptions.state_machine import (
    InvalidTransition,
    assert_transition,
    base_state,
    grace_state,
    is_terminal,
)


def test_valid_transitions():
    assert_transition("ACTIVE", "PROCESSING_PAYMENT")
    assert_transition("PROCESSING_PAYMENT", "RETRYING")
    assert_transition("RETRYING", "GRACE_PERIOD_2")
    assert_transition("GRACE_PERIOD_2", "PROCESSING_PAYMENT")
    assert_transition("RETRYING", "WAITING_FOR_GATEWAY")
    assert_transition("PAUSED", "CANCELLED_PAUSE_TIMEOUT")
    assert_transition("ACTIVE", "COMPLETED_MAX_CYCLES")


def test_invalid_transition_skipping_states():
    with pytest.raises(InvalidTransition):
        assert_transition("ACTIVE", "PAUSED")
    with pytest.raises(InvalidTransition):
        assert_transition("WAITING_FOR_GATEWAY", "PAUSED")


def test_terminal_states_cannot_transition():
    for terminal in ("COMPLETED_MAX_CYCLES", "CANCELLED", "CANCELLED_PAUSE_TIMEOUT"):
        assert is_terminal(terminal)
        with pytest.raises(InvalidTransition):
            assert_transition(terminal, "ACTIVE")


def test_grace_state_names():
    assert grace_state(1) == "GRACE_PERIOD_1"
    assert base_state("GRACE_PERIOD_3") == "GRACE_PERIOD"
    assert base_state("PAUSED") == "PAUSED"
    with pytest.raises(ValueError):
        grace_state(0)
