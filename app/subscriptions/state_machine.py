# app/subscriptions/state_machine.py

ACTIVE = "ACTIVE"
PROCESSING_PAYMENT = "PROCESSING_PAYMENT"
RETRYING = "RETRYING"
GRACE_PERIOD = "GRACE_PERIOD"
WAITING_FOR_GATEWAY = "WAITING_FOR_GATEWAY"
PAUSED = "PAUSED"
COMPLETED_MAX_CYCLES = "COMPLETED_MAX_CYCLES"
CANCELLED = "CANCELLED"
CANCELLED_PAUSE_TIMEOUT = "CANCELLED_PAUSE_TIMEOUT"

TERMINAL_STATES = frozenset({COMPLETED_MAX_CYCLES, CANCELLED, CANCELLED_PAUSE_TIMEOUT})


class InvalidTransition(Exception):
    pass


ALLOWED = {
    ACTIVE: {PROCESSING_PAYMENT, COMPLETED_MAX_CYCLES, CANCELLED},
    PROCESSING_PAYMENT: {ACTIVE, RETRYING, CANCELLED},
    RETRYING: {PROCESSING_PAYMENT, WAITING_FOR_GATEWAY, GRACE_PERIOD, PAUSED, CANCELLED},
    GRACE_PERIOD: {PROCESSING_PAYMENT, CANCELLED},
    WAITING_FOR_GATEWAY: {PROCESSING_PAYMENT, CANCELLED},
    PAUSED: {ACTIVE, CANCELLED, CANCELLED_PAUSE_TIMEOUT},
    COMPLETED_MAX_CYCLES: set(),
    CANCELLED: set(),
    CANCELLED_PAUSE_TIMEOUT: set(),
}


def grace_state(step: int) -> str:
    """GRACE_PERIOD_1, GRACE_PERIOD_2, ... (1-based step in the escalation schedule)."""
    if step < 1:
        raise ValueError("grace step is 1-based")
    return f"{GRACE_PERIOD}_{step}"


def base_state(state: str) -> str:
    if state.startswith(GRACE_PERIOD + "_"):
        return GRACE_PERIOD
    return state


def is_terminal(state: str) -> bool:
    return state in TERMINAL_STATES


def assert_transition(old: str, new: str) -> None:
    if base_state(new) not in ALLOWED.get(base_state(old), set()):
        raise InvalidTransition(f"Illegal subscription transition: {old} -> {new}")
