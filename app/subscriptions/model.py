# app/subscriptions/model.py
from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field

from app.subscriptions.policy import EscalationPolicy
from app.subscriptions.state_machine import ACTIVE, is_terminal

# transitions kept per instance; an unbroken outage adds seven per gateway round
HISTORY_LIMIT = 200


@dataclass
class SubscriptionInstance:
    """
    Mutable state of one billing run. Owned by its workflow; command handlers
    only flip `paused` / `cancelled`.
    """

    id: str
    policy: EscalationPolicy
    state: str = ACTIVE
    billing_cycle: int = 0
    retry_attempts: int = 0
    total_payments_processed: int = 0
    last_payment_status: str = "NOT_STARTED"
    paused: bool = False
    cancelled: bool = False
    # (scheduler time, state) of the latest transitions, diagnostics only
    history: deque[tuple[float, str]] = field(default_factory=lambda: deque(maxlen=HISTORY_LIMIT))

    @property
    def is_terminal(self) -> bool:
        return is_terminal(self.state)

    def snapshot(self) -> "SubscriptionStatus":
        return SubscriptionStatus(
            subscription_id=self.id,
            policy=self.policy.name,
            state=self.state,
            billing_cycle=self.billing_cycle,
            retry_attempts=self.retry_attempts,
            last_payment_status=self.last_payment_status,
            total_payments_processed=self.total_payments_processed,
        )


@dataclass(frozen=True)
class SubscriptionStatus:
    subscription_id: str
    policy: str
    state: str
    billing_cycle: int
    retry_attempts: int
    last_payment_status: str
    total_payments_processed: int

    @property
    def is_terminal(self) -> bool:
        return is_terminal(self.state)

    def to_dict(self) -> dict:
        return {
            "subscription_id": self.subscription_id,
            "policy": self.policy,
            "state": self.state,
            "billing_cycle": self.billing_cycle,
            "retry_attempts": self.retry_attempts,
            "last_payment_status": self.last_payment_status,
            "total_payments_processed": self.total_payments_processed,
        }
