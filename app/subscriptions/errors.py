# app/subscriptions/errors.py
from __future__ import annotations


class SubscriptionNotFound(LookupError):
    def __init__(self, subscription_id: str):
        super().__init__(f"Unknown subscription: {subscription_id}")
        self.subscription_id = subscription_id


class UnknownPolicy(ValueError):
    def __init__(self, selector: str):
        super().__init__(f"Unknown billing policy: {selector!r}")
        self.selector = selector
