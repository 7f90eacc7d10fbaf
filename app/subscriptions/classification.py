# app/subscriptions/classification.py
from __future__ import annotations

import logging
from enum import Enum

from app.gateway.base import ChargeResult, FailureReason

logger = logging.getLogger("billing.workflow")


class FailureClass(str, Enum):
    TRANSIENT = "TRANSIENT"  # infrastructure: wait and retry forever
    DOMAIN = "DOMAIN"  # customer-actionable: grace -> pause -> timeout


TRANSIENT_REASONS = frozenset({FailureReason.GATEWAY_UNAVAILABLE, FailureReason.TIMEOUT})


def classify(reason: FailureReason | str | None) -> FailureClass:
    """
    Branch only on the structured reason returned by the gateway.

    Missing or unrecognised reasons fall back to DOMAIN so an unclassified
    failure can still end in pause/timeout instead of retrying forever.
    """
    parsed = FailureReason.parse(reason)
    if parsed in TRANSIENT_REASONS:
        return FailureClass.TRANSIENT
    if parsed is FailureReason.UNKNOWN:
        logger.warning("unclassified payment failure reason=%r treated as domain failure", reason)
    return FailureClass.DOMAIN


def classify_result(result: ChargeResult) -> FailureClass:
    return classify(result.reason)
