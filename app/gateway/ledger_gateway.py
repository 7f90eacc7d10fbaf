# app/gateway/ledger_gateway.py
from __future__ import annotations

import logging
import uuid
from threading import Event

from app.gateway.base import ChargeResult, FailureReason
from app.ledger.base import InsufficientFunds, Ledger

logger = logging.getLogger("billing.gateway")


class GatewayOutage:
    """Switch used to simulate the payment gateway being down."""

    def __init__(self) -> None:
        self._down = Event()

    def enable(self) -> None:
        self._down.set()

    def disable(self) -> None:
        self._down.clear()

    @property
    def is_down(self) -> bool:
        return self._down.is_set()


class LedgerGateway:
    """
    In-process gateway: charges the subscription price against a Ledger.

    The ledger is injected; nothing here reaches for shared module state.
    """

    def __init__(self, ledger: Ledger, *, price_cents: int, outage: GatewayOutage | None = None):
        self._ledger = ledger
        self._price_cents = int(price_cents)
        self._outage = outage or GatewayOutage()

    @property
    def price_cents(self) -> int:
        return self._price_cents

    @property
    def outage(self) -> GatewayOutage:
        return self._outage

    def charge(self, subscription_id: str) -> ChargeResult:
        txn = uuid.uuid4().hex[:8]
        logger.info("[TXN:%s] starting payment subscription=%s", txn, subscription_id)

        if self._outage.is_down:
            logger.error("[TXN:%s] payment gateway is temporarily unavailable (simulated)", txn)
            return ChargeResult.failure(
                FailureReason.GATEWAY_UNAVAILABLE,
                "Payment gateway temporarily unavailable",
                transaction_id=txn,
            )

        try:
            new_balance = self._ledger.debit(subscription_id, self._price_cents)
        except InsufficientFunds as exc:
            logger.warning("[TXN:%s] %s", txn, exc)
            return ChargeResult.failure(FailureReason.INSUFFICIENT_FUNDS, str(exc), transaction_id=txn)

        logger.info(
            "[TXN:%s] payment SUCCESS charged=%s new_balance=%s", txn, self._price_cents, new_balance
        )
        return ChargeResult.success(transaction_id=txn, amount_cents=self._price_cents)
