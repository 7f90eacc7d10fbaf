# app/ledger/memory.py
from __future__ import annotations

import logging
from threading import Lock

from app.ledger.base import InsufficientFunds

logger = logging.getLogger("billing.ledger")


class InMemoryLedger:
    """
    Process-local balances in integer cents.

    Shared by the wallet routes and the in-process gateway; the lock makes
    debit check-and-set atomic when gateway calls run in worker threads.
    """

    def __init__(self) -> None:
        self._lock = Lock()
        self._balances: dict[str, int] = {}

    def balance(self, account_id: str) -> int:
        with self._lock:
            return int(self._balances.get(account_id, 0))

    def credit(self, account_id: str, amount_cents: int) -> int:
        if int(amount_cents) <= 0:
            raise ValueError("amount_cents must be positive")
        with self._lock:
            new_balance = int(self._balances.get(account_id, 0)) + int(amount_cents)
            self._balances[account_id] = new_balance
        logger.info("ledger credit account=%s amount=%s balance=%s", account_id, amount_cents, new_balance)
        return new_balance

    def debit(self, account_id: str, amount_cents: int) -> int:
        if int(amount_cents) <= 0:
            raise ValueError("amount_cents must be positive")
        with self._lock:
            current = int(self._balances.get(account_id, 0))
            if current < int(amount_cents):
                raise InsufficientFunds(account_id, current, int(amount_cents))
            new_balance = current - int(amount_cents)
            self._balances[account_id] = new_balance
        logger.info("ledger debit account=%s amount=%s balance=%s", account_id, amount_cents, new_balance)
        return new_balance
