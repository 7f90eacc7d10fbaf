# app/ledger/base.py
from __future__ import annotations

from typing import Protocol


class InsufficientFunds(Exception):
    def __init__(self, account_id: str, balance_cents: int, required_cents: int):
        super().__init__(
            f"Insufficient funds - Balance: {balance_cents}, Required: {required_cents}"
        )
        self.account_id = account_id
        self.balance_cents = balance_cents
        self.required_cents = required_cents


class Ledger(Protocol):
    def balance(self, account_id: str) -> int: ...
    def credit(self, account_id: str, amount_cents: int) -> int: ...
    def debit(self, account_id: str, amount_cents: int) -> int: ...
