# app/gateway/base.py
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol


class FailureReason(str, Enum):
    INSUFFICIENT_FUNDS = "INSUFFICIENT_FUNDS"
    CARD_DECLINED = "CARD_DECLINED"
    GATEWAY_UNAVAILABLE = "GATEWAY_UNAVAILABLE"
    TIMEOUT = "TIMEOUT"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def parse(cls, code: object) -> "FailureReason":
        """Structured code -> reason. Anything unrecognised is UNKNOWN."""
        if isinstance(code, cls):
            return code
        raw = str(code or "").strip().upper().replace("-", "_").replace(" ", "_")
        try:
            return cls(raw)
        except ValueError:
            return cls.UNKNOWN


@dataclass(frozen=True)
class ChargeResult:
    ok: bool
    reason: Optional[FailureReason] = None
    message: Optional[str] = None
    transaction_id: Optional[str] = None
    amount_cents: Optional[int] = None

    @classmethod
    def success(cls, *, transaction_id: str | None = None, amount_cents: int | None = None) -> "ChargeResult":
        return cls(ok=True, transaction_id=transaction_id, amount_cents=amount_cents)

    @classmethod
    def failure(cls, reason: FailureReason | str | None, message: str | None = None, *, transaction_id: str | None = None) -> "ChargeResult":
        return cls(
            ok=False,
            reason=FailureReason.parse(reason),
            message=message,
            transaction_id=transaction_id,
        )


class PaymentGateway(Protocol):
    def charge(self, subscription_id: str) -> ChargeResult: ...
