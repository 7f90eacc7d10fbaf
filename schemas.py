# schemas.py
from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


# -------- SUBSCRIPTIONS --------
class StartSubscriptionRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    subscription_id: Optional[str] = Field(default=None, min_length=1, max_length=100)
    policy: Optional[str] = None
    initial_balance_cents: Optional[int] = Field(default=None, ge=0)


class SubscriptionStatusResponse(BaseModel):
    subscription_id: str
    policy: str
    state: str
    billing_cycle: int
    retry_attempts: int
    last_payment_status: str
    total_payments_processed: int


class StartSubscriptionResponse(SubscriptionStatusResponse):
    created: bool
    balance_cents: int
    subscription_price_cents: int


class SubscriptionListResponse(BaseModel):
    subscriptions: List[SubscriptionStatusResponse]


class CommandResponse(BaseModel):
    subscription_id: str
    action: str
    applied: bool
    state: str


# -------- WALLETS --------
class WalletResponse(BaseModel):
    subscription_id: str
    balance_cents: int
    subscription_price_cents: int
    can_pay: bool


class CreditRequest(BaseModel):
    amount_cents: int = Field(gt=0)


class ChargeResponse(BaseModel):
    subscription_id: str
    amount_charged_cents: int
    new_balance_cents: int


class GatewayStatusResponse(BaseModel):
    gateway_down: bool
