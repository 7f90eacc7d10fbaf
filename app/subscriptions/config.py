# app/subscriptions/config.py
from __future__ import annotations

from dataclasses import dataclass

from settings import settings


@dataclass(frozen=True)
class BillingConfig:
    max_payments: int = 12
    burst_attempts: int = 3
    retry_delay_s: float = 5.0
    gateway_wait_s: float = 30.0
    cycle_interval_s: float = 60.0
    pause_timeout_s: float = 180.0
    default_policy: str = "v3"
    terminal_retention_s: float = 3600.0
    prune_interval_s: float = 60.0


def billing_config() -> BillingConfig:
    # always reflect .env via pydantic settings
    return BillingConfig(
        max_payments=int(settings.BILLING_MAX_PAYMENTS),
        burst_attempts=int(settings.BILLING_BURST_ATTEMPTS),
        retry_delay_s=float(settings.BILLING_RETRY_DELAY_S),
        gateway_wait_s=float(settings.BILLING_GATEWAY_WAIT_S),
        cycle_interval_s=float(settings.BILLING_CYCLE_INTERVAL_S),
        pause_timeout_s=float(settings.BILLING_PAUSE_TIMEOUT_S),
        default_policy=(settings.BILLING_DEFAULT_POLICY or "v3").strip(),
        terminal_retention_s=float(settings.BILLING_TERMINAL_RETENTION_S),
        prune_interval_s=float(settings.BILLING_PRUNE_INTERVAL_S),
    )
