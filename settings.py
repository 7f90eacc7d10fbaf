# settings.py
from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    ENV: str = "dev"
    APP_VERSION: str = "1.0.0"
    LOG_LEVEL: str = "INFO"

    # -----------------------
    # Billing cadence / escalation
    # -----------------------
    BILLING_MAX_PAYMENTS: int = Field(default=12)
    BILLING_BURST_ATTEMPTS: int = Field(default=3)
    BILLING_RETRY_DELAY_S: float = Field(default=5.0)
    BILLING_GATEWAY_WAIT_S: float = Field(default=30.0)
    BILLING_CYCLE_INTERVAL_S: float = Field(default=60.0)
    BILLING_PAUSE_TIMEOUT_S: float = Field(default=180.0)
    BILLING_DEFAULT_POLICY: str = "v3"

    # terminal instances stay queryable this long before the engine forgets them
    BILLING_TERMINAL_RETENTION_S: float = Field(default=3600.0)
    BILLING_PRUNE_INTERVAL_S: float = Field(default=60.0)

    # <1.0 compresses every delay (demo / smoke runs against the live scheduler)
    BILLING_TIME_SCALE: float = 1.0

    # -----------------------
    # Wallet / pricing
    # -----------------------
    SUBSCRIPTION_PRICE_CENTS: int = 1000
    DEFAULT_INITIAL_BALANCE_CENTS: int = 10000

    # -----------------------
    # Payment gateway (Mode Switch)
    # -----------------------
    GATEWAY_MODE: Literal["ledger", "http"] = "ledger"
    GATEWAY_BASE_URL: str = "http://localhost:8081"
    GATEWAY_HTTP_TIMEOUT_S: float = 5.0


settings = Settings()


def validate_env_settings() -> None:
    """
    Fail-fast validation of the billing configuration.

    Raises RuntimeError listing every offending setting.
    """
    from app.subscriptions.errors import UnknownPolicy
    from app.subscriptions.policy import get_policy

    problems: list[str] = []

    for name in ("BILLING_MAX_PAYMENTS", "BILLING_BURST_ATTEMPTS", "SUBSCRIPTION_PRICE_CENTS"):
        if int(getattr(settings, name)) <= 0:
            problems.append(name)

    for name in (
        "BILLING_RETRY_DELAY_S",
        "BILLING_GATEWAY_WAIT_S",
        "BILLING_CYCLE_INTERVAL_S",
        "BILLING_PAUSE_TIMEOUT_S",
        "BILLING_TIME_SCALE",
        "BILLING_PRUNE_INTERVAL_S",
    ):
        if float(getattr(settings, name)) <= 0:
            problems.append(name)

    if int(settings.DEFAULT_INITIAL_BALANCE_CENTS) < 0:
        problems.append("DEFAULT_INITIAL_BALANCE_CENTS")

    if float(settings.BILLING_TERMINAL_RETENTION_S) < 0:
        problems.append("BILLING_TERMINAL_RETENTION_S")

    try:
        get_policy(settings.BILLING_DEFAULT_POLICY)
    except UnknownPolicy:
        problems.append("BILLING_DEFAULT_POLICY")

    mode = (settings.GATEWAY_MODE or "").strip().lower()
    if mode not in ("ledger", "http"):
        problems.append("GATEWAY_MODE")
    elif mode == "http" and not (settings.GATEWAY_BASE_URL or "").strip():
        problems.append("GATEWAY_BASE_URL")

    if problems:
        raise RuntimeError(
            "Billing settings validation failed. Invalid values for: " + ", ".join(sorted(problems))
        )
