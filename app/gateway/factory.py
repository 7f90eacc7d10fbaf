# app/gateway/factory.py
from __future__ import annotations

from typing import Optional

from app.gateway.base import PaymentGateway
from app.gateway.http_gateway import HttpGateway
from app.gateway.ledger_gateway import GatewayOutage, LedgerGateway
from app.ledger.base import Ledger
from settings import settings


def get_gateway(
    mode: Optional[str] = None,
    *,
    ledger: Optional[Ledger] = None,
    outage: Optional[GatewayOutage] = None,
) -> PaymentGateway:
    key = (mode or settings.GATEWAY_MODE or "ledger").strip().lower()

    if key == "ledger":
        if ledger is None:
            raise ValueError("ledger gateway requires a ledger")
        return LedgerGateway(ledger, price_cents=int(settings.SUBSCRIPTION_PRICE_CENTS), outage=outage)

    if key == "http":
        return HttpGateway.from_url(
            settings.GATEWAY_BASE_URL,
            timeout_s=float(settings.GATEWAY_HTTP_TIMEOUT_S),
        )

    raise ValueError(f"Unsupported gateway mode: {mode!r}")
