# routes/wallet.py
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from app.gateway.ledger_gateway import GatewayOutage
from app.ledger.base import InsufficientFunds, Ledger
from deps.billing import get_ledger, get_outage
from schemas import ChargeResponse, CreditRequest, GatewayStatusResponse, WalletResponse
from settings import settings

router = APIRouter(prefix="/v1", tags=["wallets"])


def _price() -> int:
    return int(settings.SUBSCRIPTION_PRICE_CENTS)


@router.get("/wallets/{subscription_id}", response_model=WalletResponse)
def wallet_balance(subscription_id: str, ledger: Ledger = Depends(get_ledger)):
    bal = ledger.balance(subscription_id)
    return WalletResponse(
        subscription_id=subscription_id,
        balance_cents=bal,
        subscription_price_cents=_price(),
        can_pay=bal >= _price(),
    )


@router.post("/wallets/{subscription_id}/credit", response_model=WalletResponse)
def wallet_credit(subscription_id: str, body: CreditRequest, ledger: Ledger = Depends(get_ledger)):
    bal = ledger.credit(subscription_id, body.amount_cents)
    return WalletResponse(
        subscription_id=subscription_id,
        balance_cents=bal,
        subscription_price_cents=_price(),
        can_pay=bal >= _price(),
    )


@router.post("/wallets/{subscription_id}/charge", response_model=ChargeResponse)
def wallet_charge(
    subscription_id: str,
    ledger: Ledger = Depends(get_ledger),
    outage: GatewayOutage = Depends(get_outage),
):
    # Charge endpoint used by the HTTP gateway
    if outage.is_down:
        raise HTTPException(status_code=503, detail="GATEWAY_UNAVAILABLE")
    try:
        new_balance = ledger.debit(subscription_id, _price())
    except InsufficientFunds:
        raise HTTPException(status_code=402, detail="INSUFFICIENT_FUNDS")
    return ChargeResponse(
        subscription_id=subscription_id,
        amount_charged_cents=_price(),
        new_balance_cents=new_balance,
    )


# -----------------------------
# Failure simulation
# -----------------------------

@router.post("/simulate/gateway-down/enable", response_model=GatewayStatusResponse)
def enable_gateway_down(outage: GatewayOutage = Depends(get_outage)):
    outage.enable()
    return GatewayStatusResponse(gateway_down=True)


@router.post("/simulate/gateway-down/disable", response_model=GatewayStatusResponse)
def disable_gateway_down(outage: GatewayOutage = Depends(get_outage)):
    outage.disable()
    return GatewayStatusResponse(gateway_down=False)


@router.get("/simulate/gateway-down/status", response_model=GatewayStatusResponse)
def gateway_down_status(outage: GatewayOutage = Depends(get_outage)):
    return GatewayStatusResponse(gateway_down=outage.is_down)
