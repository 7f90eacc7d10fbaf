# routes/subscriptions.py
from __future__ import annotations

import logging
import time

from fastapi import APIRouter, Depends, Response

from app.ledger.base import Ledger
from app.subscriptions.engine import SubscriptionEngine
from app.subscriptions.policy import get_policy
from deps.billing import get_engine, get_ledger
from schemas import (
    CommandResponse,
    StartSubscriptionRequest,
    StartSubscriptionResponse,
    SubscriptionListResponse,
    SubscriptionStatusResponse,
)
from settings import settings

logger = logging.getLogger("billing.api")
router = APIRouter(prefix="/v1", tags=["subscriptions"])

# Handlers are async so engine calls run on the loop that hosts the instances.
# SubscriptionNotFound / UnknownPolicy are mapped to 404 / 400 in main.py.


def _new_subscription_id() -> str:
    return f"sub-{int(time.time() * 1000)}"


@router.post("/subscriptions", response_model=StartSubscriptionResponse, status_code=201)
async def start_subscription(
    body: StartSubscriptionRequest,
    response: Response,
    engine: SubscriptionEngine = Depends(get_engine),
    ledger: Ledger = Depends(get_ledger),
):
    subscription_id = (body.subscription_id or "").strip() or _new_subscription_id()

    # validate before touching the wallet
    get_policy(body.policy or engine.config.default_policy)

    if not engine.exists(subscription_id):
        initial = body.initial_balance_cents
        if initial is None:
            initial = int(settings.DEFAULT_INITIAL_BALANCE_CENTS)
        if initial > 0:
            ledger.credit(subscription_id, initial)

    status, created = engine.start(subscription_id, body.policy)
    if not created:
        response.status_code = 200
    logger.info("start subscription=%s created=%s", subscription_id, created)

    return StartSubscriptionResponse(
        **status.to_dict(),
        created=created,
        balance_cents=ledger.balance(subscription_id),
        subscription_price_cents=int(settings.SUBSCRIPTION_PRICE_CENTS),
    )


@router.get("/subscriptions", response_model=SubscriptionListResponse)
async def list_subscriptions(engine: SubscriptionEngine = Depends(get_engine)):
    return SubscriptionListResponse(
        subscriptions=[SubscriptionStatusResponse(**s.to_dict()) for s in engine.list_statuses()]
    )


@router.get("/subscriptions/{subscription_id}", response_model=SubscriptionStatusResponse)
async def subscription_status(subscription_id: str, engine: SubscriptionEngine = Depends(get_engine)):
    return SubscriptionStatusResponse(**engine.status(subscription_id).to_dict())


@router.post("/subscriptions/{subscription_id}/resume", response_model=CommandResponse)
async def resume_subscription(subscription_id: str, engine: SubscriptionEngine = Depends(get_engine)):
    applied = engine.resume(subscription_id)
    return CommandResponse(
        subscription_id=subscription_id,
        action="RESUME",
        applied=applied,
        state=engine.status(subscription_id).state,
    )


@router.post("/subscriptions/{subscription_id}/cancel", response_model=CommandResponse)
async def cancel_subscription(subscription_id: str, engine: SubscriptionEngine = Depends(get_engine)):
    applied = engine.cancel(subscription_id)
    return CommandResponse(
        subscription_id=subscription_id,
        action="CANCEL",
        applied=applied,
        state=engine.status(subscription_id).state,
    )
