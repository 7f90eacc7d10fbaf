# deps/billing.py
from __future__ import annotations

from fastapi import Request

from app.gateway.ledger_gateway import GatewayOutage
from app.ledger.base import Ledger
from app.subscriptions.engine import SubscriptionEngine


def get_engine(request: Request) -> SubscriptionEngine:
    return request.app.state.engine


def get_ledger(request: Request) -> Ledger:
    return request.app.state.ledger


def get_outage(request: Request) -> GatewayOutage:
    return request.app.state.outage
