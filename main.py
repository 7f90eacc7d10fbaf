#main.py
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.gateway.factory import get_gateway
from app.gateway.ledger_gateway import GatewayOutage
from app.ledger.memory import InMemoryLedger
from app.runtime.asyncio_scheduler import AsyncioScheduler
from app.subscriptions.config import billing_config
from app.subscriptions.engine import SubscriptionEngine
from app.subscriptions.errors import SubscriptionNotFound, UnknownPolicy
from app.subscriptions.policy import policy_names
from middleware import RequestContextMiddleware
from routes.health import router as health_router
from routes.metrics import router as metrics_router
from routes.subscriptions import router as subscriptions_router
from routes.wallet import router as wallet_router
from services.observability import RequestIdFilter, get_request_id
from settings import settings, validate_env_settings

logger = logging.getLogger("billing")


def configure_logging() -> None:
    logging.basicConfig(
        level=(settings.LOG_LEVEL or "INFO").upper(),
        format="%(levelname)s %(name)s [%(request_id)s]: %(message)s",
    )
    for handler in logging.getLogger().handlers:
        if not any(isinstance(f, RequestIdFilter) for f in handler.filters):
            handler.addFilter(RequestIdFilter())


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.engine.start_pruner()
    yield
    await app.state.engine.shutdown()


def create_app() -> FastAPI:
    configure_logging()
    validate_env_settings()

    app = FastAPI(title="Subscription Billing API", version=settings.APP_VERSION, lifespan=lifespan)

    ledger = InMemoryLedger()
    outage = GatewayOutage()
    app.state.ledger = ledger
    app.state.outage = outage
    app.state.engine = SubscriptionEngine(
        gateway=get_gateway(ledger=ledger, outage=outage),
        scheduler=AsyncioScheduler(time_scale=float(settings.BILLING_TIME_SCALE)),
        config=billing_config(),
    )

    app.add_middleware(RequestContextMiddleware)

    # -----------------------------
    # ROUTERS
    # -----------------------------
    app.include_router(health_router)
    app.include_router(metrics_router)
    app.include_router(subscriptions_router)
    app.include_router(wallet_router)

    @app.exception_handler(SubscriptionNotFound)
    async def subscription_not_found_handler(request: Request, exc: SubscriptionNotFound):
        return JSONResponse(status_code=404, content={"detail": "SUBSCRIPTION_NOT_FOUND"})

    @app.exception_handler(UnknownPolicy)
    async def unknown_policy_handler(request: Request, exc: UnknownPolicy):
        return JSONResponse(
            status_code=400,
            content={"detail": "UNKNOWN_POLICY", "allowed_policies": policy_names()},
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("unhandled error path=%s request_id=%s", request.url.path, get_request_id())
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )

    return app


app = create_app()
