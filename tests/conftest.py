# tests/conftest.py

from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional

import pytest
from fastapi.testclient import TestClient

from app.gateway.mock import MockGateway, Outcome
from app.runtime.virtual import VirtualScheduler
from app.subscriptions.config import BillingConfig
from app.subscriptions.engine import SubscriptionEngine
from services import metrics


# Default cadence: 3 attempts 5s apart, 30s gateway wait, 60s cycle, 180s pause timeout, cap 12
DEFAULT_CONFIG = BillingConfig()


@dataclass
class Harness:
    scheduler: VirtualScheduler
    gateway: MockGateway
    engine: SubscriptionEngine
    config: BillingConfig = field(default_factory=BillingConfig)

    def instance(self, subscription_id: str):
        return self.engine.workflow(subscription_id).instance

    def states(self, subscription_id: str) -> list[str]:
        return [s for _, s in self.instance(subscription_id).history]


def make_harness(
    *,
    script: Iterable[Outcome] = (),
    default: Outcome = True,
    decide: Optional[Callable[[str, int, float], Outcome]] = None,
    config: BillingConfig = DEFAULT_CONFIG,
) -> Harness:
    """Virtual clock + scripted gateway; call engine.start() inside a running loop."""
    scheduler = VirtualScheduler()
    gateway = MockGateway(script, default=default, decide=decide, clock=scheduler.now)
    engine = SubscriptionEngine(gateway=gateway, scheduler=scheduler, config=config)
    return Harness(scheduler=scheduler, gateway=gateway, engine=engine, config=config)


@pytest.fixture(autouse=True)
def _reset_metrics():
    metrics.reset()
    yield
    metrics.reset()


# ---------------------------
# Client
# ---------------------------

@pytest.fixture()
def client():
    from main import create_app

    # context manager so the lifespan (engine shutdown) runs and instance tasks
    # live on the portal loop between requests
    with TestClient(create_app(), raise_server_exceptions=False) as c:
        yield c
