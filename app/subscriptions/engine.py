# app/subscriptions/engine.py
from __future__ import annotations

import asyncio
import logging
from typing import Optional

from app.gateway.base import PaymentGateway
from app.runtime.base import DurableScheduler
from app.subscriptions.config import BillingConfig
from app.subscriptions.errors import SubscriptionNotFound
from app.subscriptions.model import SubscriptionStatus
from app.subscriptions.policy import get_policy
from app.subscriptions.workflow import BillingWorkflow
from services import metrics

logger = logging.getLogger("billing.engine")


class SubscriptionEngine:
    """
    Host-side registry: one BillingWorkflow and one asyncio task per
    subscription id. Instances share nothing but the gateway and scheduler.
    """

    def __init__(self, *, gateway: PaymentGateway, scheduler: DurableScheduler, config: BillingConfig):
        self._gateway = gateway
        self._scheduler = scheduler
        self._config = config
        self._workflows: dict[str, BillingWorkflow] = {}
        self._tasks: dict[str, asyncio.Task] = {}
        self._pruner: Optional[asyncio.Task] = None

    @property
    def config(self) -> BillingConfig:
        return self._config

    @property
    def scheduler(self) -> DurableScheduler:
        return self._scheduler

    def _get(self, subscription_id: str) -> BillingWorkflow:
        wf = self._workflows.get(subscription_id)
        if wf is None:
            raise SubscriptionNotFound(subscription_id)
        return wf

    def exists(self, subscription_id: str) -> bool:
        return subscription_id in self._workflows

    def start(self, subscription_id: str, policy_selector: Optional[str] = None) -> tuple[SubscriptionStatus, bool]:
        """
        Create and schedule the instance. A second start for a known id returns
        the existing instance's status with created=False.

        Must be called with a running event loop.
        """
        existing = self._workflows.get(subscription_id)
        if existing is not None:
            logger.info("start ignored, subscription=%s already exists", subscription_id)
            return existing.status(), False

        policy = get_policy(policy_selector or self._config.default_policy)
        wf = BillingWorkflow(
            subscription_id,
            policy,
            gateway=self._gateway,
            scheduler=self._scheduler,
            config=self._config,
        )
        self._workflows[subscription_id] = wf
        task = asyncio.get_running_loop().create_task(wf.run(), name=f"subscription:{subscription_id}")
        task.add_done_callback(self._on_done)
        self._tasks[subscription_id] = task
        metrics.increment_subscription_started(policy.name)
        logger.info("subscription=%s started policy=%s", subscription_id, policy.build_id)
        return wf.status(), True

    def _on_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("subscription task %s crashed", task.get_name(), exc_info=exc)

    def resume(self, subscription_id: str) -> bool:
        applied = self._get(subscription_id).resume()
        metrics.increment_command("resume", applied)
        return applied

    def cancel(self, subscription_id: str) -> bool:
        applied = self._get(subscription_id).cancel()
        metrics.increment_command("cancel", applied)
        return applied

    def status(self, subscription_id: str) -> SubscriptionStatus:
        return self._get(subscription_id).status()

    def list_statuses(self) -> list[SubscriptionStatus]:
        # snapshot: handlers off the loop thread may list while start() inserts
        return [wf.status() for wf in list(self._workflows.values())]

    def workflow(self, subscription_id: str) -> BillingWorkflow:
        return self._get(subscription_id)

    def prune_terminal(self, older_than: Optional[float] = None) -> int:
        """
        Forget instances that reached a terminal state, with their recorded steps.

        With `older_than`, only instances that ended at least that many
        scheduler seconds ago are dropped.
        """
        now = self._scheduler.now()
        done = []
        for sid, wf in list(self._workflows.items()):
            inst = wf.instance
            if not inst.is_terminal:
                continue
            ended_at = inst.history[-1][0] if inst.history else now
            if older_than is None or now - ended_at >= older_than:
                done.append(sid)
        for sid in done:
            del self._workflows[sid]
            self._tasks.pop(sid, None)
            self._scheduler.forget_steps(f"{sid}:charge:")
        if done:
            logger.info("pruned %s terminal subscriptions", len(done))
        return len(done)

    async def _prune_forever(self) -> None:
        interval = self._config.prune_interval_s
        retention = self._config.terminal_retention_s
        while True:
            await self._scheduler.sleep(interval)
            self.prune_terminal(older_than=retention)

    def start_pruner(self) -> None:
        """Drop expired terminal instances every `prune_interval_s`. Needs a running loop."""
        if self._pruner is None or self._pruner.done():
            self._pruner = asyncio.get_running_loop().create_task(
                self._prune_forever(), name="subscription:pruner"
            )
            self._pruner.add_done_callback(self._on_done)

    async def shutdown(self) -> None:
        """Stop hosting: cancels the asyncio tasks, not the subscriptions."""
        if self._pruner is not None:
            self._pruner.cancel()
            await asyncio.gather(self._pruner, return_exceptions=True)
            self._pruner = None
        tasks = [t for t in self._tasks.values() if not t.done()]
        for t in tasks:
            t.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        logger.info("engine shutdown, %s running instances stopped", len(tasks))
