# app/subscriptions/workflow.py
from __future__ import annotations

import logging
from enum import Enum
from typing import Optional

from app.gateway.base import ChargeResult, FailureReason, PaymentGateway
from app.runtime.base import DurableScheduler
from app.subscriptions.classification import FailureClass, classify, classify_result
from app.subscriptions.config import BillingConfig
from app.subscriptions.model import SubscriptionInstance, SubscriptionStatus
from app.subscriptions.policy import EscalationPolicy
from app.subscriptions.state_machine import (
    ACTIVE,
    CANCELLED,
    CANCELLED_PAUSE_TIMEOUT,
    COMPLETED_MAX_CYCLES,
    PAUSED,
    PROCESSING_PAYMENT,
    RETRYING,
    WAITING_FOR_GATEWAY,
    assert_transition,
    grace_state,
)
from services import metrics

logger = logging.getLogger("billing.workflow")


class _Outcome(Enum):
    PAID = "PAID"
    RESUMED = "RESUMED"
    CANCELLED = "CANCELLED"
    PAUSE_TIMEOUT = "PAUSE_TIMEOUT"


class BillingWorkflow:
    """
    One subscription's billing loop.

    Cycle: cap check -> burst of `burst_attempts` charges -> (gateway wait and
    new burst, forever, while the gateway is unavailable) -> one charge per
    grace period -> pause until resume / cancel / timeout -> inter-cycle wait.

    Every suspension goes through the scheduler and wakes early on cancel.
    `resume()` / `cancel()` only flip flags; `run()` is the single writer of
    `state` and the counters.
    """

    def __init__(
        self,
        subscription_id: str,
        policy: EscalationPolicy,
        *,
        gateway: PaymentGateway,
        scheduler: DurableScheduler,
        config: BillingConfig,
    ):
        self.instance = SubscriptionInstance(id=subscription_id, policy=policy)
        self._gateway = gateway
        self._scheduler = scheduler
        self._config = config
        self._attempt_seq = 0
        self._step_prefix = f"{subscription_id}:charge:"

    # -----------------------------
    # Commands / query
    # -----------------------------

    def resume(self) -> bool:
        inst = self.instance
        if inst.is_terminal or not inst.paused:
            return False
        inst.paused = False
        logger.info("resume signal received subscription=%s", inst.id)
        self._scheduler.notify()
        return True

    def cancel(self) -> bool:
        inst = self.instance
        if inst.is_terminal or inst.cancelled:
            return False
        inst.cancelled = True
        logger.info("cancel signal received subscription=%s state=%s", inst.id, inst.state)
        self._scheduler.notify()
        return True

    def status(self) -> SubscriptionStatus:
        return self.instance.snapshot()

    # -----------------------------
    # Main loop
    # -----------------------------

    async def run(self) -> str:
        inst = self.instance
        cfg = self._config
        logger.info(
            "starting subscription=%s policy=%s grace=%s (%ss total)",
            inst.id,
            inst.policy.build_id,
            list(inst.policy.grace_periods),
            inst.policy.total_grace_seconds,
        )

        while True:
            if inst.cancelled:
                self._finish(CANCELLED)
                break

            if inst.total_payments_processed >= cfg.max_payments:
                logger.info(
                    "subscription=%s completed %s payments, ending", inst.id, cfg.max_payments
                )
                self._finish(COMPLETED_MAX_CYCLES)
                break

            inst.billing_cycle += 1
            inst.retry_attempts = 0
            logger.info("starting billing cycle %s subscription=%s", inst.billing_cycle, inst.id)

            outcome = await self._collect_payment()

            if outcome is _Outcome.CANCELLED:
                self._finish(CANCELLED)
                break
            if outcome is _Outcome.PAUSE_TIMEOUT:
                break
            if outcome is _Outcome.RESUMED:
                # the post-resume attempt runs as a new loop iteration, billing_cycle included
                continue

            logger.info(
                "subscription=%s waiting %ss until next billing cycle", inst.id, cfg.cycle_interval_s
            )
            if await self._wait_or_cancel(cfg.cycle_interval_s):
                self._finish(CANCELLED)
                break

        # recorded charges are only replayed while the run is live
        self._scheduler.forget_steps(self._step_prefix)
        logger.info(
            "subscription=%s ended state=%s cycles=%s payments=%s",
            inst.id,
            inst.state,
            inst.billing_cycle,
            inst.total_payments_processed,
        )
        return inst.state

    async def _collect_payment(self) -> _Outcome:
        inst = self.instance

        while True:
            reason = await self._attempt_burst()
            if reason is None:
                return _Outcome.PAID
            if inst.cancelled:
                return _Outcome.CANCELLED
            if classify(reason) is not FailureClass.TRANSIENT:
                break
            if await self._wait_for_gateway():
                return _Outcome.CANCELLED

        for step, delay in enumerate(inst.policy.grace_periods, start=1):
            outcome = await self._grace_attempt(step, delay)
            if outcome is not None:
                return outcome

        return await self._pause()

    async def _attempt_burst(self) -> Optional[FailureReason]:
        """Up to `burst_attempts` charges; None on success, else the last failure reason."""
        inst = self.instance
        cfg = self._config
        inst.retry_attempts = 0
        reason: Optional[FailureReason] = None

        while inst.retry_attempts < cfg.burst_attempts:
            result = await self._charge()
            if result.ok:
                self._record_success("SUCCESS")
                return None

            inst.retry_attempts += 1
            reason = result.reason or FailureReason.UNKNOWN
            self._set_state(RETRYING)
            logger.warning(
                "payment failed subscription=%s cycle=%s attempt %s/%s reason=%s: %s",
                inst.id,
                inst.billing_cycle,
                inst.retry_attempts,
                cfg.burst_attempts,
                reason.value,
                result.message,
            )

            if inst.retry_attempts < cfg.burst_attempts:
                if await self._wait_or_cancel(cfg.retry_delay_s):
                    break

        return reason

    async def _wait_for_gateway(self) -> bool:
        inst = self.instance
        self._set_state(WAITING_FOR_GATEWAY)
        logger.warning(
            "payment gateway unavailable subscription=%s, waiting %ss before retry (cycle %s)",
            inst.id,
            self._config.gateway_wait_s,
            inst.billing_cycle,
        )
        cancelled = await self._wait_or_cancel(self._config.gateway_wait_s)
        inst.retry_attempts = 0
        return cancelled

    async def _grace_attempt(self, step: int, delay: float) -> Optional[_Outcome]:
        inst = self.instance
        self._set_state(grace_state(step))
        logger.warning(
            "subscription=%s entering %ss grace period %s/%s",
            inst.id,
            delay,
            step,
            len(inst.policy.grace_periods),
        )
        if await self._wait_or_cancel(delay):
            return _Outcome.CANCELLED

        while True:
            inst.retry_attempts = 0
            result = await self._charge()
            if result.ok:
                self._record_success(f"SUCCESS_AFTER_GRACE_{step}")
                return _Outcome.PAID

            inst.retry_attempts = 1
            self._set_state(RETRYING)
            logger.warning(
                "payment failed after grace period %s subscription=%s reason=%s",
                step,
                inst.id,
                (result.reason or FailureReason.UNKNOWN).value,
            )
            if inst.cancelled:
                return _Outcome.CANCELLED
            # an outage during grace re-tries this step instead of consuming it
            if classify_result(result) is FailureClass.TRANSIENT:
                if await self._wait_for_gateway():
                    return _Outcome.CANCELLED
                continue
            return None

    async def _pause(self) -> _Outcome:
        inst = self.instance
        inst.paused = True
        self._set_state(PAUSED)
        logger.warning(
            "subscription=%s PAUSED in cycle %s, waiting for resume (max %ss)",
            inst.id,
            inst.billing_cycle,
            self._config.pause_timeout_s,
        )

        await self._scheduler.wait_condition(
            lambda: not inst.paused or inst.cancelled,
            timeout=self._config.pause_timeout_s,
        )

        # cancel wins over a resume delivered in the same tick
        if inst.cancelled:
            return _Outcome.CANCELLED
        if not inst.paused:
            inst.retry_attempts = 0
            self._set_state(ACTIVE)
            logger.info("subscription=%s resumed in cycle %s", inst.id, inst.billing_cycle)
            return _Outcome.RESUMED

        logger.warning(
            "subscription=%s paused for %ss without resume, auto-cancelling",
            inst.id,
            self._config.pause_timeout_s,
        )
        inst.cancelled = True
        self._finish(CANCELLED_PAUSE_TIMEOUT)
        return _Outcome.PAUSE_TIMEOUT

    # -----------------------------
    # Helpers
    # -----------------------------

    async def _wait_or_cancel(self, seconds: float) -> bool:
        """Park for `seconds`; True if a cancel arrived first."""
        inst = self.instance
        return await self._scheduler.wait_condition(lambda: inst.cancelled, timeout=seconds)

    async def _charge(self) -> ChargeResult:
        inst = self.instance
        self._set_state(PROCESSING_PAYMENT)
        self._attempt_seq += 1
        step_id = f"{self._step_prefix}{inst.billing_cycle}:{self._attempt_seq}"
        try:
            result = await self._scheduler.execute(step_id, self._gateway.charge, inst.id)
        except Exception as exc:
            logger.exception("payment gateway raised subscription=%s step=%s", inst.id, step_id)
            result = ChargeResult.failure(FailureReason.UNKNOWN, f"{type(exc).__name__}: {exc}")
        # earlier attempts are settled, only the latest can still be in flight
        self._scheduler.forget_steps(self._step_prefix, keep=step_id)

        if not result.ok:
            detail = result.message or (result.reason or FailureReason.UNKNOWN).value
            inst.last_payment_status = f"FAILED - {detail}"
        metrics.increment_payment_attempt(
            inst.policy.name,
            "success" if result.ok else (result.reason or FailureReason.UNKNOWN).value,
        )
        return result

    def _record_success(self, label: str) -> None:
        inst = self.instance
        inst.total_payments_processed += 1
        inst.last_payment_status = label
        self._set_state(ACTIVE)
        logger.info(
            "payment successful subscription=%s cycle=%s status=%s total=%s",
            inst.id,
            inst.billing_cycle,
            label,
            inst.total_payments_processed,
        )

    def _set_state(self, new: str) -> None:
        inst = self.instance
        assert_transition(inst.state, new)
        inst.state = new
        inst.history.append((self._scheduler.now(), new))

    def _finish(self, state: str) -> None:
        inst = self.instance
        if state == CANCELLED:
            inst.cancelled = True
        inst.paused = False
        self._set_state(state)
        metrics.increment_subscription_terminal(inst.policy.name, state)
