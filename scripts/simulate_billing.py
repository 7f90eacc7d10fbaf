# scripts/simulate_billing.py
from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from dataclasses import dataclass
from typing import Callable, Optional

from app.gateway.ledger_gateway import GatewayOutage, LedgerGateway
from app.ledger.memory import InMemoryLedger
from app.runtime.virtual import VirtualScheduler
from app.subscriptions.config import billing_config
from app.subscriptions.engine import SubscriptionEngine
from app.subscriptions.model import SubscriptionStatus
from settings import settings

logger = logging.getLogger("simulate_billing")


@dataclass
class SimulationResult:
    status: SubscriptionStatus
    history: list[tuple[float, str]]
    ended_at: float
    balance_cents: int


async def _simulate(args: argparse.Namespace) -> SimulationResult:
    ledger = InMemoryLedger()
    outage = GatewayOutage()
    scheduler = VirtualScheduler()
    engine = SubscriptionEngine(
        gateway=LedgerGateway(ledger, price_cents=args.price_cents, outage=outage),
        scheduler=scheduler,
        config=billing_config(),
    )
    sid = args.subscription_id

    if args.balance_cents > 0:
        ledger.credit(sid, args.balance_cents)
    if args.gateway_down_until > 0:
        outage.enable()

    events: list[tuple[float, str, Callable[[], object]]] = []
    if args.gateway_down_until > 0:
        events.append((args.gateway_down_until, "gateway up", outage.disable))
    if args.top_up_at is not None:
        events.append((args.top_up_at, f"top up {args.top_up_cents}", lambda: ledger.credit(sid, args.top_up_cents)))
    if args.resume_at is not None:
        events.append((args.resume_at, "resume", lambda: engine.resume(sid)))
    if args.cancel_at is not None:
        events.append((args.cancel_at, "cancel", lambda: engine.cancel(sid)))
    events.sort(key=lambda e: e[0])

    engine.start(sid, args.policy)
    wf = engine.workflow(sid)

    for at, label, action in events:
        if wf.instance.is_terminal:
            break
        await scheduler.advance_to(at)
        logger.info("t=%.1fs %s", scheduler.now(), label)
        action()

    await scheduler.run_until(lambda: wf.instance.is_terminal, limit=max(0.0, args.max_seconds - scheduler.now()))
    await engine.shutdown()

    ended_at = wf.instance.history[-1][0] if wf.instance.is_terminal and wf.instance.history else scheduler.now()
    return SimulationResult(
        status=wf.status(),
        history=list(wf.instance.history),
        ended_at=ended_at,
        balance_cents=ledger.balance(sid),
    )


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Run one subscription on a virtual clock and print its timeline.")
    p.add_argument("--policy", default=settings.BILLING_DEFAULT_POLICY)
    p.add_argument("--subscription-id", default="sub-sim")
    p.add_argument("--balance-cents", type=int, default=int(settings.DEFAULT_INITIAL_BALANCE_CENTS))
    p.add_argument("--price-cents", type=int, default=int(settings.SUBSCRIPTION_PRICE_CENTS))
    p.add_argument("--gateway-down-until", type=float, default=0.0, help="seconds the gateway is down from t=0")
    p.add_argument("--top-up-at", type=float, default=None)
    p.add_argument("--top-up-cents", type=int, default=0)
    p.add_argument("--resume-at", type=float, default=None)
    p.add_argument("--cancel-at", type=float, default=None)
    p.add_argument("--max-seconds", type=float, default=86400.0)
    p.add_argument("--quiet", action="store_true", help="only print the final status")
    return p


def run(argv: Optional[list[str]] = None) -> SimulationResult:
    args = build_parser().parse_args(argv)
    return asyncio.run(_simulate(args))


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.WARNING if args.quiet else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )
    result = asyncio.run(_simulate(args))

    if not args.quiet:
        for at, state in result.history:
            print(f"{at:>9.1f}s  {state}")
    s = result.status
    print(
        f"final state={s.state} cycles={s.billing_cycle} payments={s.total_payments_processed} "
        f"last={s.last_payment_status!r} ended_at={result.ended_at:.1f}s balance={result.balance_cents}"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
