# app/gateway/mock.py
from __future__ import annotations

from typing import Callable, Iterable, Optional, Union

from app.gateway.base import ChargeResult, FailureReason

Outcome = Union[ChargeResult, FailureReason, bool, BaseException]


def _as_result(outcome: Outcome) -> ChargeResult:
    if isinstance(outcome, ChargeResult):
        return outcome
    if outcome is True:
        return ChargeResult.success(transaction_id="mock")
    if outcome is False:
        return ChargeResult.failure(FailureReason.INSUFFICIENT_FUNDS, "Insufficient funds")
    if isinstance(outcome, FailureReason):
        return ChargeResult.failure(outcome, f"mock {outcome.value.lower()}")
    raise TypeError(f"unsupported mock outcome: {outcome!r}")


class MockGateway:
    """
    Test/dev gateway.

    Outcomes come from `script` (consumed in order, then `default`) unless a
    `decide(subscription_id, call_number, now)` callable is given. An exception
    instance as outcome is raised from charge().
    """

    def __init__(
        self,
        script: Iterable[Outcome] = (),
        *,
        default: Outcome = True,
        decide: Optional[Callable[[str, int, float], Outcome]] = None,
        clock: Optional[Callable[[], float]] = None,
    ):
        self._script = list(script)
        self._default = default
        self._decide = decide
        self._clock = clock
        # (subscription_id, time) per call
        self.calls: list[tuple[str, float]] = []

    def charge(self, subscription_id: str) -> ChargeResult:
        now = self._clock() if self._clock else 0.0
        self.calls.append((subscription_id, now))
        if self._decide is not None:
            outcome = self._decide(subscription_id, len(self.calls), now)
        elif self._script:
            outcome = self._script.pop(0)
        else:
            outcome = self._default
        if isinstance(outcome, BaseException):
            raise outcome
        return _as_result(outcome)

    def call_times(self, subscription_id: str | None = None) -> list[float]:
        return [t for sid, t in self.calls if subscription_id is None or sid == subscription_id]
