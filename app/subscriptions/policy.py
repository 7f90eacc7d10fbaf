# app/subscriptions/policy.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from app.subscriptions.errors import UnknownPolicy


@dataclass(frozen=True)
class EscalationPolicy:
    """
    Ordered grace-period schedule consumed between the initial burst and suspension.

    Each entry is a delay (seconds) followed by exactly one extra payment attempt.
    An empty schedule pauses right after the burst.
    """

    name: str
    build_id: str
    grace_periods: tuple[float, ...] = ()

    @property
    def total_grace_seconds(self) -> float:
        return float(sum(self.grace_periods))


POLICIES: dict[str, EscalationPolicy] = {
    "V1": EscalationPolicy(name="v1", build_id="v1.0-immediate-pause", grace_periods=()),
    "V2": EscalationPolicy(name="v2", build_id="v2.0-grace-period", grace_periods=(30.0,)),
    "V3": EscalationPolicy(name="v3", build_id="v3.0-escalating-grace", grace_periods=(10.0, 20.0, 30.0)),
}

_BY_BUILD_ID = {p.build_id.upper(): p for p in POLICIES.values()}


def _normalize_selector(value: str) -> str:
    return (value or "").strip().upper().replace(" ", "")


def get_policy(selector: Optional[str]) -> EscalationPolicy:
    """Resolve `v1` / `V2` / `v3.0-escalating-grace` style selectors."""
    key = _normalize_selector(selector or "")
    if key in POLICIES:
        return POLICIES[key]
    if key in _BY_BUILD_ID:
        return _BY_BUILD_ID[key]
    raise UnknownPolicy(str(selector))


def policy_names() -> list[str]:
    return sorted(p.name for p in POLICIES.values())
