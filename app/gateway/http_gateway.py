# app/gateway/http_gateway.py
from __future__ import annotations

import logging
import uuid

import httpx

from app.gateway.base import ChargeResult, FailureReason
from app.gateway.http import HttpClient, HttpResponse, is_retryable_http

logger = logging.getLogger("billing.gateway")


def _detail_code(resp: HttpResponse) -> str | None:
    if isinstance(resp.json, dict):
        detail = resp.json.get("detail")
        if isinstance(detail, str):
            return detail
        if isinstance(detail, dict):
            code = detail.get("code")
            return str(code) if code else None
    return None


def _reason_for_http(resp: HttpResponse) -> FailureReason:
    code = FailureReason.parse(_detail_code(resp))
    if code is not FailureReason.UNKNOWN:
        return code
    if resp.status_code == 402:
        return FailureReason.INSUFFICIENT_FUNDS
    if resp.status_code == 408:
        return FailureReason.TIMEOUT
    if is_retryable_http(resp.status_code):
        return FailureReason.GATEWAY_UNAVAILABLE
    return FailureReason.UNKNOWN


class HttpGateway:
    """Charges through the wallet API (`/v1/wallets/{id}/charge`)."""

    def __init__(self, client: HttpClient):
        self._client = client

    @classmethod
    def from_url(cls, base_url: str, *, timeout_s: float = 5.0) -> "HttpGateway":
        return cls(HttpClient(base_url, timeout_s=timeout_s))

    def _gateway_down(self, txn: str) -> bool:
        # Fail open: a broken probe must not block charging.
        try:
            resp = self._client.get("/v1/simulate/gateway-down/status")
        except httpx.HTTPError as exc:
            logger.warning("[TXN:%s] gateway status probe failed: %s, assuming UP", txn, exc)
            return False
        if resp.status_code != 200 or not isinstance(resp.json, dict):
            logger.warning("[TXN:%s] gateway status probe HTTP %s, assuming UP", txn, resp.status_code)
            return False
        return bool(resp.json.get("gateway_down"))

    def charge(self, subscription_id: str) -> ChargeResult:
        txn = uuid.uuid4().hex[:8]
        logger.info("[TXN:%s] starting payment subscription=%s", txn, subscription_id)

        if self._gateway_down(txn):
            logger.error("[TXN:%s] payment gateway is temporarily unavailable", txn)
            return ChargeResult.failure(
                FailureReason.GATEWAY_UNAVAILABLE,
                "Payment gateway temporarily unavailable",
                transaction_id=txn,
            )

        try:
            resp = self._client.post(f"/v1/wallets/{subscription_id}/charge")
        except httpx.TimeoutException as exc:
            logger.warning("[TXN:%s] charge timed out: %s", txn, exc)
            return ChargeResult.failure(FailureReason.TIMEOUT, f"Payment timed out: {exc}", transaction_id=txn)
        except httpx.HTTPError as exc:
            logger.warning("[TXN:%s] charge transport error: %s", txn, exc)
            return ChargeResult.failure(
                FailureReason.GATEWAY_UNAVAILABLE, f"Payment gateway unreachable: {exc}", transaction_id=txn
            )

        if resp.status_code == 200:
            body = resp.json or {}
            amount = body.get("amount_charged_cents")
            logger.info(
                "[TXN:%s] payment SUCCESS charged=%s new_balance=%s",
                txn,
                amount,
                body.get("new_balance_cents"),
            )
            return ChargeResult.success(transaction_id=txn, amount_cents=int(amount) if amount is not None else None)

        reason = _reason_for_http(resp)
        logger.warning("[TXN:%s] payment failed HTTP %s reason=%s", txn, resp.status_code, reason.value)
        return ChargeResult.failure(
            reason,
            f"Payment failed: HTTP {resp.status_code} {_detail_code(resp) or ''}".strip(),
            transaction_id=txn,
        )
