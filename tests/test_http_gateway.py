from __future__ import annotations

import httpx

from app.gateway.base import FailureReason
from app.gateway.http import HttpClient
from app.gateway.http_gateway import HttpGateway


def _gateway(handler) -> HttpGateway:
    return HttpGateway(HttpClient("http://wallet.test", transport=httpx.MockTransport(handler)))


def _handler(*, down=False, charge_status=200, charge_body=None, probe_status=200):
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append((request.method, request.url.path))
        if request.url.path == "/v1/simulate/gateway-down/status":
            return httpx.Response(probe_status, json={"gateway_down": down})
        if request.url.path.endswith("/charge"):
            body = charge_body
            if body is None:
                body = {"subscription_id": "sub-1", "amount_charged_cents": 1000, "new_balance_cents": 0}
            return httpx.Response(charge_status, json=body)
        return httpx.Response(404)

    return handler, seen


def test_success():
    handler, seen = _handler()
    result = _gateway(handler).charge("sub-1")
    assert result.ok
    assert result.amount_cents == 1000
    assert ("POST", "/v1/wallets/sub-1/charge") in seen


def test_gateway_down_probe_skips_charge():
    handler, seen = _handler(down=True)
    result = _gateway(handler).charge("sub-1")
    assert result.reason is FailureReason.GATEWAY_UNAVAILABLE
    assert all(path != "/v1/wallets/sub-1/charge" for _, path in seen)


def test_probe_failure_fails_open():
    handler, _ = _handler(probe_status=500)
    assert _gateway(handler).charge("sub-1").ok


def test_detail_code_wins_over_status():
    handler, _ = _handler(charge_status=400, charge_body={"detail": "INSUFFICIENT_FUNDS"})
    assert _gateway(handler).charge("sub-1").reason is FailureReason.INSUFFICIENT_FUNDS


def test_status_fallbacks():
    handler, _ = _handler(charge_status=402, charge_body={"detail": "nope"})
    assert _gateway(handler).charge("sub-1").reason is FailureReason.INSUFFICIENT_FUNDS

    handler, _ = _handler(charge_status=503, charge_body={})
    assert _gateway(handler).charge("sub-1").reason is FailureReason.GATEWAY_UNAVAILABLE

    handler, _ = _handler(charge_status=418, charge_body={})
    assert _gateway(handler).charge("sub-1").reason is FailureReason.UNKNOWN


def test_transport_errors_map_to_transient_reasons():
    def timeout_handler(request):
        if request.url.path.endswith("/charge"):
            raise httpx.ReadTimeout("slow", request=request)
        return httpx.Response(200, json={"gateway_down": False})

    def connect_handler(request):
        raise httpx.ConnectError("refused", request=request)

    assert _gateway(timeout_handler).charge("sub-1").reason is FailureReason.TIMEOUT
    assert _gateway(connect_handler).charge("sub-1").reason is FailureReason.GATEWAY_UNAVAILABLE
