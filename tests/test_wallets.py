from __future__ import annotations


def test_credit_and_charge(client):
    resp = client.post("/v1/wallets/w-1/credit", json={"amount_cents": 1500})
    assert resp.status_code == 200, resp.text
    assert resp.json()["balance_cents"] == 1500
    assert resp.json()["can_pay"] is True

    charged = client.post("/v1/wallets/w-1/charge")
    assert charged.status_code == 200
    assert charged.json()["new_balance_cents"] == 500

    declined = client.post("/v1/wallets/w-1/charge")
    assert declined.status_code == 402
    assert declined.json()["detail"] == "INSUFFICIENT_FUNDS"
    assert client.get("/v1/wallets/w-1").json()["can_pay"] is False


def test_credit_must_be_positive(client):
    assert client.post("/v1/wallets/w-2/credit", json={"amount_cents": 0}).status_code == 422


def test_simulated_outage(client):
    client.post("/v1/wallets/w-3/credit", json={"amount_cents": 5000})
    assert client.post("/v1/simulate/gateway-down/enable").json() == {"gateway_down": True}
    assert client.get("/v1/simulate/gateway-down/status").json()["gateway_down"] is True

    resp = client.post("/v1/wallets/w-3/charge")
    assert resp.status_code == 503
    assert resp.json()["detail"] == "GATEWAY_UNAVAILABLE"

    client.post("/v1/simulate/gateway-down/disable")
    assert client.post("/v1/wallets/w-3/charge").status_code == 200
