from __future__ import annotations

import inspect


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    body = resp.json()
    assert body["ok"] is True
    assert body["gateway_mode"] == "ledger"


def test_healthz_counts_subscriptions(client):
    client.post("/v1/subscriptions", json={"subscription_id": "sub-h", "policy": "v1"})
    body = client.get("/healthz").json()
    assert body["ok"] is True
    assert body["subscriptions_total"] == 1
    assert body["subscriptions_running"] == 1


def test_version(monkeypatch, client):
    monkeypatch.setenv("APP_VERSION", "9.9.9")
    monkeypatch.setenv("GIT_SHA", "abc123")
    body = client.get("/version").json()
    assert body["version"] == "9.9.9"
    assert body["git_sha"] == "abc123"


def test_metrics_exposes_counters_and_state_gauge(client):
    client.post("/v1/subscriptions", json={"subscription_id": "sub-m", "policy": "v2"})
    resp = client.get("/metrics")
    assert resp.status_code == 200
    assert 'subscriptions_started_total{policy="v2"} 1' in resp.text
    assert "# TYPE subscriptions_by_state gauge" in resp.text
    assert 'policy="v2"' in resp.text


def test_git_sha_only_from_git_sha_env(monkeypatch, client):
    monkeypatch.delenv("GIT_SHA", raising=False)
    monkeypatch.setenv("FLY_IMAGE_REF", "registry/app:deployment-01")
    assert client.get("/version").json()["git_sha"] is None
    assert client.get("/health").json()["git_sha"] is None


def test_engine_reading_handlers_run_on_the_event_loop():
    # sync handlers would run in the threadpool, off the loop that owns the engine
    from routes.health import healthz
    from routes.metrics import metrics

    assert inspect.iscoroutinefunction(healthz)
    assert inspect.iscoroutinefunction(metrics)


def test_lifespan_starts_the_pruner(client):
    engine = client.app.state.engine
    assert engine._pruner is not None
    assert not engine._pruner.done()
