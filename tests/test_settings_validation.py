from __future__ import annotations

import pytest

from app.subscriptions.config import billing_config
from settings import settings, validate_env_settings


def test_defaults_are_valid():
    validate_env_settings()
    cfg = billing_config()
    assert cfg.max_payments == 12
    assert cfg.burst_attempts == 3
    assert cfg.retry_delay_s == 5
    assert cfg.gateway_wait_s == 30
    assert cfg.pause_timeout_s == 180


def test_invalid_values_are_all_reported(monkeypatch):
    monkeypatch.setattr(settings, "BILLING_BURST_ATTEMPTS", 0, raising=False)
    monkeypatch.setattr(settings, "BILLING_PAUSE_TIMEOUT_S", -1.0, raising=False)
    monkeypatch.setattr(settings, "BILLING_DEFAULT_POLICY", "v7", raising=False)
    monkeypatch.setattr(settings, "DEFAULT_INITIAL_BALANCE_CENTS", -10, raising=False)
    monkeypatch.setattr(settings, "BILLING_TERMINAL_RETENTION_S", -1.0, raising=False)

    with pytest.raises(RuntimeError) as exc:
        validate_env_settings()

    message = str(exc.value)
    assert "BILLING_BURST_ATTEMPTS" in message
    assert "BILLING_PAUSE_TIMEOUT_S" in message
    assert "BILLING_DEFAULT_POLICY" in message
    assert "DEFAULT_INITIAL_BALANCE_CENTS" in message
    assert "BILLING_TERMINAL_RETENTION_S" in message
    assert "BILLING_MAX_PAYMENTS" not in message


def test_http_mode_requires_base_url(monkeypatch):
    monkeypatch.setattr(settings, "GATEWAY_MODE", "http", raising=False)
    monkeypatch.setattr(settings, "GATEWAY_BASE_URL", "  ", raising=False)
    with pytest.raises(RuntimeError) as exc:
        validate_env_settings()
    assert "GATEWAY_BASE_URL" in str(exc.value)


def test_create_app_fails_fast(monkeypatch):
    from main import create_app

    monkeypatch.setattr(settings, "BILLING_MAX_PAYMENTS", 0, raising=False)
    with pytest.raises(RuntimeError):
        create_app()
