from __future__ import annotations

from scripts.simulate_billing import main, run


def test_v1_without_funds_times_out():
    result = run(["--policy", "v1", "--balance-cents", "0", "--quiet"])
    assert result.status.state == "CANCELLED_PAUSE_TIMEOUT"
    # burst 0/5/10, then 180s paused
    assert result.ended_at == 190.0


def test_funded_subscription_completes_twelve_cycles():
    result = run(["--policy", "v3", "--balance-cents", "12000", "--price-cents", "1000", "--quiet"])
    assert result.status.state == "COMPLETED_MAX_CYCLES"
    assert result.status.total_payments_processed == 12
    assert result.balance_cents == 0
    assert result.ended_at == 720.0


def test_cancel_during_grace():
    result = run(["--policy", "v3", "--balance-cents", "0", "--cancel-at", "15", "--quiet"])
    assert result.status.state == "CANCELLED"
    assert result.ended_at == 15.0
    assert "GRACE_PERIOD_1" in [s for _, s in result.history]


def test_main_prints_final_status(capsys):
    assert main(["--policy", "v2", "--balance-cents", "0", "--quiet"]) == 0
    out = capsys.readouterr().out
    assert "final state=CANCELLED_PAUSE_TIMEOUT" in out
