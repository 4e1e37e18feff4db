from dataclasses import fields, replace
from datetime import datetime, timedelta, timezone

import pytest

from apps.api.app.core.time import today_risk_day
from apps.api.app.services.account_risk import FAILED, evaluate_account
from apps.api.app.services.drawdown import ANOMALY_STALE_DAILY_REFERENCE, AccountState
from apps.api.app.services.recovery_mode import ACTIVATED, FORCED_EXIT

NOW = datetime(2026, 3, 2, 14, 30, tzinfo=timezone.utc)


def _account(**overrides) -> AccountState:
    data = {
        "id": "acc-1",
        "user_id": "user-1",
        "label": "FTMO 10k",
        "starting_balance": 10000.0,
        "realized_pnl": 0.0,
        "current_equity": 10000.0,
        "highest_equity": 10000.0,
        "daily_starting_equity": 10000.0,
        "daily_starting_equity_day": today_risk_day(NOW),
        "daily_dd_limit_pct": 5.0,
        "max_dd_limit_pct": 10.0,
    }
    data.update(overrides)
    return AccountState(**data)


def _apply(account: AccountState, patch: dict) -> AccountState:
    names = {f.name for f in fields(AccountState)}
    return replace(account, **{k: v for k, v in patch.items() if k in names})


def test_breach_fails_account_with_reason():
    evaluation = evaluate_account(_account(), [-600.0], set(), NOW)

    assert evaluation.breached is True
    assert evaluation.at_risk is False
    assert evaluation.patch["status"] == FAILED
    assert evaluation.patch["failure_reason"].startswith("Daily drawdown limit breached: 6.00%")
    assert evaluation.patch["current_equity"] == 9400.0
    assert evaluation.patch["daily_drawdown_used_pct"] == pytest.approx(6.0)
    assert [a.alert_type for a in evaluation.alerts] == ["breach"]
    assert evaluation.recovery.transition is None
    assert "recovery_mode_active" not in evaluation.patch


def test_breach_forces_recovery_exit():
    account = _account(recovery_mode_active=True, recovery_mode_started_at=NOW)

    evaluation = evaluate_account(account, [-600.0], set(), NOW)

    assert evaluation.recovery.transition == FORCED_EXIT
    assert evaluation.patch["recovery_mode_active"] is False
    assert len(evaluation.notifications) == 1


def test_high_usage_activates_recovery_and_alerts():
    evaluation = evaluate_account(_account(), [-375.0], set(), NOW)

    assert evaluation.breached is False
    assert evaluation.snapshot.daily_dd_used_pct == pytest.approx(75.0)
    assert evaluation.recovery.transition == ACTIVATED
    assert evaluation.patch["recovery_mode_active"] is True
    assert evaluation.patch["recovery_mode_started_at"] == NOW
    assert [a.alert_type for a in evaluation.alerts] == ["daily_dd_50", "daily_dd_70"]
    assert [n.title for n in evaluation.notifications][-1] == "Recovery Mode Activated"


def test_critical_usage_marks_account_at_risk():
    evaluation = evaluate_account(_account(), [-460.0], set(), NOW)

    assert evaluation.at_risk is True


def test_re_evaluation_with_applied_patch_is_a_no_op():
    account = _account()
    sent = set()

    first = evaluate_account(account, [-400.0], sent, NOW)
    sent.update(a.alert_type for a in first.alerts)
    second = evaluate_account(_apply(account, first.patch), [-400.0], sent, NOW)

    assert first.alerts
    assert second.alerts == []
    assert second.notifications == []
    assert second.recovery.transition is None
    assert second.patch["current_equity"] == first.patch["current_equity"]


def test_highest_equity_only_patched_when_higher():
    up = evaluate_account(_account(), [250.0], set(), NOW)
    down = evaluate_account(_account(), [-250.0], set(), NOW)

    assert up.patch["highest_equity"] == 10250.0
    assert "highest_equity" not in down.patch
    assert "trailing_dd_floor" not in down.patch


def test_trailing_account_patches_floor():
    evaluation = evaluate_account(_account(is_trailing_dd=True), [1000.0], set(), NOW)

    assert evaluation.patch["highest_equity"] == 11000.0
    assert evaluation.patch["trailing_dd_floor"] == pytest.approx(9900.0)


def test_yesterdays_daily_reference_is_ignored():
    # reset job did not run: reference is yesterday's peak
    account = _account(
        daily_starting_equity=10600.0,
        daily_starting_equity_day=today_risk_day(NOW) - timedelta(days=1),
    )

    evaluation = evaluate_account(account, [], set(), NOW)

    assert evaluation.breached is False
    assert "status" not in evaluation.patch
    assert evaluation.snapshot.daily_dd_pct == 0.0
    assert ANOMALY_STALE_DAILY_REFERENCE in evaluation.snapshot.anomalies
    assert evaluation.alerts == []


def test_unstamped_daily_reference_is_treated_as_stale():
    account = _account(daily_starting_equity=10600.0, daily_starting_equity_day=None)

    evaluation = evaluate_account(account, [], set(), NOW)

    assert evaluation.breached is False
    assert evaluation.snapshot.daily_dd_pct == 0.0
