import pytest

from apps.api.app.services.drawdown import AccountState
from apps.api.app.services.risk_budget import resolve_effective_risk


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
        "daily_dd_limit_pct": 5.0,
        "max_dd_limit_pct": 10.0,
    }
    data.update(overrides)
    return AccountState(**data)


def test_fresh_account_gets_requested_risk():
    budget = resolve_effective_risk(_account(), 1.0)

    assert budget.allowed is True
    assert budget.max_safe_risk_pct == pytest.approx(2.0)
    assert budget.effective_risk_pct == pytest.approx(1.0)
    assert budget.warnings == []


def test_remaining_room_limits_risk():
    # 2% of 5% daily used -> 3% left, half of that is 1.5%
    budget = resolve_effective_risk(_account(daily_drawdown_used_pct=2.0), 2.0)

    assert budget.daily_dd_remaining_pct == pytest.approx(3.0)
    assert budget.max_safe_risk_pct == pytest.approx(1.5)
    assert budget.effective_risk_pct == pytest.approx(1.5)


def test_per_trade_cap_from_account():
    budget = resolve_effective_risk(_account(max_risk_per_trade_pct=0.75), 1.0)

    assert budget.effective_risk_pct == pytest.approx(0.75)


def test_recovery_mode_caps_risk_and_warns():
    budget = resolve_effective_risk(_account(recovery_mode_active=True), 1.0)

    assert budget.effective_risk_pct == pytest.approx(0.5)
    assert budget.recovery_mode_active is True
    assert budget.warnings[0].startswith("Recovery Mode Active")
    assert budget.allowed is True


def test_nearly_exhausted_daily_room_blocks_trading():
    budget = resolve_effective_risk(_account(daily_drawdown_used_pct=4.6), 1.0)

    assert budget.allowed is False
    assert any("Daily drawdown limit nearly reached" in b for b in budget.blockers)


def test_failed_account_and_paused_signals_block():
    budget = resolve_effective_risk(_account(status="failed"), 1.0, signals_paused=True)

    assert budget.allowed is False
    assert len(budget.blockers) == 2
    assert budget.signals_paused is True
