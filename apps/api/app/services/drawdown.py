"""
Equity and drawdown calculation for prop-firm accounts.

Everything here is pure: it works on an ``AccountState`` snapshot of the
account row and the unrealized P&L of its open allocations, and never talks
to the database.

Daily drawdown is measured against the equity snapshot taken at the start of
the trading day; a snapshot stamped with any other day is stale and ignored.
Max drawdown is measured from the starting balance (static)
or from the high-water mark (trailing), always as a share of the starting
balance. Percentages are clamped at 0: being in profit is 0% drawdown.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, Optional

ANOMALY_STARTING_BALANCE = "non_positive_starting_balance"
ANOMALY_DAILY_LIMIT = "non_positive_daily_dd_limit"
ANOMALY_MAX_LIMIT = "non_positive_max_dd_limit"
ANOMALY_NO_DAILY_REFERENCE = "missing_daily_starting_equity"
ANOMALY_STALE_DAILY_REFERENCE = "stale_daily_starting_equity"

REVIEW_ANOMALIES = {ANOMALY_STARTING_BALANCE, ANOMALY_DAILY_LIMIT, ANOMALY_MAX_LIMIT}


def _f(value, default: float = 0.0) -> float:
    return default if value is None else float(value)


@dataclass(frozen=True)
class AccountState:
    id: str
    user_id: str
    label: str
    starting_balance: float
    realized_pnl: float
    current_equity: float
    highest_equity: float
    daily_starting_equity: Optional[float]
    daily_dd_limit_pct: float
    max_dd_limit_pct: float
    is_trailing_dd: bool = False
    status: str = "active"
    recovery_mode_active: bool = False
    recovery_mode_started_at: Optional[datetime] = None
    consecutive_winning_days: int = 0
    daily_drawdown_used_pct: float = 0.0
    max_drawdown_used_pct: float = 0.0
    max_risk_per_trade_pct: Optional[float] = None
    daily_starting_equity_day: Optional[date] = None

    @classmethod
    def from_row(cls, row) -> "AccountState":
        return cls(
            id=row.id,
            user_id=row.user_id,
            label=row.account_label or row.prop_firm_name or row.id,
            starting_balance=_f(row.starting_balance),
            realized_pnl=_f(row.realized_pnl),
            current_equity=_f(row.current_equity),
            highest_equity=_f(row.highest_equity),
            daily_starting_equity=row.daily_starting_equity,
            daily_dd_limit_pct=_f(row.daily_dd_limit_pct),
            max_dd_limit_pct=_f(row.max_dd_limit_pct),
            is_trailing_dd=bool(row.is_trailing_dd),
            status=row.status or "active",
            recovery_mode_active=bool(row.recovery_mode_active),
            recovery_mode_started_at=row.recovery_mode_started_at,
            consecutive_winning_days=max(0, int(row.consecutive_winning_days or 0)),
            daily_drawdown_used_pct=_f(row.daily_drawdown_used_pct),
            max_drawdown_used_pct=_f(row.max_drawdown_used_pct),
            max_risk_per_trade_pct=row.max_risk_per_trade_pct,
            daily_starting_equity_day=row.daily_starting_equity_day,
        )


@dataclass(frozen=True)
class DrawdownSnapshot:
    current_equity: float
    unrealized_pnl: float
    daily_dd_pct: float
    max_dd_pct: float
    daily_dd_used_pct: float
    max_dd_used_pct: float
    new_highest_equity: float
    trailing_dd_floor: Optional[float]
    anomalies: tuple = ()

    @property
    def dd_used_pct(self) -> float:
        return max(self.daily_dd_used_pct, self.max_dd_used_pct)

    @property
    def needs_review(self) -> bool:
        return any(a in REVIEW_ANOMALIES for a in self.anomalies)


def pct_of_limit(dd_pct: float, limit_pct: float) -> float:
    if limit_pct <= 0:
        return 0.0
    return max(0.0, dd_pct / limit_pct * 100.0)


def compute_equity(account: AccountState, open_pnls: Iterable[Optional[float]]) -> tuple[float, float]:
    unrealized = sum(_f(p) for p in open_pnls)
    return account.starting_balance + account.realized_pnl + unrealized, unrealized


def daily_reference(account: AccountState, current_equity: float, today: Optional[date] = None):
    """
    The equity daily drawdown is measured from, plus the anomaly when it had
    to fall back to current equity. With ``today`` given, only a snapshot
    stamped with that risk day counts; the reset job may not have run.
    """
    ref = _f(account.daily_starting_equity)
    if ref <= 0:
        return current_equity, ANOMALY_NO_DAILY_REFERENCE
    if today is not None and account.daily_starting_equity_day != today:
        return current_equity, ANOMALY_STALE_DAILY_REFERENCE
    return ref, None


def compute_drawdown(
    account: AccountState,
    open_pnls: Iterable[Optional[float]],
    today: Optional[date] = None,
) -> DrawdownSnapshot:
    current_equity, unrealized = compute_equity(account, open_pnls)
    new_highest = max(account.highest_equity, current_equity)
    anomalies = []

    daily_ref, ref_anomaly = daily_reference(account, current_equity, today)
    if ref_anomaly:
        anomalies.append(ref_anomaly)

    if account.starting_balance <= 0:
        anomalies.append(ANOMALY_STARTING_BALANCE)
        daily_dd = 0.0
        max_dd = 0.0
    else:
        daily_dd = 0.0
        if daily_ref > 0:
            daily_dd = max(0.0, (daily_ref - current_equity) / daily_ref * 100.0)

        if account.is_trailing_dd:
            watermark = max(account.highest_equity, current_equity)
            max_dd = max(0.0, (watermark - current_equity) / account.starting_balance * 100.0)
        else:
            max_dd = max(0.0, (account.starting_balance - current_equity) / account.starting_balance * 100.0)

    if account.daily_dd_limit_pct <= 0:
        anomalies.append(ANOMALY_DAILY_LIMIT)
    if account.max_dd_limit_pct <= 0:
        anomalies.append(ANOMALY_MAX_LIMIT)

    trailing_floor = None
    if account.is_trailing_dd:
        trailing_floor = new_highest * (1 - account.max_dd_limit_pct / 100.0)

    return DrawdownSnapshot(
        current_equity=current_equity,
        unrealized_pnl=unrealized,
        daily_dd_pct=daily_dd,
        max_dd_pct=max_dd,
        daily_dd_used_pct=pct_of_limit(daily_dd, account.daily_dd_limit_pct),
        max_dd_used_pct=pct_of_limit(max_dd, account.max_dd_limit_pct),
        new_highest_equity=new_highest,
        trailing_dd_floor=trailing_floor,
        anomalies=tuple(anomalies),
    )
