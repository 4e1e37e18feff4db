from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Collection, Iterable, Optional

from apps.api.app.core.time import today_risk_day
from apps.api.app.services.drawdown import AccountState, DrawdownSnapshot, compute_drawdown
from apps.api.app.services.drawdown_alerts import evaluate_alerts
from apps.api.app.services.recovery_mode import RecoveryDecision, decide_recovery_transition

FAILED = "failed"


@dataclass(frozen=True)
class AccountEvaluation:
    account_id: str
    user_id: str
    snapshot: DrawdownSnapshot
    patch: dict
    alerts: list = field(default_factory=list)
    notifications: list = field(default_factory=list)
    breach_reason: Optional[str] = None
    recovery: RecoveryDecision = field(default_factory=RecoveryDecision)

    @property
    def breached(self) -> bool:
        return self.breach_reason is not None

    @property
    def at_risk(self) -> bool:
        return not self.breached and any(a.signals_paused for a in self.alerts)


def build_equity_patch(account: AccountState, snapshot: DrawdownSnapshot) -> dict:
    patch = {
        "current_equity": snapshot.current_equity,
        "unrealized_pnl": snapshot.unrealized_pnl,
        "daily_drawdown_used_pct": snapshot.daily_dd_pct,
        "max_drawdown_used_pct": snapshot.max_dd_pct,
    }
    if snapshot.new_highest_equity > account.highest_equity:
        patch["highest_equity"] = snapshot.new_highest_equity
    if snapshot.trailing_dd_floor is not None:
        patch["trailing_dd_floor"] = snapshot.trailing_dd_floor
    return patch


def evaluate_account(
    account: AccountState,
    open_pnls: Iterable[Optional[float]],
    sent_today: Collection[str],
    now: datetime,
    day: Optional[date] = None,
) -> AccountEvaluation:
    """
    One account, one cycle: equity -> drawdown -> breach -> threshold alerts
    -> recovery mode. Returns the single patch to persist plus the alerts and
    notifications to emit; nothing here touches the store. ``day`` is the
    risk day the daily reference must belong to (defaults to the day of
    ``now``).
    """
    snapshot = compute_drawdown(account, open_pnls, today=day or today_risk_day(now))
    decision = evaluate_alerts(account, snapshot, sent_today)

    patch = build_equity_patch(account, snapshot)
    if decision.breached:
        patch["status"] = FAILED
        patch["failure_reason"] = decision.breach_reason

    recovery = decide_recovery_transition(
        account,
        snapshot.dd_used_pct,
        now,
        breached=decision.breached,
    )
    patch.update(recovery.patch)

    notifications = [a.notification for a in decision.alerts]
    if recovery.notification is not None:
        notifications.append(recovery.notification)

    return AccountEvaluation(
        account_id=account.id,
        user_id=account.user_id,
        snapshot=snapshot,
        patch=patch,
        alerts=list(decision.alerts),
        notifications=notifications,
        breach_reason=decision.breach_reason,
        recovery=recovery,
    )
