from __future__ import annotations

from dataclasses import dataclass, field
from typing import Collection, Optional

from apps.api.app.core.config import settings
from apps.api.app.services.drawdown import AccountState, DrawdownSnapshot
from apps.worker.app.engine.notifier import Notification

BREACH_ALERT_TYPE = "breach"
BREACH_THRESHOLD_PCT = 100.0
DAILY = "daily"
MAX = "max"


@dataclass(frozen=True)
class AlertToEmit:
    alert_type: str
    threshold_pct: float
    current_dd_pct: float
    equity_at_alert: float
    signals_paused: bool
    notification: Notification


@dataclass(frozen=True)
class AlertDecision:
    breach_reason: Optional[str] = None
    alerts: list = field(default_factory=list)

    @property
    def breached(self) -> bool:
        return self.breach_reason is not None

    @property
    def signals_paused(self) -> bool:
        return any(a.signals_paused for a in self.alerts)


def alert_type_for(scope: str, threshold: int) -> str:
    return f"{scope}_dd_{int(threshold)}"


def breach_reason(account: AccountState, snapshot: DrawdownSnapshot) -> Optional[str]:
    # daily is checked first; either limit fails the account
    if snapshot.daily_dd_used_pct >= 100:
        return (
            f"Daily drawdown limit breached: {snapshot.daily_dd_pct:.2f}% "
            f"(limit: {account.daily_dd_limit_pct:g}%)"
        )
    if snapshot.max_dd_used_pct >= 100:
        return (
            f"Max drawdown limit breached: {snapshot.max_dd_pct:.2f}% "
            f"(limit: {account.max_dd_limit_pct:g}%)"
        )
    return None


def _urgency(threshold: int) -> str:
    if threshold >= settings.SIGNALS_PAUSED_THRESHOLD_PCT:
        return "CRITICAL"
    if threshold >= settings.RECOVERY_MODE_THRESHOLD_PCT:
        return "WARNING"
    return "NOTICE"


def _threshold_alert(account, snapshot, scope, threshold) -> AlertToEmit:
    if scope == DAILY:
        used, dd, limit, label = snapshot.daily_dd_used_pct, snapshot.daily_dd_pct, account.daily_dd_limit_pct, "Daily"
    else:
        used, dd, limit, label = snapshot.max_dd_used_pct, snapshot.max_dd_pct, account.max_dd_limit_pct, "Max"

    paused = threshold >= settings.SIGNALS_PAUSED_THRESHOLD_PCT
    body = (
        f"{account.label} has used {used:.1f}% of its {label.lower()} drawdown limit "
        f"({dd:.2f}% of {limit:g}%)."
    )
    if paused:
        body += " Trading paused."

    return AlertToEmit(
        alert_type=alert_type_for(scope, threshold),
        threshold_pct=float(threshold),
        current_dd_pct=used,
        equity_at_alert=snapshot.current_equity,
        signals_paused=paused,
        notification=Notification(
            user_id=account.user_id,
            account_id=account.id,
            title=f"{_urgency(threshold)}: {label} Drawdown at {used:.0f}%",
            body=body,
            url="/dashboard?tab=overview",
            kind="critical" if paused else "warning",
        ),
    )


def evaluate_alerts(
    account: AccountState,
    snapshot: DrawdownSnapshot,
    sent_today: Collection[str] = (),
) -> AlertDecision:
    """
    Breach wins over everything else: the account fails and no threshold
    alert is produced in the same cycle. Otherwise every threshold crossed by
    daily or max usage yields one alert, unless that alert type was already
    recorded for the account today.
    """
    reason = breach_reason(account, snapshot)
    if reason:
        breach = AlertToEmit(
            alert_type=BREACH_ALERT_TYPE,
            threshold_pct=BREACH_THRESHOLD_PCT,
            current_dd_pct=snapshot.dd_used_pct,
            equity_at_alert=snapshot.current_equity,
            signals_paused=True,
            notification=Notification(
                user_id=account.user_id,
                account_id=account.id,
                title="ACCOUNT FAILED - Drawdown Breach",
                body=reason,
                url="/dashboard?tab=overview",
                kind="critical",
            ),
        )
        return AlertDecision(breach_reason=reason, alerts=[breach])

    alerts = []
    for threshold in sorted(settings.ALERT_THRESHOLDS_PCT):
        for scope, used in ((DAILY, snapshot.daily_dd_used_pct), (MAX, snapshot.max_dd_used_pct)):
            if used < threshold:
                continue
            if alert_type_for(scope, threshold) in sent_today:
                continue
            alerts.append(_threshold_alert(account, snapshot, scope, threshold))
    return AlertDecision(alerts=alerts)
