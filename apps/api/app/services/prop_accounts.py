import logging
from datetime import date
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from apps.api.app.models.drawdown_alert import DrawdownAlert
from apps.api.app.models.prop_account import PropAccount
from apps.api.app.models.trade_allocation import OPEN_ALLOCATION_STATUSES, TradeAllocation
from apps.api.app.services.account_risk import AccountEvaluation
from apps.api.app.services.audit import log_audit_event

logger = logging.getLogger("prop_accounts")

ACTIVE = "active"


def list_active_account_ids(db: Session) -> list[str]:
    rows = db.execute(
        select(PropAccount.id)
        .where(PropAccount.status == ACTIVE)
        .order_by(PropAccount.created_at.asc())
    ).all()
    return [row[0] for row in rows]


def get_account(db: Session, account_id: str, *, for_update: bool = False) -> Optional[PropAccount]:
    stmt = select(PropAccount).where(PropAccount.id == account_id)
    if for_update:
        stmt = stmt.with_for_update()
    return db.execute(stmt).scalar_one_or_none()


def list_open_pnls(db: Session, account_id: str) -> list[float]:
    rows = db.execute(
        select(TradeAllocation.unrealized_pnl).where(
            TradeAllocation.account_id == account_id,
            TradeAllocation.status.in_(OPEN_ALLOCATION_STATUSES),
        )
    ).all()
    return [float(row[0] or 0.0) for row in rows]


def alert_types_sent_on(db: Session, account_id: str, day: date) -> set[str]:
    rows = db.execute(
        select(DrawdownAlert.alert_type).where(
            DrawdownAlert.account_id == account_id,
            DrawdownAlert.alert_day == day,
        )
    ).all()
    return {row[0] for row in rows}


def list_alerts(db: Session, account_id: str, day: Optional[date] = None) -> list[DrawdownAlert]:
    stmt = select(DrawdownAlert).where(DrawdownAlert.account_id == account_id)
    if day is not None:
        stmt = stmt.where(DrawdownAlert.alert_day == day)
    return db.execute(stmt.order_by(DrawdownAlert.created_at.desc())).scalars().all()


def signals_paused_on(db: Session, account_id: str, day: date) -> bool:
    row = db.execute(
        select(DrawdownAlert.id).where(
            DrawdownAlert.account_id == account_id,
            DrawdownAlert.alert_day == day,
            DrawdownAlert.signals_paused.is_(True),
        ).limit(1)
    ).first()
    return row is not None


def _insert_alert(db: Session, row: PropAccount, alert, day: date) -> Optional[DrawdownAlert]:
    record = DrawdownAlert(
        user_id=row.user_id,
        account_id=row.id,
        alert_type=alert.alert_type,
        threshold_pct=alert.threshold_pct,
        current_dd_pct=alert.current_dd_pct,
        equity_at_alert=alert.equity_at_alert,
        signals_paused=alert.signals_paused,
        notification_sent=False,
        alert_day=day,
    )
    try:
        with db.begin_nested():
            db.add(record)
    except IntegrityError:
        # another writer recorded the same alert for today
        logger.info("Alert %s for account %s already recorded on %s", alert.alert_type, row.id, day)
        return None
    return record


def apply_evaluation(
    db: Session,
    row: PropAccount,
    evaluation: AccountEvaluation,
    day: date,
) -> list[DrawdownAlert]:
    """Write the evaluation's patch and alert records. The caller commits."""
    for column, value in evaluation.patch.items():
        setattr(row, column, value)

    inserted = []
    for alert in evaluation.alerts:
        record = _insert_alert(db, row, alert, day)
        if record is not None:
            inserted.append(record)

    snapshot = evaluation.snapshot
    if snapshot.needs_review:
        log_audit_event(
            db,
            action="prop_account.anomaly",
            user_id=row.user_id,
            entity_type="prop_account",
            entity_id=row.id,
            details={"anomalies": list(snapshot.anomalies)},
        )
    if evaluation.breached:
        log_audit_event(
            db,
            action="prop_account.failed",
            user_id=row.user_id,
            entity_type="prop_account",
            entity_id=row.id,
            details={
                "reason": evaluation.breach_reason,
                "equity": snapshot.current_equity,
                "daily_dd_pct": round(snapshot.daily_dd_pct, 4),
                "max_dd_pct": round(snapshot.max_dd_pct, 4),
            },
        )
    if evaluation.recovery.transition:
        log_audit_event(
            db,
            action=f"prop_account.recovery_mode.{evaluation.recovery.transition}",
            user_id=row.user_id,
            entity_type="prop_account",
            entity_id=row.id,
            details={"dd_used_pct": round(snapshot.dd_used_pct, 2)},
        )
    db.flush()
    return inserted


def mark_notifications_sent(db: Session, alert_ids: list[str]) -> int:
    if not alert_ids:
        return 0
    result = db.execute(
        update(DrawdownAlert)
        .where(DrawdownAlert.id.in_(alert_ids))
        .values(notification_sent=True)
    )
    db.commit()
    return int(result.rowcount or 0)
