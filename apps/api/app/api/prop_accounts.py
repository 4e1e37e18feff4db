from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from apps.api.app.api.risk import budget_out
from apps.api.app.core.time import today_risk_day
from apps.api.app.db.session import get_db
from apps.api.app.models.prop_account import PropAccount
from apps.api.app.schemas.prop_account import DrawdownAlertOut, DrawdownSnapshotOut, RiskBudgetOut
from apps.api.app.services.drawdown import AccountState, compute_drawdown
from apps.api.app.services.prop_accounts import (
    get_account,
    list_alerts,
    list_open_pnls,
    signals_paused_on,
)
from apps.api.app.services.risk_budget import resolve_effective_risk

router = APIRouter(prefix="/prop-accounts", tags=["prop-accounts"])


def _account_or_404(db: Session, account_id: str) -> PropAccount:
    row = get_account(db, account_id)
    if not row:
        raise HTTPException(status_code=404, detail="Prop account not found")
    return row


@router.get("/{account_id}/drawdown", response_model=DrawdownSnapshotOut)
def account_drawdown(
    account_id: str,
    db: Session = Depends(get_db),
):
    # live view, nothing is persisted here
    row = _account_or_404(db, account_id)
    account = AccountState.from_row(row)
    snapshot = compute_drawdown(account, list_open_pnls(db, account_id), today=today_risk_day())
    return DrawdownSnapshotOut(
        account_id=row.id,
        status=row.status,
        current_equity=snapshot.current_equity,
        unrealized_pnl=snapshot.unrealized_pnl,
        highest_equity=snapshot.new_highest_equity,
        daily_dd_pct=round(snapshot.daily_dd_pct, 4),
        max_dd_pct=round(snapshot.max_dd_pct, 4),
        daily_dd_used_pct=round(snapshot.daily_dd_used_pct, 2),
        max_dd_used_pct=round(snapshot.max_dd_used_pct, 2),
        daily_dd_limit_pct=account.daily_dd_limit_pct,
        max_dd_limit_pct=account.max_dd_limit_pct,
        is_trailing_dd=account.is_trailing_dd,
        trailing_dd_floor=snapshot.trailing_dd_floor,
        recovery_mode_active=account.recovery_mode_active,
        consecutive_winning_days=account.consecutive_winning_days,
        anomalies=list(snapshot.anomalies),
    )


@router.get("/{account_id}/alerts", response_model=list[DrawdownAlertOut])
def account_alerts(
    account_id: str,
    day: Optional[date] = None,
    db: Session = Depends(get_db),
):
    _account_or_404(db, account_id)
    return list_alerts(db, account_id, day)


@router.get("/{account_id}/risk-budget", response_model=RiskBudgetOut)
def account_risk_budget(
    account_id: str,
    requested_risk_pct: float = Query(default=1.0, gt=0),
    db: Session = Depends(get_db),
):
    row = _account_or_404(db, account_id)
    budget = resolve_effective_risk(
        AccountState.from_row(row),
        requested_risk_pct,
        signals_paused=signals_paused_on(db, row.id, today_risk_day()),
    )
    return budget_out(budget)
