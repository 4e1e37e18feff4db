from datetime import date, datetime
from pydantic import BaseModel
from typing import Optional


class DrawdownSnapshotOut(BaseModel):
    account_id: str
    status: str
    current_equity: float
    unrealized_pnl: float
    highest_equity: float
    daily_dd_pct: float
    max_dd_pct: float
    daily_dd_used_pct: float
    max_dd_used_pct: float
    daily_dd_limit_pct: float
    max_dd_limit_pct: float
    is_trailing_dd: bool
    trailing_dd_floor: Optional[float] = None
    recovery_mode_active: bool
    consecutive_winning_days: int
    anomalies: list[str] = []


class DrawdownAlertOut(BaseModel):
    id: str
    account_id: str
    alert_type: str
    threshold_pct: float
    current_dd_pct: float
    equity_at_alert: float
    signals_paused: bool
    notification_sent: bool
    alert_day: date
    created_at: datetime

    class Config:
        from_attributes = True


class RiskBudgetOut(BaseModel):
    requested_risk_pct: float
    max_safe_risk_pct: float
    effective_risk_pct: float
    daily_dd_remaining_pct: float
    max_dd_remaining_pct: float
    recovery_mode_active: bool
    signals_paused: bool
    allowed: bool
    warnings: list[str] = []
    blockers: list[str] = []
