import uuid
from sqlalchemy import Boolean, Column, Date, DateTime, Float, Integer, String, Text
from sqlalchemy.sql import func

from apps.api.app.db.session import Base


class PropAccount(Base):
    __tablename__ = "user_prop_accounts"
    __table_args__ = {"extend_existing": True}

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, index=True, nullable=False)

    prop_firm_name = Column(String, nullable=False, default="")
    account_label = Column(String, nullable=True)

    # balances
    starting_balance = Column(Float, nullable=False)
    current_equity = Column(Float, nullable=False)
    highest_equity = Column(Float, nullable=False)
    realized_pnl = Column(Float, nullable=False, default=0.0)
    unrealized_pnl = Column(Float, nullable=False, default=0.0)

    # snapshot taken at the start of each trading day (externally reset)
    daily_starting_equity = Column(Float, nullable=True)
    # risk day the snapshot belongs to; any other day means stale
    daily_starting_equity_day = Column(Date, nullable=True)

    # limits, as % of the account-defined base
    daily_dd_limit_pct = Column(Float, nullable=False, default=5.0)
    max_dd_limit_pct = Column(Float, nullable=False, default=10.0)
    is_trailing_dd = Column(Boolean, nullable=False, default=False)
    trailing_dd_floor = Column(Float, nullable=True)
    max_risk_per_trade_pct = Column(Float, nullable=True)

    # last computed raw drawdown %, not % of limit
    daily_drawdown_used_pct = Column(Float, nullable=False, default=0.0)
    max_drawdown_used_pct = Column(Float, nullable=False, default=0.0)

    status = Column(String, index=True, nullable=False, default="active")  # active / failed / passed
    failure_reason = Column(Text, nullable=True)

    recovery_mode_active = Column(Boolean, nullable=False, default=False)
    recovery_mode_started_at = Column(DateTime(timezone=True), nullable=True)
    consecutive_winning_days = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), server_default=func.now(), nullable=False)
