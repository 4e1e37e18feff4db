import uuid
from sqlalchemy import Boolean, Column, Date, DateTime, Float, String, UniqueConstraint
from sqlalchemy.sql import func

from apps.api.app.db.session import Base


class DrawdownAlert(Base):
    __tablename__ = "drawdown_alerts"

    __table_args__ = (
        UniqueConstraint("account_id", "alert_type", "alert_day", name="uq_account_alert_day"),
    )

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, nullable=False, index=True)
    account_id = Column(String, nullable=False, index=True)

    # daily_dd_50 / max_dd_90 / breach
    alert_type = Column(String, nullable=False, index=True)
    threshold_pct = Column(Float, nullable=False)

    # % of limit used when the alert fired
    current_dd_pct = Column(Float, nullable=False)
    equity_at_alert = Column(Float, nullable=False)

    signals_paused = Column(Boolean, nullable=False, default=False)
    notification_sent = Column(Boolean, nullable=False, default=False)

    # risk day (settings.RISK_DAY_TIMEZONE)
    alert_day = Column(Date, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
