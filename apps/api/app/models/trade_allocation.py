import uuid
from sqlalchemy import Column, String, Float, DateTime
from sqlalchemy.sql import func

from apps.api.app.db.session import Base

OPEN_ALLOCATION_STATUSES = ("active", "partial")


class TradeAllocation(Base):
    __tablename__ = "user_trade_allocations"
    __table_args__ = {"extend_existing": True}

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))

    user_id = Column(String, index=True, nullable=False)
    account_id = Column(String, index=True, nullable=False)
    signal_id = Column(String, index=True, nullable=True)

    symbol = Column(String, index=True, nullable=False)
    lot_size = Column(Float, nullable=True)

    status = Column(String, index=True, nullable=False, default="active")  # active / partial / closed

    # maintained by the trade sync job; only read here
    unrealized_pnl = Column(Float, nullable=True)
    realized_pnl = Column(Float, nullable=True)

    opened_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    closed_at = Column(DateTime(timezone=True), nullable=True)
