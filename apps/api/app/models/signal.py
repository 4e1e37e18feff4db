import uuid
from sqlalchemy import Column, String, Float, DateTime
from sqlalchemy.sql import func

from apps.api.app.db.session import Base


class Signal(Base):
    __tablename__ = "signals"
    __table_args__ = {"extend_existing": True}

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))

    # mercado
    symbol = Column(String, index=True, nullable=False)      # e.g. "EURUSD", "ESZ4", "BTC/USDT"
    instrument_type = Column(String, nullable=True)          # forex / futures / crypto, None = detect
    direction = Column(String, nullable=True)                # LONG / SHORT

    # precios propuestos
    entry_price = Column(Float, nullable=False)
    stop_loss = Column(Float, nullable=True)
    take_profit = Column(Float, nullable=True)

    status = Column(String, index=True, nullable=False, default="active")

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), server_default=func.now(), nullable=False)
