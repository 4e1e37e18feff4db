import uuid
from sqlalchemy import Boolean, Column, DateTime, String
from sqlalchemy.sql import func

from apps.api.app.db.session import Base


class CycleLease(Base):
    """One row per named job; a held lease blocks overlapping runs across processes."""

    __tablename__ = "monitor_cycle_leases"
    __table_args__ = {"extend_existing": True}

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    key = Column(String, nullable=False, unique=True, index=True)

    held = Column(Boolean, nullable=False, default=False)
    holder = Column(String, nullable=True)
    acquired_at = Column(DateTime(timezone=True), nullable=True)

    # a crashed holder loses the lease once this passes
    expires_at = Column(DateTime(timezone=True), nullable=True)

    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
