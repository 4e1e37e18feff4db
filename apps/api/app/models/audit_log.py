import uuid

from sqlalchemy import JSON, Column, DateTime, Index, String
from sqlalchemy.sql import func

from apps.api.app.db.session import Base


class AuditLog(Base):
    __tablename__ = "risk_audit_log"
    __table_args__ = (
        Index("ix_risk_audit_entity_action", "entity_id", "action"),
    )

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))

    # drawdown_monitor / api
    actor = Column(String, nullable=False, default="drawdown_monitor")
    user_id = Column(String, index=True, nullable=True)

    # prop_account.failed / prop_account.recovery_mode.activated / drawdown_monitor.cycle ...
    action = Column(String, index=True, nullable=False)
    entity_type = Column(String, nullable=True)
    entity_id = Column(String, nullable=True)

    details = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
