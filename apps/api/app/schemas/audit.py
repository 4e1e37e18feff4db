from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel


class AuditOut(BaseModel):
    id: str
    actor: str
    user_id: Optional[str] = None
    action: str
    entity_type: Optional[str] = None
    entity_id: Optional[str] = None
    details: Optional[dict[str, Any]] = None
    created_at: datetime

    class Config:
        from_attributes = True
