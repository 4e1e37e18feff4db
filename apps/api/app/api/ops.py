from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from apps.api.app.db.session import SessionLocal, get_db
from apps.api.app.schemas.audit import AuditOut
from apps.api.app.schemas.monitor import CycleSummaryOut, MonitorRunRequest
from apps.api.app.services.audit import list_audit_events
from apps.api.app.services.cycle_lock import CycleInProgressError, get_cycle_lease
from apps.worker.app.engine.drawdown_monitor import run_monitoring_cycle
from apps.worker.app.engine.notifier import Notifier

router = APIRouter(prefix="/ops", tags=["ops"])


def get_notifier() -> Notifier:
    return Notifier.from_settings()


@router.get("/health")
def ops_health(db: Session = Depends(get_db)):
    lease = get_cycle_lease(db)
    held = bool(lease and lease.held)
    return {
        "system_state": "OK",
        "cycle_in_progress": held,
        "cycle_holder": lease.holder if held else None,
        "cycle_lease_expires_at": lease.expires_at if held else None,
    }


@router.post("/drawdown-monitor/run", response_model=CycleSummaryOut)
def run_drawdown_monitor(
    payload: Optional[MonitorRunRequest] = None,
    notifier: Notifier = Depends(get_notifier),
):
    try:
        summary = run_monitoring_cycle(
            session_factory=SessionLocal,
            notifier=notifier,
            max_workers=payload.max_workers if payload else None,
        )
    except CycleInProgressError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(exc),
        )
    return CycleSummaryOut(**summary.as_dict())


@router.get("/audit", response_model=list[AuditOut])
def list_audit(
    limit: int = Query(default=100, ge=1, le=1000),
    action: Optional[str] = None,
    entity_id: Optional[str] = None,
    db: Session = Depends(get_db),
):
    return list_audit_events(db, limit=limit, action=action, entity_id=entity_id)
