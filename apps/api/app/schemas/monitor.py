from pydantic import BaseModel, Field


class MonitorRunRequest(BaseModel):
    max_workers: int | None = Field(default=None, ge=1, le=32)


class CycleSummaryOut(BaseModel):
    processed: int
    alerts_sent: int
    accounts_failed: int
    accounts_at_risk: int
    recovery_mode_activated: int
    recovery_mode_exited: int
    errors: int
    failed_account_ids: list[str] = []
    lease_lost: bool = False
