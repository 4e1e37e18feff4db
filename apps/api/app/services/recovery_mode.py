"""
Recovery-mode state machine.

Two states: Normal and Recovering (``recovery_mode_active``). An account
enters Recovering once drawdown usage reaches the threshold and leaves it
after enough consecutive winning days. A failed account always leaves it.
Transitions only fire from the opposite state, so re-running with the same
inputs is a no-op.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from apps.api.app.core.config import settings
from apps.api.app.services.drawdown import AccountState
from apps.worker.app.engine.notifier import Notification

NORMAL = "normal"
RECOVERING = "recovering"

ACTIVATED = "activated"
EXITED = "exited"
FORCED_EXIT = "forced_exit"

RECOVERY_URL = "/dashboard?tab=prop-firm-rules"


@dataclass(frozen=True)
class RecoveryDecision:
    transition: Optional[str] = None
    patch: dict = field(default_factory=dict)
    notification: Optional[Notification] = None

    @property
    def activated(self) -> bool:
        return self.transition == ACTIVATED

    @property
    def exited(self) -> bool:
        return self.transition == EXITED


def current_state(account: AccountState) -> str:
    return RECOVERING if account.recovery_mode_active else NORMAL


def decide_recovery_transition(
    account: AccountState,
    dd_used_pct: float,
    now: datetime,
    breached: bool = False,
) -> RecoveryDecision:
    state = current_state(account)

    if breached:
        if state == RECOVERING:
            return RecoveryDecision(
                transition=FORCED_EXIT,
                patch={"recovery_mode_active": False, "recovery_mode_started_at": None},
            )
        return RecoveryDecision()

    if state == NORMAL:
        if dd_used_pct < settings.RECOVERY_MODE_THRESHOLD_PCT:
            return RecoveryDecision()
        risk = settings.RECOVERY_MODE_RISK_PCT
        days = settings.RECOVERY_MODE_EXIT_WINNING_DAYS
        return RecoveryDecision(
            transition=ACTIVATED,
            patch={
                "recovery_mode_active": True,
                "recovery_mode_started_at": now,
                "consecutive_winning_days": 0,
            },
            notification=Notification(
                user_id=account.user_id,
                account_id=account.id,
                title="Recovery Mode Activated",
                body=(
                    f"Your {account.label} account is at {dd_used_pct:.0f}% of its drawdown limit. "
                    f"Risk reduced to {risk:g}% per trade until you have {days} consecutive winning days."
                ),
                url=RECOVERY_URL,
                kind="warning",
            ),
        )

    if account.consecutive_winning_days >= settings.RECOVERY_MODE_EXIT_WINNING_DAYS:
        return RecoveryDecision(
            transition=EXITED,
            patch={"recovery_mode_active": False, "recovery_mode_started_at": None},
            notification=Notification(
                user_id=account.user_id,
                account_id=account.id,
                title="Recovery Mode Complete",
                body=(
                    f"Your {account.label} account has exited recovery mode after "
                    f"{account.consecutive_winning_days} consecutive winning days. Normal risk levels restored."
                ),
                url=RECOVERY_URL,
                kind="success",
            ),
        )
    return RecoveryDecision()
