from __future__ import annotations

from dataclasses import dataclass, field

from apps.api.app.core.config import settings
from apps.api.app.services.drawdown import AccountState

# never risk more than this share of the remaining room on one trade
DAILY_REMAINING_SHARE = 0.5
MAX_REMAINING_SHARE = 0.3

DAILY_REMAINING_BLOCK_PCT = 0.5
MAX_REMAINING_BLOCK_PCT = 1.0
MIN_EFFECTIVE_RISK_PCT = 0.1


@dataclass(frozen=True)
class RiskBudget:
    requested_risk_pct: float
    max_safe_risk_pct: float
    effective_risk_pct: float
    daily_dd_remaining_pct: float
    max_dd_remaining_pct: float
    recovery_mode_active: bool
    signals_paused: bool
    warnings: list = field(default_factory=list)
    blockers: list = field(default_factory=list)

    @property
    def allowed(self) -> bool:
        return not self.blockers


def resolve_effective_risk(
    account: AccountState,
    requested_risk_pct: float,
    *,
    signals_paused: bool = False,
) -> RiskBudget:
    """
    Per-trade risk allowed for a prop account given the drawdown room it has
    left. Recovery mode caps the result at RECOVERY_MODE_RISK_PCT.
    """
    warnings = []
    blockers = []

    daily_remaining = max(0.0, account.daily_dd_limit_pct - account.daily_drawdown_used_pct)
    max_remaining = max(0.0, account.max_dd_limit_pct - account.max_drawdown_used_pct)

    per_trade_cap = account.max_risk_per_trade_pct or settings.DEFAULT_MAX_RISK_PER_TRADE_PCT
    max_safe = min(
        daily_remaining * DAILY_REMAINING_SHARE,
        max_remaining * MAX_REMAINING_SHARE,
        float(per_trade_cap),
    )

    if account.recovery_mode_active:
        recovery_risk = settings.RECOVERY_MODE_RISK_PCT
        max_safe = min(max_safe, recovery_risk)
        warnings.append(
            f"Recovery Mode Active: Risk limited to {recovery_risk:g}% per trade to protect your account."
        )

    effective = max(0.0, min(float(requested_risk_pct), max_safe))

    if account.status != "active":
        blockers.append(f"Account is {account.status}; no new trades allowed.")
    if signals_paused:
        blockers.append("Signals paused: drawdown reached the critical threshold today.")
    if daily_remaining <= DAILY_REMAINING_BLOCK_PCT:
        blockers.append(
            f"Daily drawdown limit nearly reached ({account.daily_drawdown_used_pct:.2f}% of "
            f"{account.daily_dd_limit_pct:g}% used). No trades allowed until tomorrow."
        )
    if max_remaining <= MAX_REMAINING_BLOCK_PCT:
        blockers.append(
            f"Max drawdown limit nearly reached ({account.max_drawdown_used_pct:.2f}% of "
            f"{account.max_dd_limit_pct:g}% used). Account at critical risk."
        )
    if effective < MIN_EFFECTIVE_RISK_PCT:
        blockers.append("Insufficient risk budget for this trade")

    return RiskBudget(
        requested_risk_pct=float(requested_risk_pct),
        max_safe_risk_pct=round(max_safe, 4),
        effective_risk_pct=round(effective, 4),
        daily_dd_remaining_pct=round(daily_remaining, 4),
        max_dd_remaining_pct=round(max_remaining, 4),
        recovery_mode_active=account.recovery_mode_active,
        signals_paused=signals_paused,
        warnings=warnings,
        blockers=blockers,
    )
