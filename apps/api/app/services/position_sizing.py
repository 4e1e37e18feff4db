from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

from apps.api.app.core.config import settings
from apps.api.app.services.instruments import (
    detect_instrument_type,
    normalize_instrument_type,
    resolve_instrument,
)

INVALID_BREAKDOWN = "Invalid input data"

LONG = "LONG"
SHORT = "SHORT"
_SIDE_ALIASES = {
    "LONG": LONG,
    "BUY": LONG,
    "SHORT": SHORT,
    "SELL": SHORT,
}


@dataclass(frozen=True)
class RiskCalculationInput:
    symbol: str
    entry_price: float
    stop_loss: Optional[float]
    take_profit: Optional[float]
    account_size: float
    risk_pct: float
    instrument_type: Optional[str] = None
    side: Optional[str] = None
    min_rr: Optional[float] = None


@dataclass(frozen=True)
class RiskCalculationResult:
    valid: bool
    instrument_type: str
    position_size: float
    position_label: str
    risk_amount: float
    potential_profit: float
    potential_loss: float
    risk_reward: float
    stop_units: float
    target_units: float
    direction: Optional[str]
    meets_min_rr: Optional[bool]
    breakdown: str


def invalid_result(instrument_type: str, position_label: str = "Lot Size") -> RiskCalculationResult:
    return RiskCalculationResult(
        valid=False,
        instrument_type=instrument_type,
        position_size=0.0,
        position_label=position_label,
        risk_amount=0.0,
        potential_profit=0.0,
        potential_loss=0.0,
        risk_reward=0.0,
        stop_units=0.0,
        target_units=0.0,
        direction=None,
        meets_min_rr=None,
        breakdown=INVALID_BREAKDOWN,
    )


def _finite_positive(value) -> bool:
    try:
        v = float(value)
    except (TypeError, ValueError):
        return False
    return math.isfinite(v) and v > 0


def resolve_direction(
    entry: float,
    stop: float,
    target: Optional[float],
    side: Optional[str] = None,
) -> Optional[str]:
    """
    Explicit side wins. Otherwise the stop tells the direction unless the
    target sits on the same side of entry as the stop, which is ambiguous.
    """
    explicit = _SIDE_ALIASES.get((side or "").strip().upper())
    if explicit:
        return explicit

    inferred = LONG if stop < entry else SHORT
    if target is None or target == entry:
        return inferred
    if (target > entry) == (stop < entry):
        return inferred
    return None


def _signed_moves(direction, entry, stop, target):
    if direction == LONG:
        stop_move = entry - stop
        target_move = (target - entry) if target is not None else 0.0
    elif direction == SHORT:
        stop_move = stop - entry
        target_move = (entry - target) if target is not None else 0.0
    else:
        stop_move = abs(entry - stop)
        target_move = abs(target - entry) if target is not None else 0.0
    return stop_move, target_move


def calculate_position_size(data: RiskCalculationInput) -> RiskCalculationResult:
    requested_kind = data.instrument_type
    kind = normalize_instrument_type(requested_kind) or detect_instrument_type(data.symbol)
    if requested_kind and normalize_instrument_type(requested_kind) is None:
        return invalid_result(kind)

    instrument = resolve_instrument(data.symbol, kind)

    if not (
        _finite_positive(data.entry_price)
        and _finite_positive(data.stop_loss)
        and _finite_positive(data.account_size)
        and _finite_positive(data.risk_pct)
    ):
        return invalid_result(kind, instrument.position_label)
    if data.take_profit is not None and not _finite_positive(data.take_profit):
        return invalid_result(kind, instrument.position_label)

    entry = float(data.entry_price)
    stop = float(data.stop_loss)
    target = float(data.take_profit) if data.take_profit is not None else None

    if stop == entry:
        return invalid_result(kind, instrument.position_label)

    direction = resolve_direction(entry, stop, target, data.side)
    stop_move, target_move = _signed_moves(direction, entry, stop, target)
    if stop_move <= 0:
        # explicit side contradicts the stop
        return invalid_result(kind, instrument.position_label)

    risk_amount = float(data.account_size) * float(data.risk_pct) / 100.0
    stop_units = instrument.stop_units(stop_move)
    target_units = instrument.stop_units(target_move)

    raw_size = risk_amount / (stop_units * instrument.unit_value)
    size = max(settings.MIN_POSITION_SIZE, round(raw_size, instrument.size_precision))

    potential_loss = instrument.money(stop_units, size)
    potential_profit = instrument.money(target_units, size)

    if potential_loss > 0 and potential_profit > 0:
        risk_reward = round(potential_profit / potential_loss, 2)
    else:
        risk_reward = 0.0

    meets_min_rr = None
    if data.min_rr is not None:
        meets_min_rr = risk_reward >= float(data.min_rr)

    return RiskCalculationResult(
        valid=True,
        instrument_type=kind,
        position_size=size,
        position_label=instrument.position_label,
        risk_amount=round(risk_amount, 2),
        potential_profit=round(potential_profit, 2),
        potential_loss=round(potential_loss, 2),
        risk_reward=risk_reward,
        stop_units=round(stop_units, 1),
        target_units=round(target_units, 1),
        direction=direction,
        meets_min_rr=meets_min_rr,
        breakdown=instrument.describe(risk_amount, stop_units, size, entry),
    )
