from pydantic import BaseModel, Field, field_validator
from typing import Optional

from apps.api.app.schemas.prop_account import RiskBudgetOut
from apps.api.app.services.instruments import INSTRUMENT_TYPES


ALLOWED_SIDES = {"LONG", "SHORT", "BUY", "SELL"}


def _validate_instrument_type(value: Optional[str]):
    if value is None:
        return None
    normalized = value.strip().lower()
    if not normalized:
        return None
    if normalized not in INSTRUMENT_TYPES:
        raise ValueError("instrument_type must be forex, futures or crypto")
    return normalized


def _validate_side(value: Optional[str]):
    if value is None:
        return None
    normalized = value.strip().upper()
    if not normalized:
        return None
    if normalized not in ALLOWED_SIDES:
        raise ValueError("side must be LONG, SHORT, BUY or SELL")
    return normalized


class PositionSizeRequest(BaseModel):
    symbol: str = Field(min_length=1)
    entry_price: float
    stop_loss: Optional[float] = None
    take_profit: Optional[float] = None
    account_size: float
    risk_pct: float
    instrument_type: Optional[str] = None
    side: Optional[str] = None
    min_rr: Optional[float] = None

    @field_validator("instrument_type")
    @classmethod
    def validate_instrument_type(cls, value: Optional[str]):
        return _validate_instrument_type(value)

    @field_validator("side")
    @classmethod
    def validate_side(cls, value: Optional[str]):
        return _validate_side(value)


class PositionSizeOut(BaseModel):
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
    direction: Optional[str] = None
    meets_min_rr: Optional[bool] = None
    breakdown: str


class SignalPositionSizeRequest(BaseModel):
    risk_pct: float = Field(gt=0)
    account_size: Optional[float] = None
    account_id: Optional[str] = None
    min_rr: Optional[float] = None


class SignalPositionSizeOut(BaseModel):
    signal_id: str
    symbol: str
    account_size: float
    risk_pct: float
    sizing: PositionSizeOut
    risk_budget: Optional[RiskBudgetOut] = None


class InstrumentTypeOut(BaseModel):
    symbol: str
    instrument_type: str
    position_label: str
    unit_label: str
    unit_size: float
    unit_value: float
