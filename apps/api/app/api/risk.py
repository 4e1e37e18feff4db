from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from sqlalchemy import select

from apps.api.app.core.time import today_risk_day
from apps.api.app.db.session import get_db
from apps.api.app.models.signal import Signal
from apps.api.app.schemas.position_sizing import (
    InstrumentTypeOut,
    PositionSizeOut,
    PositionSizeRequest,
    SignalPositionSizeOut,
    SignalPositionSizeRequest,
)
from apps.api.app.schemas.prop_account import RiskBudgetOut
from apps.api.app.services.audit import API_ACTOR, log_audit_event
from apps.api.app.services.drawdown import AccountState
from apps.api.app.services.instruments import resolve_instrument
from apps.api.app.services.position_sizing import RiskCalculationInput, calculate_position_size
from apps.api.app.services.prop_accounts import get_account, signals_paused_on
from apps.api.app.services.risk_budget import resolve_effective_risk


router = APIRouter(prefix="/risk", tags=["risk"])


def budget_out(budget) -> RiskBudgetOut:
    return RiskBudgetOut(**asdict(budget), allowed=budget.allowed)


@router.post("/position-size", response_model=PositionSizeOut)
def position_size(payload: PositionSizeRequest):
    result = calculate_position_size(RiskCalculationInput(**payload.model_dump()))
    return PositionSizeOut(**asdict(result))


@router.get("/instrument-type", response_model=InstrumentTypeOut)
def instrument_type(symbol: str):
    if not symbol.strip():
        raise HTTPException(status_code=400, detail="symbol is required")
    instrument = resolve_instrument(symbol)
    return InstrumentTypeOut(
        symbol=instrument.symbol,
        instrument_type=instrument.kind,
        position_label=instrument.position_label,
        unit_label=instrument.unit_label,
        unit_size=instrument.unit_size,
        unit_value=instrument.unit_value,
    )


@router.post("/position-size/signal/{signal_id}", response_model=SignalPositionSizeOut)
def position_size_for_signal(
    signal_id: str,
    payload: SignalPositionSizeRequest,
    db: Session = Depends(get_db),
):
    s = db.execute(select(Signal).where(Signal.id == signal_id)).scalar_one_or_none()
    if not s:
        raise HTTPException(status_code=404, detail="Signal not found")

    budget = None
    user_id = None
    if payload.account_id:
        row = get_account(db, payload.account_id)
        if not row:
            raise HTTPException(status_code=404, detail="Prop account not found")
        account = AccountState.from_row(row)
        budget = resolve_effective_risk(
            account,
            payload.risk_pct,
            signals_paused=signals_paused_on(db, row.id, today_risk_day()),
        )
        user_id = row.user_id
        account_size = account.current_equity
        risk_pct = budget.effective_risk_pct
    elif payload.account_size:
        account_size = float(payload.account_size)
        risk_pct = float(payload.risk_pct)
    else:
        raise HTTPException(status_code=400, detail="account_size or account_id is required")

    result = calculate_position_size(
        RiskCalculationInput(
            symbol=s.symbol,
            entry_price=s.entry_price,
            stop_loss=s.stop_loss,
            take_profit=s.take_profit,
            account_size=account_size,
            risk_pct=risk_pct,
            instrument_type=s.instrument_type,
            side=s.direction,
            min_rr=payload.min_rr,
        )
    )

    log_audit_event(
        db,
        action="risk.position_size.signal",
        user_id=user_id,
        entity_type="signal",
        entity_id=s.id,
        details={
            "account_id": payload.account_id,
            "risk_pct": risk_pct,
            "position_size": result.position_size,
            "valid": result.valid,
        },
        actor=API_ACTOR,
    )
    db.commit()

    return SignalPositionSizeOut(
        signal_id=s.id,
        symbol=s.symbol,
        account_size=account_size,
        risk_pct=risk_pct,
        sizing=PositionSizeOut(**asdict(result)),
        risk_budget=budget_out(budget) if budget else None,
    )
