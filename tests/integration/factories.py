from apps.api.app.core.time import today_risk_day
from apps.api.app.db.session import SessionLocal
from apps.api.app.models.prop_account import PropAccount
from apps.api.app.models.signal import Signal
from apps.api.app.models.trade_allocation import TradeAllocation


def seed_account(**overrides) -> str:
    data = {
        "user_id": "user-1",
        "prop_firm_name": "FTMO",
        "account_label": "FTMO 10k",
        "starting_balance": 10000.0,
        "current_equity": 10000.0,
        "highest_equity": 10000.0,
        "daily_starting_equity": 10000.0,
        "daily_starting_equity_day": today_risk_day(),
        "daily_dd_limit_pct": 5.0,
        "max_dd_limit_pct": 10.0,
    }
    data.update(overrides)
    db = SessionLocal()
    try:
        row = PropAccount(**data)
        db.add(row)
        db.commit()
        return row.id
    finally:
        db.close()


def seed_allocation(account_id: str, unrealized_pnl: float, status: str = "active", symbol: str = "EURUSD") -> str:
    db = SessionLocal()
    try:
        row = TradeAllocation(
            user_id="user-1",
            account_id=account_id,
            symbol=symbol,
            lot_size=0.5,
            status=status,
            unrealized_pnl=unrealized_pnl,
        )
        db.add(row)
        db.commit()
        return row.id
    finally:
        db.close()


def seed_signal(**overrides) -> str:
    data = {
        "symbol": "EURUSD",
        "direction": "LONG",
        "entry_price": 1.1000,
        "stop_loss": 1.0950,
        "take_profit": 1.1100,
    }
    data.update(overrides)
    db = SessionLocal()
    try:
        row = Signal(**data)
        db.add(row)
        db.commit()
        return row.id
    finally:
        db.close()


def load_account(account_id: str) -> PropAccount:
    db = SessionLocal()
    try:
        row = db.get(PropAccount, account_id)
        db.expunge(row)
        return row
    finally:
        db.close()
