import pytest

from apps.api.app.services.instruments import (
    CRYPTO,
    FOREX,
    FUTURES,
    detect_instrument_type,
    resolve_instrument,
)
from apps.api.app.services.position_sizing import (
    INVALID_BREAKDOWN,
    LONG,
    SHORT,
    RiskCalculationInput,
    calculate_position_size,
)


def _input(**overrides) -> RiskCalculationInput:
    data = {
        "symbol": "EURUSD",
        "entry_price": 1.1000,
        "stop_loss": 1.0950,
        "take_profit": None,
        "account_size": 10000,
        "risk_pct": 1,
    }
    data.update(overrides)
    return RiskCalculationInput(**data)


def test_forex_fifty_pip_stop_sizes_to_point_two_lots():
    result = calculate_position_size(_input())

    assert result.valid is True
    assert result.instrument_type == FOREX
    assert result.risk_amount == 100.0
    assert result.stop_units == 50.0
    assert result.position_size == pytest.approx(0.20)
    assert result.potential_loss == pytest.approx(100.0)
    assert result.position_label == "Lot Size"
    assert "50.0 pips" in result.breakdown
    assert "0.20 lots" in result.breakdown


def test_forex_target_gives_profit_and_risk_reward():
    result = calculate_position_size(_input(take_profit=1.1100, min_rr=1.5))

    assert result.direction == LONG
    assert result.target_units == 100.0
    assert result.potential_profit == pytest.approx(200.0)
    assert result.risk_reward == 2.0
    assert result.meets_min_rr is True


def test_short_signal_uses_signed_distances():
    result = calculate_position_size(_input(stop_loss=1.1050, take_profit=1.0900))

    assert result.direction == SHORT
    assert result.position_size == pytest.approx(0.20)
    assert result.potential_profit == pytest.approx(200.0)
    assert result.potential_loss == pytest.approx(100.0)


def test_target_on_stop_side_falls_back_to_absolute_distances():
    result = calculate_position_size(_input(take_profit=1.0900))

    assert result.valid is True
    assert result.direction is None
    assert result.potential_profit == pytest.approx(200.0)


def test_jpy_pair_uses_two_decimal_pips():
    result = calculate_position_size(_input(symbol="USDJPY", entry_price=150.00, stop_loss=149.50))

    assert result.stop_units == 50.0
    assert result.position_size == pytest.approx(0.20)


def test_futures_uses_tick_size_and_tick_value():
    result = calculate_position_size(
        _input(symbol="ESZ4", entry_price=5000.0, stop_loss=4990.0, take_profit=5020.0, account_size=50000)
    )

    assert result.instrument_type == FUTURES
    assert result.stop_units == 40.0
    assert result.position_size == pytest.approx(1.0)
    assert result.potential_loss == pytest.approx(500.0)
    assert result.potential_profit == pytest.approx(1000.0)
    assert result.position_label == "Contracts"


def test_crypto_distance_is_raw_price_difference():
    result = calculate_position_size(
        _input(symbol="BTC/USDT", entry_price=60000.0, stop_loss=59000.0, take_profit=62000.0)
    )

    assert result.instrument_type == CRYPTO
    assert result.position_size == pytest.approx(0.1)
    assert result.potential_loss == pytest.approx(100.0)
    assert result.potential_profit == pytest.approx(200.0)
    assert result.risk_reward == 2.0


def test_tiny_risk_is_floored_at_minimum_size():
    result = calculate_position_size(_input(account_size=100, risk_pct=0.1))

    assert result.valid is True
    assert result.position_size == 0.01


def test_zero_stop_distance_is_flagged_invalid():
    result = calculate_position_size(_input(stop_loss=1.1000))

    assert result.valid is False
    assert result.position_size == 0.0
    assert result.risk_amount == 0.0
    assert result.breakdown == INVALID_BREAKDOWN


def test_stop_and_target_equal_to_entry_is_invalid():
    result = calculate_position_size(_input(stop_loss=1.1000, take_profit=1.1000))

    assert result.valid is False
    assert result.risk_reward == 0.0


@pytest.mark.parametrize(
    "overrides",
    [
        {"stop_loss": None},
        {"entry_price": 0},
        {"account_size": 0},
        {"risk_pct": -1},
        {"entry_price": float("nan")},
        {"instrument_type": "stocks"},
        {"side": "LONG", "stop_loss": 1.1050},
    ],
)
def test_malformed_input_never_raises(overrides):
    result = calculate_position_size(_input(**overrides))

    assert result.valid is False
    assert result.breakdown == INVALID_BREAKDOWN
    assert result.potential_loss == 0.0


def test_instrument_detection():
    assert detect_instrument_type("BTC/USDT") == CRYPTO
    assert detect_instrument_type("ethusdt") == CRYPTO
    assert detect_instrument_type("ESZ4") == FUTURES
    assert detect_instrument_type("/GC") == FUTURES
    assert detect_instrument_type("NQH25") == FUTURES
    assert detect_instrument_type("EURUSD") == FOREX
    assert detect_instrument_type("GBPJPY") == FOREX


def test_metals_quote_pips_at_second_decimal():
    gold = resolve_instrument("XAUUSD")

    assert gold.kind == FOREX
    assert gold.unit_size == 0.01
    assert gold.unit_value == 1.0
