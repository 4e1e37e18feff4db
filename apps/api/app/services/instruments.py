from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

FOREX = "forex"
FUTURES = "futures"
CRYPTO = "crypto"
INSTRUMENT_TYPES = (FOREX, FUTURES, CRYPTO)

CRYPTO_TOKENS = (
    "BTC", "ETH", "SOL", "XRP", "DOGE", "ADA", "BNB", "LTC",
    "AVAX", "DOT", "LINK", "USDT", "USDC",
)
METAL_TOKENS = ("XAU", "XAG", "GOLD", "SILVER")

FOREX_PIP = 0.0001
FOREX_PIP_JPY = 0.01
FOREX_PIP_METALS = 0.01
FOREX_PIP_VALUE_PER_LOT = 10.0

# $ per 0.01 move per standard lot (100 oz gold, 5000 oz silver)
METAL_PIP_VALUE_PER_LOT = {
    "XAU": 1.0,
    "GOLD": 1.0,
    "XAG": 50.0,
    "SILVER": 50.0,
}

# root -> (tick size, tick value in $)
FUTURES_CONTRACTS = {
    "ES": (0.25, 12.50),
    "MES": (0.25, 1.25),
    "NQ": (0.25, 5.00),
    "MNQ": (0.25, 0.50),
    "YM": (1.0, 5.00),
    "RTY": (0.1, 5.00),
    "CL": (0.01, 10.00),
    "GC": (0.1, 10.00),
    "SI": (0.005, 25.00),
    "ZB": (1 / 32, 31.25),
    "ZN": (1 / 64, 15.625),
    "ZC": (0.25, 12.50),
    "ZS": (0.25, 12.50),
    "ZW": (0.25, 12.50),
}
DEFAULT_FUTURES_CONTRACT = (0.25, 12.50)

# month code + year ("ESZ4", "NQH25") or continuous ("ES1!")
_CONTRACT_SUFFIX = r"(?:[FGHJKMNQUVXZ]\d{1,2}|\d!)?"


@dataclass(frozen=True)
class Instrument:
    kind: str
    symbol: str
    unit_size: float
    unit_value: float
    unit_label: str
    position_label: str
    size_precision: int
    breakdown_format: str

    def stop_units(self, distance: float) -> float:
        """Convert a price distance into pips, ticks or raw points."""
        return distance / self.unit_size

    def money(self, units: float, size: float) -> float:
        return units * self.unit_value * size

    def describe(self, risk_amount: float, stop_units: float, size: float, entry_price: float) -> str:
        return self.breakdown_format.format(
            risk=risk_amount,
            units=stop_units,
            unit_value=self.unit_value,
            size=size,
            notional=size * entry_price,
        )


def normalize_symbol(symbol: Optional[str]) -> str:
    s = (symbol or "").upper().strip()
    for ch in ("/", "_", "-", " "):
        s = s.replace(ch, "")
    return s


def normalize_instrument_type(value: Optional[str]) -> Optional[str]:
    v = (value or "").strip().lower()
    if not v:
        return None
    return v if v in INSTRUMENT_TYPES else None


def futures_root(symbol: str) -> Optional[str]:
    s = normalize_symbol(symbol)
    for root in sorted(FUTURES_CONTRACTS, key=len, reverse=True):
        if re.fullmatch(root + _CONTRACT_SUFFIX, s):
            return root
    return None


def detect_instrument_type(symbol: str) -> str:
    s = normalize_symbol(symbol)
    if any(token in s for token in CRYPTO_TOKENS):
        return CRYPTO
    if futures_root(s):
        return FUTURES
    return FOREX


def _forex(symbol: str) -> Instrument:
    s = normalize_symbol(symbol)
    metal = next((m for m in METAL_TOKENS if m in s), None)
    if metal:
        pip = FOREX_PIP_METALS
        pip_value = METAL_PIP_VALUE_PER_LOT[metal]
    elif "JPY" in s:
        pip = FOREX_PIP_JPY
        pip_value = FOREX_PIP_VALUE_PER_LOT
    else:
        pip = FOREX_PIP
        pip_value = FOREX_PIP_VALUE_PER_LOT
    return Instrument(
        kind=FOREX,
        symbol=s,
        unit_size=pip,
        unit_value=pip_value,
        unit_label="pips",
        position_label="Lot Size",
        size_precision=2,
        breakdown_format="Lot Size = ${risk:.2f} ÷ ({units:.1f} pips × ${unit_value:g}/pip) = {size:.2f} lots",
    )


def _futures(symbol: str) -> Instrument:
    s = normalize_symbol(symbol)
    tick_size, tick_value = FUTURES_CONTRACTS.get(futures_root(s) or "", DEFAULT_FUTURES_CONTRACT)
    return Instrument(
        kind=FUTURES,
        symbol=s,
        unit_size=tick_size,
        unit_value=tick_value,
        unit_label="ticks",
        position_label="Contracts",
        size_precision=2,
        breakdown_format="Contracts = ${risk:.2f} ÷ ({units:.0f} ticks × ${unit_value:g}/tick) = {size:.2f}",
    )


def _crypto(symbol: str) -> Instrument:
    return Instrument(
        kind=CRYPTO,
        symbol=normalize_symbol(symbol),
        unit_size=1.0,
        unit_value=1.0,
        unit_label="points",
        position_label="Position",
        size_precision=4,
        breakdown_format="Position = ${risk:.2f} ÷ ${units:.2f} stop distance = {size:.4f} units (${notional:.2f})",
    )


_BUILDERS = {
    FOREX: _forex,
    FUTURES: _futures,
    CRYPTO: _crypto,
}


def resolve_instrument(symbol: str, instrument_type: Optional[str] = None) -> Instrument:
    kind = normalize_instrument_type(instrument_type) or detect_instrument_type(symbol)
    return _BUILDERS[kind](symbol)
