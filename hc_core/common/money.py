# hc_core/common/money.py
"""
Currency helpers shared by the server and the patient client.

Gateways take integer amounts in the currency's minor unit (paise for INR,
cents for USD). Keep this module free of Django imports; the client uses it.
"""
from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

DEFAULT_EXPONENT = 2

# ISO 4217 currencies whose minor unit is not 1/100.
CURRENCY_EXPONENTS = {
    "BIF": 0,
    "CLP": 0,
    "JPY": 0,
    "KRW": 0,
    "PYG": 0,
    "UGX": 0,
    "VND": 0,
    "XAF": 0,
    "XOF": 0,
    "BHD": 3,
    "IQD": 3,
    "JOD": 3,
    "KWD": 3,
    "OMR": 3,
    "TND": 3,
}


def currency_exponent(currency: str | None) -> int:
    return CURRENCY_EXPONENTS.get((currency or "").upper(), DEFAULT_EXPONENT)


def to_decimal(value) -> Decimal | None:
    """Best-effort Decimal conversion; None for blanks, junk, NaN and infinities."""
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        return None
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    return amount if amount.is_finite() else None


def quantize_major(amount, currency: str | None) -> Decimal:
    exp = currency_exponent(currency)
    return Decimal(str(amount)).quantize(Decimal(1).scaleb(-exp), rounding=ROUND_HALF_UP)


def to_minor_units(amount, currency: str | None) -> int:
    """
    300 INR -> 30000; 300 JPY -> 300; 1.234 KWD -> 1234.
    Decimal keeps 19.99 from turning into 1998.
    """
    exp = currency_exponent(currency)
    return int((Decimal(str(amount)) * (Decimal(10) ** exp)).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def from_minor_units(minor: int, currency: str | None) -> Decimal:
    exp = currency_exponent(currency)
    return (Decimal(int(minor)) / (Decimal(10) ** exp)).quantize(Decimal(1).scaleb(-exp))
