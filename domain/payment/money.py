"""
Minor/major currency unit conversion at the gateway boundary.

The host works in integer minor units (kopecks); the gateway expects a
fixed two-decimal string in major units ("450.00").
"""
from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

from domain.payment.exceptions import PaymentValidationError

MINOR_PER_MAJOR = Decimal(100)
MIN_PAYMENT_MINOR = 100

_CENT = Decimal("0.01")
_UNIT = Decimal("1")


def _to_decimal(value: Any) -> Decimal | None:
    if isinstance(value, bool):
        return None
    try:
        # str() first so floats do not carry binary noise into the Decimal
        dec = Decimal(str(value).strip())
    except (InvalidOperation, ValueError, TypeError):
        return None
    if not dec.is_finite():
        return None
    return dec


def is_valid_amount(value: Any) -> bool:
    """True for a finite, strictly positive amount."""
    dec = _to_decimal(value)
    return dec is not None and dec > 0


def minor_to_major(minor: Any) -> str:
    """Convert minor units to a two-decimal major-unit string.

    Raises PaymentValidationError for negative or non-finite input.
    """
    dec = _to_decimal(minor)
    if dec is None or dec < 0:
        raise PaymentValidationError(f"Invalid amount: {minor}", details={"amount": str(minor)})
    try:
        major = (dec / MINOR_PER_MAJOR).quantize(_CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise PaymentValidationError(f"Amount out of range: {minor}", details={"amount": str(minor)})
    return f"{major:.2f}"


def major_to_minor(major: Any) -> int:
    """Convert a major-unit decimal string to integer minor units.

    Unparsable, negative or non-finite values clamp to 0.
    """
    dec = _to_decimal(major)
    if dec is None or dec < 0:
        return 0
    try:
        return int((dec * MINOR_PER_MAJOR).quantize(_UNIT, rounding=ROUND_HALF_UP))
    except InvalidOperation:
        return 0
