"""
Billing aggregation engine.

Pure functions, no I/O. Turns a billing record's charge list and tax
percentage into net/tax/gross totals:

    net   = sum(quantity * unitPrice)          (unrounded)
    tax   = round(net * taxPercent / 100, 2)
    gross = round(net + tax, 2)

Rounding is half-away-from-zero (ROUND_HALF_UP) and applies only to tax and
gross. Credits carry a negative unit price and are summed like any other
charge.

Usage:
    from agreementview.billing import aggregate

    totals = aggregate(record.charges, record.tax_percent)
    totals.net, totals.tax, totals.gross
"""

from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Iterable, Mapping

from agreementview.errors import InvalidInputError

_TWO_PLACES = Decimal("0.01")
_HUNDRED = Decimal("100")

@dataclass(frozen=True)
class BillingTotals:
    net: Decimal
    tax: Decimal
    gross: Decimal

    def as_dict(self) -> Dict[str, Decimal]:
        return {"net": self.net, "tax": self.tax, "gross": self.gross}

def to_decimal(value: Any, what: str) -> Decimal:
    """Exact Decimal for an int, float or Decimal; anything else is invalid input.

    Floats go through their shortest repr, so 79.9 becomes Decimal("79.9").
    """
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        raise InvalidInputError(f"{what} must be numeric, got {value!r}")
    if isinstance(value, float):
        value = Decimal(repr(value))
    d = Decimal(value)
    if not d.is_finite():
        raise InvalidInputError(f"{what} must be finite, got {value!r}")
    return d

def _charge_field(charge: Any, *names: str) -> Any:
    if isinstance(charge, Mapping):
        for n in names:
            if n in charge:
                return charge[n]
    else:
        for n in names:
            if hasattr(charge, n):
                return getattr(charge, n)
    raise InvalidInputError(f"charge {_charge_label(charge)} has no {names[0]}")

def _charge_label(charge: Any) -> str:
    cid = charge.get("id") if isinstance(charge, Mapping) else getattr(charge, "id", None)
    return repr(cid) if cid is not None else repr(charge)

def line_amount(charge: Any) -> Decimal:
    """quantity * unitPrice at full precision."""
    label = _charge_label(charge)
    quantity = to_decimal(_charge_field(charge, "quantity"), f"quantity of charge {label}")
    unit_price = to_decimal(_charge_field(charge, "unitPrice", "unit_price"), f"unitPrice of charge {label}")
    return quantity * unit_price

def aggregate(charges: Iterable[Any], tax_percent: Any) -> BillingTotals:
    if isinstance(charges, (str, bytes)):
        raise InvalidInputError("charges must be a sequence of charge records, got a string")
    try:
        items = iter(charges)
    except TypeError:
        raise InvalidInputError(f"charges must be iterable, got {type(charges).__name__}") from None

    rate = to_decimal(tax_percent, "taxPercent")

    net = Decimal("0")
    for charge in items:
        net += line_amount(charge)

    tax = (net * rate / _HUNDRED).quantize(_TWO_PLACES, rounding=ROUND_HALF_UP)
    gross = (net + tax).quantize(_TWO_PLACES, rounding=ROUND_HALF_UP)
    return BillingTotals(net=net, tax=tax, gross=gross)
