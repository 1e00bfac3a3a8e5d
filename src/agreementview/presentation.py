from __future__ import annotations
import datetime as dt
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Optional

from agreementview.billing import to_decimal
from agreementview.schemas import AgreementStatus, ChargeKind

_TWO_PLACES = Decimal("0.01")
MISSING = "—"

KIND_LABELS = {
    ChargeKind.RECURRING: "Recurring",
    ChargeKind.ONE_TIME: "One-time",
    ChargeKind.USAGE: "Usage",
    ChargeKind.CREDIT: "Credit",
    ChargeKind.PENALTY: "Penalty",
}

STATUS_STYLES = {
    AgreementStatus.ACTIVE: "green",
    AgreementStatus.DRAFT: "yellow",
    AgreementStatus.SUSPENDED: "red",
}

def format_money(amount: Any, currency: str = "EUR") -> str:
    value = to_decimal(amount, "amount").quantize(_TWO_PLACES, rounding=ROUND_HALF_UP)
    return f"{value:,.2f} {currency}"

def format_date(value: Optional[Any]) -> str:
    if value is None:
        return MISSING
    if isinstance(value, dt.datetime):
        return value.date().isoformat()
    if isinstance(value, dt.date):
        return value.isoformat()
    return str(value)

def format_period(period: Optional[Any]) -> str:
    if period is None:
        return MISSING
    return f"{format_date(period.start)} – {format_date(period.end)}"

def render_value(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value)
    if isinstance(value, bool):
        return "Yes" if value else "No"
    return str(value)

def kind_label(kind: ChargeKind) -> str:
    return KIND_LABELS.get(kind, kind.value)

def status_style(status: AgreementStatus) -> str:
    return STATUS_STYLES.get(status, "dim")
