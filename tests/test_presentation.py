import datetime as dt
from decimal import Decimal

from agreementview.presentation import format_date, format_money, format_period, kind_label, render_value, status_style
from agreementview.schemas import AgreementStatus, ChargeKind, DatePeriod

def test_format_money():
    assert format_money(Decimal("110.80"), "EUR") == "110.80 EUR"
    assert format_money(Decimal("1234.565"), "EUR") == "1,234.57 EUR"
    assert format_money(-10, "EUR") == "-10.00 EUR"

def test_format_date_and_period():
    assert format_date(None) == "—"
    assert format_date(dt.datetime(2028, 3, 25, 23, 59, 59, tzinfo=dt.timezone.utc)) == "2028-03-25"
    assert format_period(DatePeriod(start=dt.date(2025, 9, 1), end=dt.date(2025, 9, 30))) == "2025-09-01 – 2025-09-30"
    assert format_period(DatePeriod(start=dt.date(2025, 9, 1))) == "2025-09-01 – —"

def test_render_value():
    assert render_value(("a", "b")) == "a, b"
    assert render_value(True) == "Yes"
    assert render_value(2) == "2"

def test_labels_and_styles():
    assert kind_label(ChargeKind.ONE_TIME) == "One-time"
    assert kind_label(ChargeKind("installment")) == "installment"
    assert status_style(AgreementStatus.ACTIVE) == "green"
    assert status_style(AgreementStatus("archived")) == "dim"
