from decimal import Decimal

import pytest

from agreementview.catalog import AgreementCatalog, build_catalog
from agreementview.config import AVSettings
from agreementview.errors import AgreementNotFoundError
from agreementview.schemas import parse_agreement

@pytest.fixture
def catalog(sample_records):
    return AgreementCatalog(parse_agreement(r) for r in sample_records)

def test_get_and_missing(catalog):
    assert catalog.get("AGR-2024-000777").status.value == "suspended"
    with pytest.raises(AgreementNotFoundError) as ei:
        catalog.get("AGR-0")
    assert ei.value.agreement_id == "AGR-0"

def test_search(catalog):
    assert [a.id for a in catalog.search()] == ["AGR-2025-000123", "AGR-2024-000777"]
    assert [a.id for a in catalog.search("  zusatz ")] == ["AGR-2024-000777"]
    assert [a.id for a in catalog.search("agr-2025")] == ["AGR-2025-000123"]
    assert [a.id for a in catalog.search(status="SUSPENDED")] == ["AGR-2024-000777"]
    assert catalog.search("office", status="draft") == []
    assert len(catalog.search(status="all")) == 2

def test_totals(catalog):
    first = catalog.totals(catalog.get("AGR-2025-000123"))
    assert (first.net, first.tax, first.gross) == (Decimal("110.80"), Decimal("21.05"), Decimal("131.85"))
    second = catalog.totals(catalog.get("AGR-2024-000777"))
    assert (second.net, second.tax, second.gross) == (Decimal("39.90"), Decimal("7.58"), Decimal("47.48"))

def test_totals_are_memoized(catalog):
    a = catalog.get("AGR-2025-000123")
    assert catalog.totals(a) is catalog.totals(a)

def test_totals_without_cache(sample_records):
    cat = AgreementCatalog([parse_agreement(sample_records[0])], cache_totals=False)
    a = cat.get("AGR-2025-000123")
    assert cat.totals(a) == cat.totals(a)
    assert cat.totals(a).gross == Decimal("131.85")

def test_statement(catalog):
    st = catalog.statement(catalog.get("AGR-2025-000123"))
    assert st.currency == "EUR"
    assert [ln.amount for ln in st.lines] == [Decimal("79.9"), Decimal("29.9"), Decimal("6.0"), Decimal("5.0"), Decimal("-10.0")]
    assert sum(ln.amount for ln in st.lines) == st.totals.net
    assert len(st.bills) == 2 and len(st.payments) == 1

def test_duplicate_ids_rejected(sample_records):
    a = parse_agreement(sample_records[0])
    with pytest.raises(ValueError):
        AgreementCatalog([a, a])

def test_build_catalog_from_bundled_sample():
    cat = build_catalog(AVSettings(data_path=None, cache_totals=True))
    assert len(cat) == 2
