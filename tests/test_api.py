from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from agreementview.api import create_app
from agreementview.catalog import AgreementCatalog
from agreementview.schemas import parse_agreement

@pytest.fixture
def client(sample_records):
    catalog = AgreementCatalog(parse_agreement(r) for r in sample_records)
    return TestClient(create_app(catalog))

def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok", "agreements": 2}

def test_list_with_filters(client):
    r = client.get("/agreements")
    assert [a["net"] for a in r.json()] == ["110.8", "39.9"]
    r = client.get("/agreements", params={"status": "suspended"})
    assert [a["id"] for a in r.json()] == ["AGR-2024-000777"]

def test_get_agreement(client):
    r = client.get("/agreements/AGR-2025-000123")
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "active"
    assert body["billing"]["taxPercent"] == 19
    assert client.get("/agreements/nope").status_code == 404

def test_billing_statement(client):
    r = client.get("/agreements/AGR-2025-000123/billing")
    assert r.status_code == 200
    body = r.json()
    assert body["totals"] == {"net": "110.8", "tax": "21.05", "gross": "131.85"}
    assert Decimal(body["lines"][2]["amount"]) == Decimal("6")
    assert body["lines"][4]["charge"]["kind"] == "credit"
    assert body["payments"][0]["billRef"] == "INV-2025-08-0001"

def test_aggregate_endpoint(client):
    charges = [{"id": "CH-1", "kind": "recurring", "name": "x", "reference": "AI-1", "quantity": 1, "unit": "month", "unitPrice": 79.90}]
    r = client.post("/billing/aggregate", json={"charges": charges, "taxPercent": 19})
    assert r.status_code == 200
    assert r.json() == {"net": "79.9", "tax": "15.18", "gross": "95.08"}

def test_aggregate_endpoint_rejects_bad_input(client):
    r = client.post("/billing/aggregate", json={"charges": [{"id": "CH-1", "quantity": "one", "unitPrice": 1}], "taxPercent": 19})
    assert r.status_code == 422
    assert "quantity" in r.json()["detail"]
