import json

import pytest

from agreementview.errors import SchemaError
from agreementview.ingest import load_agreements

def test_load_bundled_sample():
    agreements = load_agreements()
    assert [a.id for a in agreements] == ["AGR-2025-000123", "AGR-2024-000777"]

def test_load_plain_list(tmp_path, sample_records):
    p = tmp_path / "agreements.json"
    p.write_text(json.dumps(sample_records[1:]), encoding="utf-8")
    assert [a.id for a in load_agreements(p)] == ["AGR-2024-000777"]

def test_invalid_record_fails_the_load(tmp_path, sample_records):
    del sample_records[1]["effectivePeriod"]["startDateTime"]
    p = tmp_path / "agreements.json"
    p.write_text(json.dumps({"agreements": sample_records}), encoding="utf-8")
    with pytest.raises(SchemaError) as ei:
        load_agreements(p)
    assert ei.value.field == "effectivePeriod.start"

def test_wrong_document_shape(tmp_path):
    p = tmp_path / "agreements.json"
    p.write_text(json.dumps({"items": []}), encoding="utf-8")
    with pytest.raises(SchemaError):
        load_agreements(p)

def test_unsupported_suffix(tmp_path):
    p = tmp_path / "agreements.yaml"
    p.write_text("[]", encoding="utf-8")
    with pytest.raises(ValueError):
        load_agreements(p)
