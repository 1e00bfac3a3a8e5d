import copy
import json

import pytest

from agreementview.ingest import SAMPLE_PATH

@pytest.fixture
def sample_records():
    return json.loads(SAMPLE_PATH.read_text(encoding="utf-8"))["agreements"]

@pytest.fixture
def sample_record(sample_records):
    return copy.deepcopy(sample_records[0])

@pytest.fixture(autouse=True)
def quiet_logs(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "WARNING")
