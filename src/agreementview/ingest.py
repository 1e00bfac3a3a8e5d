from __future__ import annotations
from pathlib import Path
from typing import Any, List, Optional
import json
import logging

from agreementview.errors import SchemaError
from agreementview.schemas import Agreement, parse_agreement
from agreementview.tracing import get_tracer

log = logging.getLogger("agreementview.ingest")
tracer = get_tracer("agreementview.ingest")

SAMPLE_PATH = Path(__file__).parent / "data" / "agreements.json"

def read_records(path: Path) -> List[Any]:
    suffix = path.suffix.lower()
    if suffix != ".json":
        raise ValueError(f"Unsupported file type: {suffix}")
    raw = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(raw, dict):
        raw = raw.get("agreements")
    if not isinstance(raw, list):
        raise SchemaError("agreements", "expected a list of agreement records")
    return raw

def load_agreements(path: Optional[Path] = None) -> List[Agreement]:
    p = path or SAMPLE_PATH
    with tracer.start_as_current_span("load_agreements") as span:
        span.set_attribute("path", str(p))
        records = read_records(p)
        agreements = [parse_agreement(r) for r in records]
        span.set_attribute("agreements", len(agreements))
    log.info("Loaded agreements", extra={"component": "ingest", "event": "load", "path": str(p), "count": len(agreements)})
    return agreements
