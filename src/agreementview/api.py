from __future__ import annotations
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException, Request
from pydantic import BaseModel, Field

from agreementview.billing import BillingTotals, aggregate
from agreementview.catalog import AgreementCatalog, build_catalog
from agreementview.config import get_settings
from agreementview.errors import AgreementNotFoundError, InvalidInputError
from agreementview.logging import configure_logging
from agreementview.tracing import configure_tracing, TracingConfig

class TotalsResponse(BaseModel):
    net: str
    tax: str
    gross: str

class AgreementSummary(BaseModel):
    id: str
    name: str
    status: str
    currency: str
    net: str

class ChargeLineResponse(BaseModel):
    charge: Dict[str, Any]
    amount: str

class BillingResponse(BaseModel):
    agreement_id: str
    currency: str
    tax_percent: str
    period: Optional[Dict[str, Any]] = None
    lines: List[ChargeLineResponse]
    totals: TotalsResponse
    bills: List[Dict[str, Any]]
    payments: List[Dict[str, Any]]

class AggregateRequest(BaseModel):
    # loosely typed on purpose: the engine decides what is numeric
    charges: Any
    tax_percent: Any = Field(alias="taxPercent")

def _totals(t: BillingTotals) -> TotalsResponse:
    return TotalsResponse(net=str(t.net), tax=str(t.tax), gross=str(t.gross))

def _catalog(request: Request) -> AgreementCatalog:
    return request.app.state.catalog

def _agreement(request: Request, agreement_id: str):
    try:
        return _catalog(request).get(agreement_id)
    except AgreementNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

def create_app(catalog: Optional[AgreementCatalog] = None) -> FastAPI:
    """Build the API around an explicit catalog; without one, load it from settings."""
    if catalog is None:
        s = get_settings()
        configure_logging()
        configure_tracing(TracingConfig(service_name=s.service_name, otlp_endpoint=s.otlp_endpoint))
        catalog = build_catalog(s)

    app = FastAPI(title="Agreement View API", version="0.1.0")
    app.state.catalog = catalog

    @app.get("/health")
    def health(request: Request):
        return {"status": "ok", "agreements": len(_catalog(request))}

    @app.get("/agreements", response_model=List[AgreementSummary])
    def list_agreements(request: Request, q: str = "", status: str = "all"):
        cat = _catalog(request)
        return [
            AgreementSummary(id=a.id, name=a.name, status=a.status.value, currency=a.billing.currency, net=str(cat.totals(a).net))
            for a in cat.search(q, status)
        ]

    @app.get("/agreements/{agreement_id}")
    def get_agreement(request: Request, agreement_id: str):
        return _agreement(request, agreement_id).to_record()

    @app.get("/agreements/{agreement_id}/billing", response_model=BillingResponse)
    def get_billing(request: Request, agreement_id: str):
        a = _agreement(request, agreement_id)
        st = _catalog(request).statement(a)
        return BillingResponse(
            agreement_id=st.agreement_id,
            currency=st.currency,
            tax_percent=str(st.tax_percent),
            period=st.period.model_dump(mode="json") if st.period else None,
            lines=[ChargeLineResponse(charge=ln.charge.model_dump(mode="json", by_alias=True), amount=str(ln.amount)) for ln in st.lines],
            totals=_totals(st.totals),
            bills=[b.model_dump(mode="json", by_alias=True) for b in st.bills],
            payments=[p.model_dump(mode="json", by_alias=True) for p in st.payments],
        )

    @app.post("/billing/aggregate", response_model=TotalsResponse)
    def post_aggregate(req: AggregateRequest):
        try:
            return _totals(aggregate(req.charges, req.tax_percent))
        except InvalidInputError as e:
            raise HTTPException(status_code=422, detail=e.reason)

    return app
