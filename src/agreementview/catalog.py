from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, Iterator, List, Optional, Tuple
import logging

from agreementview.billing import BillingTotals, aggregate
from agreementview.errors import AgreementNotFoundError
from agreementview.hashing import sha256_json
from agreementview.ingest import load_agreements
from agreementview.schemas import Agreement, Bill, Charge, DatePeriod, Payment
from agreementview.tracing import get_tracer

log = logging.getLogger("agreementview.catalog")
tracer = get_tracer("agreementview.catalog")

@dataclass(frozen=True)
class ChargeLine:
    charge: Charge
    amount: Decimal

@dataclass(frozen=True)
class BillingStatement:
    agreement_id: str
    currency: str
    tax_percent: Decimal
    period: Optional[DatePeriod]
    lines: Tuple[ChargeLine, ...]
    totals: BillingTotals
    bills: Tuple[Bill, ...]
    payments: Tuple[Payment, ...]

class AgreementCatalog:
    """Read-only collection of agreements, in load order.

    Totals are memoized by the content hash of (charges, tax percent) and live
    as long as the catalog does.
    """

    def __init__(self, agreements: Iterable[Agreement], cache_totals: bool = True):
        self._agreements: Dict[str, Agreement] = {}
        for a in agreements:
            if a.id in self._agreements:
                raise ValueError(f"Duplicate agreement id: {a.id}")
            self._agreements[a.id] = a
        self._cache_totals = cache_totals
        self._totals: Dict[str, BillingTotals] = {}

    def __len__(self) -> int:
        return len(self._agreements)

    def __iter__(self) -> Iterator[Agreement]:
        return iter(self._agreements.values())

    def get(self, agreement_id: str) -> Agreement:
        try:
            return self._agreements[agreement_id]
        except KeyError:
            raise AgreementNotFoundError(agreement_id) from None

    def search(self, query: str = "", status: Optional[str] = None) -> List[Agreement]:
        q = (query or "").strip().lower()
        s = (status or "all").strip().lower()
        out = []
        for a in self:
            if q and q not in a.id.lower() and q not in a.name.lower():
                continue
            if s != "all" and a.status.value.lower() != s:
                continue
            out.append(a)
        return out

    def totals(self, agreement: Agreement) -> BillingTotals:
        billing = agreement.billing
        if not self._cache_totals:
            return aggregate(billing.charges, billing.tax_percent)

        key = sha256_json({
            "charges": [c.model_dump(mode="json") for c in billing.charges],
            "taxPercent": str(billing.tax_percent),
        })
        hit = self._totals.get(key)
        if hit is not None:
            return hit
        with tracer.start_as_current_span("aggregate") as span:
            span.set_attribute("agreement_id", agreement.id)
            span.set_attribute("charges", len(billing.charges))
            totals = aggregate(billing.charges, billing.tax_percent)
        self._totals[key] = totals
        log.debug("Computed totals", extra={"component": "catalog", "event": "totals", "agreement_id": agreement.id, "count": len(billing.charges)})
        return totals

    def statement(self, agreement: Agreement) -> BillingStatement:
        billing = agreement.billing
        return BillingStatement(
            agreement_id=agreement.id,
            currency=billing.currency,
            tax_percent=billing.tax_percent,
            period=billing.period,
            lines=tuple(ChargeLine(charge=c, amount=c.line_amount) for c in billing.charges),
            totals=self.totals(agreement),
            bills=billing.bills,
            payments=billing.payments,
        )

def build_catalog(settings) -> AgreementCatalog:
    agreements = load_agreements(settings.data_path)
    return AgreementCatalog(agreements, cache_totals=settings.cache_totals)
