from __future__ import annotations
import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Sequence, Tuple, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    PlainSerializer,
    PlainValidator,
    ValidationError,
    model_validator,
)

from agreementview.billing import line_amount, to_decimal
from agreementview.errors import InvalidInputError, SchemaError

def _norm(label: str) -> str:
    return label.strip().lower().replace("-", "").replace("_", "")

class _Label(str, Enum):
    """Open-ended label: a closed set of well-known members plus an OTHER fallback.

    Unknown labels become an OTHER pseudo-member that keeps the original text as
    its value, so `AgreementStatus("archived").value == "archived"`.
    """

    @classmethod
    def _missing_(cls, value):
        if not isinstance(value, str) or not value.strip():
            return None
        key = _norm(value)
        for member in cls:
            if _norm(member.value) == key:
                return member
        other = str.__new__(cls, value)
        other._name_ = "OTHER"
        other._value_ = value
        return other

    @property
    def is_well_known(self) -> bool:
        return self._name_ != "OTHER"

class AgreementStatus(_Label):
    DRAFT = "draft"
    ACTIVE = "active"
    SUSPENDED = "suspended"
    TERMINATED = "terminated"

class ChargeKind(_Label):
    RECURRING = "recurring"
    ONE_TIME = "oneTime"
    USAGE = "usage"
    CREDIT = "credit"
    PENALTY = "penalty"

class BillState(_Label):
    ISSUED = "issued"
    SETTLED = "settled"

class _Record(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

def _characteristic_value(value: Any) -> Any:
    if isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, (list, tuple)) and all(isinstance(v, (int, float, str)) and not isinstance(v, bool) for v in value):
        return tuple(value)
    raise ValueError("expected a scalar, a boolean or a list of scalars")

# one error at `value` instead of one per union member
CharacteristicValue = Annotated[Any, PlainValidator(_characteristic_value)]

def _number(value: Any) -> Decimal:
    try:
        return to_decimal(value, "value")
    except InvalidInputError as e:
        raise ValueError(e.reason) from None

def _json_number(value: Decimal) -> Union[int, float]:
    return int(value) if value == value.to_integral_value() else float(value)

# JSON numbers only, no numeric strings; dumped back as JSON numbers
Number = Annotated[Decimal, BeforeValidator(_number), PlainSerializer(_json_number, when_used="json")]

class Characteristic(_Record):
    name: str
    value: CharacteristicValue

    @property
    def kind(self) -> Literal["scalar", "boolean", "sequence"]:
        if isinstance(self.value, bool):
            return "boolean"
        if isinstance(self.value, tuple):
            return "sequence"
        return "scalar"

class DatePeriod(_Record):
    start: Optional[dt.date] = None
    end: Optional[dt.date] = None

    @model_validator(mode="after")
    def _start_before_end(self) -> "DatePeriod":
        if self.start is not None and self.end is not None and self.start > self.end:
            raise ValueError(f"start {self.start} is after end {self.end}")
        return self

class TimePeriod(_Record):
    start: dt.datetime = Field(validation_alias=AliasChoices("start", "startDateTime"), serialization_alias="startDateTime")
    end: Optional[dt.datetime] = Field(default=None, validation_alias=AliasChoices("end", "endDateTime"), serialization_alias="endDateTime")

    @model_validator(mode="after")
    def _start_before_end(self) -> "TimePeriod":
        if self.end is None:
            return self
        if (self.start.tzinfo is None) != (self.end.tzinfo is None):
            raise ValueError("start and end must both carry a UTC offset or both omit it")
        if self.start > self.end:
            raise ValueError(f"start {self.start.isoformat()} is after end {self.end.isoformat()}")
        return self

class EntityRef(_Record):
    id: str
    name: Optional[str] = None

class AgreementSpecificationRef(_Record):
    id: str
    name: Optional[str] = None
    version: Optional[str] = None
    valid_for: Optional[DatePeriod] = Field(default=None, alias="validFor")

class PartyRef(_Record):
    id: str
    role: str
    name: Optional[str] = None

class ProductRef(_Record):
    product_offering: Optional[EntityRef] = Field(default=None, alias="productOffering")
    product_specification: Optional[EntityRef] = Field(default=None, alias="productSpecification")
    characteristics: Tuple[Characteristic, ...] = Field(default=(), alias="productCharacteristic")

class AgreementItem(_Record):
    id: str
    name: str
    description: Optional[str] = None
    product: Optional[ProductRef] = None

class Term(_Record):
    id: str
    name: str
    description: Optional[str] = None
    valid_for: Optional[DatePeriod] = Field(default=None, alias="validFor")
    characteristics: Tuple[Characteristic, ...] = Field(default=(), alias="characteristic")

class Attachment(_Record):
    id: str
    name: str
    url: Optional[str] = None
    mime_type: Optional[str] = Field(default=None, alias="mimeType")
    last_modified: Optional[dt.date] = Field(default=None, alias="lastModified")

class Charge(_Record):
    id: str
    kind: ChargeKind = Field(validation_alias=AliasChoices("kind", "type"))
    name: str
    reference: Optional[str] = None
    quantity: Number
    unit: Optional[str] = None
    unit_price: Number = Field(alias="unitPrice")

    @property
    def line_amount(self) -> Decimal:
        return line_amount(self)

class Bill(_Record):
    id: str
    bill_no: str = Field(alias="billNo")
    bill_date: dt.date = Field(alias="billDate")
    state: BillState
    billing_period: Optional[DatePeriod] = Field(default=None, alias="billingPeriod")
    amount_due: Number = Field(alias="amountDue")
    currency: str
    payment_due_date: Optional[dt.date] = Field(default=None, alias="paymentDueDate")

class Payment(_Record):
    id: str
    date: dt.date
    amount: Number
    currency: str
    method: Optional[str] = None
    bill_ref: Optional[str] = Field(default=None, alias="billRef")

class BillingRecord(_Record):
    currency: str = Field(pattern=r"^[A-Z]{3}$")
    tax_percent: Number = Field(alias="taxPercent", ge=0, le=100)
    period: Optional[DatePeriod] = None
    charges: Tuple[Charge, ...] = ()
    bills: Tuple[Bill, ...] = ()
    payments: Tuple[Payment, ...] = ()

    def charges_for(self, reference: str) -> Tuple[Charge, ...]:
        return tuple(c for c in self.charges if c.reference == reference)

    def payments_for(self, bill: Bill) -> Tuple[Payment, ...]:
        # billRef carries the bill number in practice; the bill id is accepted too
        return tuple(p for p in self.payments if p.bill_ref in (bill.bill_no, bill.id))

class CustomerContact(_Record):
    name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None

class HistoryEntry(_Record):
    timestamp: dt.datetime
    action: str
    actor: Optional[str] = None

class Agreement(_Record):
    # required fields first: parse errors are reported in declaration order
    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    status: AgreementStatus
    effective_period: TimePeriod = Field(alias="effectivePeriod")
    billing: BillingRecord

    href: Optional[str] = None
    specification: Optional[AgreementSpecificationRef] = Field(default=None, alias="agreementSpecification")
    engaged_parties: Tuple[PartyRef, ...] = Field(default=(), alias="engagedParty")
    related_parties: Tuple[PartyRef, ...] = Field(default=(), alias="relatedParty")
    items: Tuple[AgreementItem, ...] = Field(default=(), alias="agreementItem")
    terms: Tuple[Term, ...] = ()
    attachments: Tuple[Attachment, ...] = Field(default=(), alias="attachment")
    characteristics: Tuple[Characteristic, ...] = Field(default=(), alias="characteristic")
    customer: Optional[CustomerContact] = None
    provider: Optional[str] = None
    history: Tuple[HistoryEntry, ...] = ()

    @model_validator(mode="before")
    @classmethod
    def _effective_period_present(cls, data: Any) -> Any:
        # an absent period is reported at its required start
        if isinstance(data, dict) and "effectivePeriod" not in data and "effective_period" not in data:
            data = {**data, "effectivePeriod": {}}
        return data

    def parties(self) -> Tuple[PartyRef, ...]:
        return self.engaged_parties + self.related_parties

    def parties_with_role(self, role: str) -> Tuple[PartyRef, ...]:
        return tuple(p for p in self.parties() if p.role == role)

    def item(self, item_id: str) -> Optional[AgreementItem]:
        return next((it for it in self.items if it.id == item_id), None)

    def to_record(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

def _field_path(loc: Sequence[Union[str, int]]) -> str:
    path = ""
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path = f"{path}.{part}" if path else str(part)
    return path or "agreement"

def _reason(err: dict) -> str:
    if err.get("type") == "value_error" and "error" in err.get("ctx", {}):
        return str(err["ctx"]["error"])
    return err["msg"]

def parse_agreement(raw: Any) -> Agreement:
    """Build an Agreement from a loosely-typed record.

    Raises SchemaError for the first missing or malformed field; nothing is
    returned on failure.
    """
    try:
        return Agreement.model_validate(raw)
    except ValidationError as e:
        first = e.errors(include_url=False)[0]
        raise SchemaError(_field_path(first["loc"]), _reason(first)) from e
