from __future__ import annotations

class AgreementViewError(Exception):
    """Base class; every subclass carries a machine-readable `code`."""

    code: str = "AGREEMENT_VIEW_ERROR"

class SchemaError(AgreementViewError):
    """An agreement record is missing a required field or has the wrong shape."""

    code: str = "SCHEMA_ERROR"

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"{field}: {reason}")

class InvalidInputError(AgreementViewError):
    """The aggregation engine cannot produce totals for its input."""

    code: str = "INVALID_INPUT"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)

class AgreementNotFoundError(AgreementViewError):
    code: str = "AGREEMENT_NOT_FOUND"

    def __init__(self, agreement_id: str):
        self.agreement_id = agreement_id
        super().__init__(f"Agreement not found: {agreement_id}")
