"""Data models used across the tax engine, validator, storage, CLI, and API.

Drafts are immutable values: every edit produces a new model (see ``drafts.py``).
Field names are snake_case in Python and camelCase on the wire, which is the
shape saved invoices and share links carry.
"""
from __future__ import annotations

import uuid
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Annotated, Dict, List, Optional, Tuple

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, PlainSerializer, field_validator
from pydantic.alias_generators import to_camel

from .utils import to_decimal

UNSAVED_ID = "new"


def _money(value: object) -> Decimal:
    try:
        return to_decimal(value)
    except (InvalidOperation, ValueError):
        raise ValueError(f"not a number: {value!r}")


Money = Annotated[
    Decimal,
    BeforeValidator(_money),
    PlainSerializer(float, return_type=float, when_used="json"),
]


def _blank_to_none(value: object) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


class InvoiceType(str, Enum):
    TAX_INVOICE = "Tax Invoice"
    BILL_OF_SUPPLY = "Bill of Supply"
    PROFORMA_INVOICE = "Proforma Invoice"
    CREDIT_NOTE = "Credit Note"
    DEBIT_NOTE = "Debit Note"


class FieldKind(str, Enum):
    GSTIN = "GSTIN"
    PAN = "PAN"
    EMAIL = "EMAIL"
    PHONE = "PHONE"


class Party(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True, alias_generator=to_camel, populate_by_name=True)

    name: str = ""
    gstin: Optional[str] = None
    address: str = ""
    state: str = ""
    email: Optional[str] = None
    phone: Optional[str] = None
    pan: Optional[str] = None
    logo_url: Optional[str] = None

    # Blank identifiers mean "not provided".
    @field_validator("gstin", "email", "phone", "pan", "logo_url", mode="before")
    @classmethod
    def blank_means_absent(cls, value: object) -> Optional[str]:
        return _blank_to_none(value)


class LineItem(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True, alias_generator=to_camel, populate_by_name=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex[:12])
    description: str = ""
    hsn: str = ""
    qty: Money = Decimal("1")
    rate: Money = Decimal("0")
    gst_rate: Money = Decimal("18")

    @property
    def taxable_value(self) -> Decimal:
        return self.qty * self.rate


class TaxSummary(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True, alias_generator=to_camel, populate_by_name=True)

    taxable_value: Money
    cgst: Money
    sgst: Money
    igst: Money
    total_tax: Money
    round_off: Money
    grand_total: Money


class InvoiceDraft(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True, alias_generator=to_camel, populate_by_name=True)

    id: str = UNSAVED_ID
    user_id: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    invoice_number: str = ""
    invoice_date: str = ""
    due_date: str = ""
    type: InvoiceType = InvoiceType.TAX_INVOICE

    original_invoice_number: Optional[str] = None
    original_invoice_date: Optional[str] = None

    gst_enabled: bool = True
    logo_enabled: bool = True

    seller: Party = Field(default_factory=Party)
    buyer: Party = Field(default_factory=Party)

    items: Tuple[LineItem, ...] = ()
    notes: str = ""
    terms: str = ""

    # Cache for list views; recompute before relying on it.
    summary: Optional[TaxSummary] = None

    @field_validator("original_invoice_number", "original_invoice_date", mode="before")
    @classmethod
    def blank_means_absent(cls, value: object) -> Optional[str]:
        return _blank_to_none(value)

    @property
    def is_saved(self) -> bool:
        return self.id != UNSAVED_ID

    def key(self) -> Tuple[str, str]:
        """Composite key used for duplicate detection."""
        return (
            self.invoice_number.strip(),
            (self.seller.gstin or self.seller.name).strip().lower(),
        )

    @property
    def display_id(self) -> str:
        """Fallback identifier for messages and reports."""
        return self.invoice_number or (self.id if self.is_saved else "<unsaved>")


class DraftPatch(BaseModel):
    """Partial update produced by the text extractor."""

    model_config = ConfigDict(extra="ignore", alias_generator=to_camel, populate_by_name=True)

    type: Optional[InvoiceType] = None
    buyer_name: Optional[str] = None
    buyer_gstin: Optional[str] = None
    buyer_address: Optional[str] = None
    buyer_state: Optional[str] = None
    items: List[LineItem] = Field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.type or self.buyer_name or self.buyer_gstin or self.items)


class DraftValidationResult(BaseModel):
    model_config = ConfigDict(extra="ignore")

    invoice_id: str
    is_valid: bool
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


class ValidationSummary(BaseModel):
    model_config = ConfigDict(extra="ignore")

    total_invoices: int
    valid_invoices: int
    invalid_invoices: int
    error_counts: Dict[str, int] = Field(default_factory=dict)


class ValidationResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    summary: ValidationSummary
    results: List[DraftValidationResult]
