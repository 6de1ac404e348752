"""Document-type rules and the render-ready view of a draft.

Credit and debit notes reference an original invoice; the reference is shown
but never validated. A Bill of Supply carries the composition-dealer notice.
"""
from __future__ import annotations

from decimal import Decimal
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from .schemas import InvoiceDraft, InvoiceType, TaxSummary
from .tax_engine import is_inter_state, line_tax
from .utils import amount_in_words

NOTE_TYPES = frozenset({InvoiceType.CREDIT_NOTE, InvoiceType.DEBIT_NOTE})

BILL_OF_SUPPLY_NOTICE = "Composition taxable person, not eligible to collect tax on supplies"


def is_note(doc_type: InvoiceType) -> bool:
    return doc_type in NOTE_TYPES


def number_label(doc_type: InvoiceType) -> str:
    return "Note #" if is_note(doc_type) else "Invoice #"


def shows_original_reference(draft: InvoiceDraft) -> bool:
    return is_note(draft.type) and bool(draft.original_invoice_number or draft.original_invoice_date)


def legal_notice(doc_type: InvoiceType) -> Optional[str]:
    if doc_type == InvoiceType.BILL_OF_SUPPLY:
        return BILL_OF_SUPPLY_NOTICE
    return None


def tax_lines(draft: InvoiceDraft, summary: TaxSummary) -> List[Tuple[str, Decimal]]:
    """Labelled tax totals; exactly one tax family appears when GST is on."""
    if not draft.gst_enabled:
        return []
    if is_inter_state(draft.seller.state, draft.buyer.state):
        return [("IGST Total", summary.igst)]
    return [("CGST Total", summary.cgst), ("SGST Total", summary.sgst)]


class ItemRow(BaseModel):
    model_config = ConfigDict(frozen=True)

    description: str
    hsn: str
    qty: Decimal
    rate: Decimal
    taxable: Decimal
    # (rate %, amount) per tax column: one for IGST, two for CGST/SGST
    taxes: List[Tuple[Decimal, Decimal]] = Field(default_factory=list)
    total: Decimal


class DocumentView(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str
    number_label: str
    number: str
    date: str
    original_reference: Optional[Tuple[str, str]] = None
    notice: Optional[str] = None
    place_of_supply: str
    gst_enabled: bool
    inter_state: bool
    tax_headers: List[str]
    rows: List[ItemRow]
    totals: List[Tuple[str, Decimal]]
    grand_total: Decimal
    amount_in_words: str


def build_view(draft: InvoiceDraft, summary: TaxSummary) -> DocumentView:
    """Project a draft and its freshly computed summary onto display rows."""
    inter_state = is_inter_state(draft.seller.state, draft.buyer.state)
    if not draft.gst_enabled:
        headers: List[str] = []
    elif inter_state:
        headers = ["IGST %", "IGST Amt"]
    else:
        headers = ["CGST %", "CGST Amt", "SGST %", "SGST Amt"]

    rows = []
    for item in draft.items:
        tax = line_tax(item)
        if not draft.gst_enabled:
            taxes: List[Tuple[Decimal, Decimal]] = []
        elif inter_state:
            taxes = [(item.gst_rate, tax)]
        else:
            taxes = [(item.gst_rate / 2, tax / 2), (item.gst_rate / 2, tax / 2)]
        rows.append(
            ItemRow(
                description=item.description,
                hsn=item.hsn,
                qty=item.qty,
                rate=item.rate,
                taxable=item.taxable_value,
                taxes=taxes,
                total=item.taxable_value + (tax if draft.gst_enabled else 0),
            )
        )

    totals: List[Tuple[str, Decimal]] = [("Taxable Amount", summary.taxable_value)]
    totals.extend(tax_lines(draft, summary))
    if summary.round_off != 0:
        totals.append(("Round Off", summary.round_off))

    reference = None
    if shows_original_reference(draft):
        reference = (draft.original_invoice_number or "", draft.original_invoice_date or "")

    return DocumentView(
        title=draft.type.value,
        number_label=number_label(draft.type),
        number=draft.invoice_number,
        date=draft.invoice_date,
        original_reference=reference,
        notice=legal_notice(draft.type),
        place_of_supply=draft.buyer.state or "N/A",
        gst_enabled=draft.gst_enabled,
        inter_state=inter_state,
        tax_headers=headers,
        rows=rows,
        totals=totals,
        grand_total=summary.grand_total,
        amount_in_words=amount_in_words(summary.grand_total),
    )
