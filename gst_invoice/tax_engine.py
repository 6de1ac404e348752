"""GST computation for invoice drafts.

``compute_summary`` is a pure function of the draft: it never mutates it,
never raises, and is cheap enough to call on every edit. All arithmetic is
``Decimal`` so ``taxable_value + total_tax + round_off == grand_total`` holds
exactly.
"""
from __future__ import annotations

from decimal import Decimal
from typing import Optional

from .schemas import InvoiceDraft, LineItem, TaxSummary
from .utils import normalize_state, round_half_up

ZERO = Decimal("0")
HUNDRED = Decimal("100")
TWO = Decimal("2")


def is_inter_state(seller_state: Optional[str], buyer_state: Optional[str]) -> bool:
    """True when the supply crosses state lines and attracts IGST.

    States are compared trimmed and case-insensitively. Two blank states
    compare equal, so a draft with no states at all is taxed as intra-state.
    """
    return normalize_state(seller_state) != normalize_state(buyer_state)


def line_tax(item: LineItem) -> Decimal:
    return item.taxable_value * item.gst_rate / HUNDRED


def line_total(item: LineItem, gst_enabled: bool) -> Decimal:
    """Amount shown against a line in the form (tax-inclusive when GST is on)."""
    if gst_enabled:
        return item.taxable_value + line_tax(item)
    return item.taxable_value


def compute_summary(draft: InvoiceDraft) -> TaxSummary:
    taxable_value = ZERO
    total_tax = ZERO
    cgst = sgst = igst = ZERO

    for item in draft.items:
        taxable_value += item.taxable_value
        if draft.gst_enabled:
            total_tax += line_tax(item)

    if draft.gst_enabled:
        if is_inter_state(draft.seller.state, draft.buyer.state):
            igst = total_tax
        else:
            cgst = total_tax / TWO
            sgst = total_tax / TWO

    exact_total = taxable_value + total_tax
    grand_total = round_half_up(exact_total)

    return TaxSummary(
        taxable_value=taxable_value,
        cgst=cgst,
        sgst=sgst,
        igst=igst,
        total_tax=total_tax,
        round_off=grand_total - exact_total,
        grand_total=grand_total,
    )
