"""Pro-forma double-entry journal for a draft.

Sales documents debit the buyer and credit sales and output taxes; a credit
note reverses that. Any round-off goes to its own account so debits always
equal credits.
"""
from __future__ import annotations

from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .schemas import InvoiceDraft, InvoiceType, TaxSummary
from .tax_engine import compute_summary

ZERO = Decimal("0")

PERSONAL = "Personal"
NOMINAL = "Nominal"


class JournalLine(BaseModel):
    model_config = ConfigDict(frozen=True)

    account: str
    kind: str
    debit: Decimal = ZERO
    credit: Decimal = ZERO


class JournalEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    lines: List[JournalLine] = Field(default_factory=list)
    narration: str

    @property
    def total_debit(self) -> Decimal:
        return sum((line.debit for line in self.lines), ZERO)

    @property
    def total_credit(self) -> Decimal:
        return sum((line.credit for line in self.lines), ZERO)

    @property
    def balanced(self) -> bool:
        return self.total_debit == self.total_credit


def _tax_accounts(summary: TaxSummary) -> List[tuple]:
    return [
        (name, amount)
        for name, amount in (
            ("Output IGST A/c", summary.igst),
            ("Output CGST A/c", summary.cgst),
            ("Output SGST A/c", summary.sgst),
        )
        if amount > 0
    ]


def build_journal(draft: InvoiceDraft, summary: Optional[TaxSummary] = None) -> JournalEntry:
    summary = summary or compute_summary(draft)
    buyer = f"{draft.buyer.name or 'Buyer'} A/c"
    lines: List[JournalLine] = []
    round_off = summary.round_off

    if draft.type == InvoiceType.CREDIT_NOTE:
        lines.append(JournalLine(account="Sales Return A/c", kind=NOMINAL, debit=summary.taxable_value))
        if draft.gst_enabled:
            for account, amount in _tax_accounts(summary):
                lines.append(JournalLine(account=account, kind=PERSONAL, debit=amount))
        if round_off > 0:
            lines.append(JournalLine(account="Round Off A/c", kind=NOMINAL, debit=round_off))
        elif round_off < 0:
            lines.append(JournalLine(account="Round Off A/c", kind=NOMINAL, credit=-round_off))
        lines.append(JournalLine(account=buyer, kind=PERSONAL, credit=summary.grand_total))
        narration = "goods returned/value reduced"
    else:
        lines.append(JournalLine(account=buyer, kind=PERSONAL, debit=summary.grand_total))
        if draft.type == InvoiceType.DEBIT_NOTE:
            income = "Other Income / Sales A/c (Value Increase)"
            narration = "value increased/short charge rectified"
        else:
            income = "Sales A/c"
            narration = "goods sold/services provided"
        lines.append(JournalLine(account=income, kind=NOMINAL, credit=summary.taxable_value))
        if draft.gst_enabled:
            for account, amount in _tax_accounts(summary):
                lines.append(JournalLine(account=account, kind=PERSONAL, credit=amount))
        if round_off > 0:
            lines.append(JournalLine(account="Round Off A/c", kind=NOMINAL, credit=round_off))
        elif round_off < 0:
            lines.append(JournalLine(account="Round Off A/c", kind=NOMINAL, debit=-round_off))

    return JournalEntry(lines=lines, narration=f"Being {narration} vide {draft.invoice_number}")
