"""Draft factory and immutable edits.

Every function here returns a new ``InvoiceDraft``; the argument is never
changed. Edits go through model validation so a patched draft is as
well-formed as a parsed one.
"""
from __future__ import annotations

import time
from datetime import date
from typing import Any, Optional

from .config import Settings
from .hsn import should_autofill, suggest_classification_code
from .schemas import UNSAVED_ID, DraftPatch, InvoiceDraft, InvoiceType, LineItem, Party
from .tax_engine import compute_summary

UPPERCASE_FIELDS = ("gstin", "pan")


def _replace(model: Any, **changes: Any) -> Any:
    return type(model).model_validate({**model.model_dump(), **changes})


def _edit(draft: InvoiceDraft, **changes: Any) -> InvoiceDraft:
    # Any content change invalidates the cached summary
    return _replace(draft, summary=None, **changes)


def draft_number(prefix: str = "INV-", now: Optional[float] = None) -> str:
    """Prefix plus the last four digits of the millisecond clock."""
    millis = int((time.time() if now is None else now) * 1000)
    return f"{prefix}{str(millis)[-4:]}"


def new_draft(settings: Optional[Settings] = None) -> InvoiceDraft:
    settings = settings or Settings()
    return InvoiceDraft(
        id=UNSAVED_ID,
        invoice_number=draft_number(settings.invoice_prefix),
        invoice_date=date.today().isoformat(),
        type=InvoiceType.TAX_INVOICE,
        gst_enabled=True,
        logo_enabled=True,
        seller=Party(name=settings.seller_name, state=settings.default_state),
        buyer=Party(state=settings.default_state),
        items=(
            LineItem(id="1", description="Consulting Services", hsn="9983", qty=1, rate=1000, gst_rate=18),
        ),
        notes=settings.default_notes,
        terms=settings.default_terms,
    )


def update_party(draft: InvoiceDraft, role: str, **changes: Any) -> InvoiceDraft:
    if role not in ("seller", "buyer"):
        raise ValueError(f"unknown party role: {role!r}")
    for field in UPPERCASE_FIELDS:
        if isinstance(changes.get(field), str):
            changes[field] = changes[field].upper()
    party = _replace(getattr(draft, role), **changes)
    return _edit(draft, **{role: party})


def add_item(draft: InvoiceDraft, item: Optional[LineItem] = None) -> InvoiceDraft:
    item = item or LineItem(id=str(int(time.time() * 1000)), qty=1, rate=0, gst_rate=18)
    return _edit(draft, items=(*draft.items, item))


def remove_item(draft: InvoiceDraft, index: int) -> InvoiceDraft:
    """Drop the item at ``index``; the last remaining item is kept."""
    if len(draft.items) <= 1:
        return draft
    items = tuple(item for i, item in enumerate(draft.items) if i != index)
    return _edit(draft, items=items)


def update_item(draft: InvoiceDraft, index: int, **changes: Any) -> InvoiceDraft:
    """Edit one line item, filling in the HSN code when the description changes."""
    item = _replace(draft.items[index], **changes)

    if "description" in changes and draft.gst_enabled and should_autofill(item.hsn):
        suggestion = suggest_classification_code(item.description)
        if suggestion:
            item = _replace(item, hsn=suggestion)

    items = draft.items[:index] + (item,) + draft.items[index + 1:]
    return _edit(draft, items=items)


def apply_patch(draft: InvoiceDraft, patch: DraftPatch) -> InvoiceDraft:
    """Merge an extracted patch; items in the patch replace the current ones."""
    changes: dict = {}
    if patch.type is not None:
        changes["type"] = patch.type

    buyer = {
        field: value
        for field, value in (
            ("name", patch.buyer_name),
            ("gstin", patch.buyer_gstin.upper() if patch.buyer_gstin else None),
            ("address", patch.buyer_address),
            ("state", patch.buyer_state),
        )
        if value
    }
    if buyer:
        changes["buyer"] = _replace(draft.buyer, **buyer)

    if patch.items:
        items = []
        for item in patch.items:
            if should_autofill(item.hsn):
                item = _replace(item, hsn=suggest_classification_code(item.description) or item.hsn)
            items.append(item)
        changes["items"] = tuple(items)

    if not changes:
        return draft
    return _edit(draft, **changes)


def with_summary(draft: InvoiceDraft) -> InvoiceDraft:
    """Copy of ``draft`` carrying a freshly computed summary cache."""
    return _replace(draft, summary=compute_summary(draft))
