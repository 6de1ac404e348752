"""Validation engine applying field-format, structural, and advisory rules.

``validate_draft`` returns the blocking errors that stop export and saving.
``DraftValidator.warnings`` adds advisory notes that never block anything.
Neither raises: problems are reported as strings.
"""
from __future__ import annotations

import re
from collections import Counter
from typing import Iterable, List, Optional, Set, Tuple

from .documents import is_note
from .hsn import looks_like_hsn
from .schemas import (
    DraftValidationResult,
    FieldKind,
    InvoiceDraft,
    InvoiceType,
    Party,
    ValidationResponse,
    ValidationSummary,
)
from .utils import GST_RATES, is_known_state, parse_date, to_decimal

PATTERNS = {
    # 2-digit state code, PAN (5 letters, 4 digits, 1 letter), entity number, "Z", check character
    FieldKind.GSTIN: re.compile(r"^[0-9]{2}[A-Z]{5}[0-9]{4}[A-Z][1-9A-Z]Z[0-9A-Z]$"),
    FieldKind.PAN: re.compile(r"^[A-Z]{5}[0-9]{4}[A-Z]$"),
    FieldKind.EMAIL: re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$"),
    FieldKind.PHONE: re.compile(r"^[0-9]{10}$"),
}

MESSAGES = {
    FieldKind.GSTIN: "Invalid GSTIN format (e.g., 27ABCDE1234F1Z5)",
    FieldKind.PAN: "Invalid PAN format (e.g., ABCDE1234F)",
    FieldKind.EMAIL: "Invalid email address",
    FieldKind.PHONE: "Phone must be 10 digits",
}


def validate_field(kind: FieldKind, value: Optional[str]) -> Optional[str]:
    """Return a reason when ``value`` is malformed; None when valid or not provided."""
    if value is None or not value.strip():
        return None
    kind = FieldKind(kind)
    if PATTERNS[kind].match(value.strip()):
        return None
    return MESSAGES[kind]


def _party_errors(party: Party, role: str, gstin_required: bool) -> List[str]:
    errors: List[str] = []
    if not party.name.strip():
        errors.append(f"{role} Name is required")

    if party.gstin is None:
        if gstin_required:
            errors.append(f"{role} GSTIN is required when GST is enabled")
    elif validate_field(FieldKind.GSTIN, party.gstin):
        errors.append(f"{role} GSTIN is invalid")

    if validate_field(FieldKind.PAN, party.pan):
        errors.append(f"{role} PAN is invalid")
    if validate_field(FieldKind.EMAIL, party.email):
        errors.append(f"{role} Email is invalid")
    if validate_field(FieldKind.PHONE, party.phone):
        errors.append(f"{role} Phone is invalid")
    return errors


def validate_draft(draft: InvoiceDraft) -> List[str]:
    """Collect every blocking error in ``draft``; an empty list means valid."""
    errors: List[str] = []

    # Seller GSTIN is mandatory when charging tax; buyer GSTIN is optional (B2C)
    errors.extend(_party_errors(draft.seller, "Seller", gstin_required=draft.gst_enabled))
    errors.extend(_party_errors(draft.buyer, "Buyer", gstin_required=False))

    if not draft.items:
        errors.append("At least one item is required")
    for index, item in enumerate(draft.items, start=1):
        if not item.description.strip():
            errors.append(f"Item {index}: Description is required")
        if item.qty <= 0:
            errors.append(f"Item {index}: Quantity must be greater than 0")
        if item.rate < 0:
            errors.append(f"Item {index}: Rate cannot be negative")
    return errors


class DraftValidator:
    def __init__(self, allowed_rates: Iterable[int] = GST_RATES) -> None:
        self.allowed_rates = {to_decimal(rate) for rate in allowed_rates}

    def validate(self, draft: InvoiceDraft) -> List[str]:
        return validate_draft(draft)

    def warnings(self, draft: InvoiceDraft) -> List[str]:
        warnings: List[str] = []

        # Composition dealers may not collect tax; only advised, never enforced
        if draft.type == InvoiceType.BILL_OF_SUPPLY and draft.gst_enabled:
            warnings.append("advisory: bill_of_supply_with_gst")
        if not is_note(draft.type) and (draft.original_invoice_number or draft.original_invoice_date):
            warnings.append("advisory: original_reference_ignored")

        for role, party in (("seller", draft.seller), ("buyer", draft.buyer)):
            if party.state.strip() and not is_known_state(party.state):
                warnings.append(f"advisory: {role}_state_unknown")

        # Date parsing and ordering
        invoice_date = parse_date(draft.invoice_date) if draft.invoice_date else None
        if draft.invoice_date and not invoice_date:
            warnings.append("format: invoice_date_unparseable")
        due_date = parse_date(draft.due_date) if draft.due_date else None
        if draft.due_date and not due_date:
            warnings.append("format: due_date_unparseable")
        if invoice_date and due_date and due_date < invoice_date:
            warnings.append("business: due_before_invoice_date")
        if draft.original_invoice_date and not parse_date(draft.original_invoice_date):
            warnings.append("format: original_invoice_date_unparseable")

        for index, item in enumerate(draft.items, start=1):
            if item.gst_rate not in self.allowed_rates:
                warnings.append(f"advisory: item_{index}_gst_rate_unusual")
            if draft.gst_enabled and item.hsn.strip() and not looks_like_hsn(item.hsn):
                warnings.append(f"format: item_{index}_hsn_malformed")
        return warnings

    def validate_drafts(self, drafts: List[InvoiceDraft]) -> ValidationResponse:
        seen_keys: Set[Tuple[str, str]] = set()
        results: List[DraftValidationResult] = []
        error_counter: Counter[str] = Counter()

        for draft in drafts:
            errors = self.validate(draft)
            warnings = self.warnings(draft)

            # Duplicate detection
            key = draft.key()
            if all(key):
                if key in seen_keys:
                    warnings.append("anomaly: duplicate_invoice_number")
                else:
                    seen_keys.add(key)

            result = DraftValidationResult(
                invoice_id=draft.display_id,
                is_valid=len(errors) == 0,
                errors=errors,
                warnings=warnings,
            )
            results.append(result)
            error_counter.update(errors)

        summary = ValidationSummary(
            total_invoices=len(results),
            valid_invoices=sum(1 for r in results if r.is_valid),
            invalid_invoices=sum(1 for r in results if not r.is_valid),
            error_counts=dict(error_counter),
        )
        return ValidationResponse(summary=summary, results=results)
