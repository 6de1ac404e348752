"""Unit tests for field checks, blocking errors and advisory warnings."""

import pytest

from gst_invoice.schemas import FieldKind, InvoiceType, LineItem, Party
from gst_invoice.validator import MESSAGES, DraftValidator, validate_draft, validate_field

VALID_GSTIN = "27ABCDE1234F1Z5"


@pytest.mark.parametrize(
    "kind,value",
    [
        (FieldKind.GSTIN, VALID_GSTIN),
        (FieldKind.GSTIN, "  27ABCDE1234F1Z5 "),
        (FieldKind.PAN, "ABCDE1234F"),
        (FieldKind.EMAIL, "billing@acme.in"),
        (FieldKind.PHONE, "9876543210"),
    ],
)
def test_validate_field_accepts_well_formed_values(kind, value) -> None:
    assert validate_field(kind, value) is None


@pytest.mark.parametrize(
    "kind,value",
    [
        (FieldKind.GSTIN, "27abcde1234f1z5"),
        (FieldKind.GSTIN, "27ABCDE1234F1Y5"),
        (FieldKind.GSTIN, "27ABCDE1234F0Z5"),
        (FieldKind.PAN, "ABCD1234F"),
        (FieldKind.EMAIL, "billing@acme"),
        (FieldKind.EMAIL, "bill ing@acme.in"),
        (FieldKind.PHONE, "98765 43210"),
        (FieldKind.PHONE, "+919876543210"),
    ],
)
def test_validate_field_rejects_malformed_values(kind, value) -> None:
    assert validate_field(kind, value) == MESSAGES[kind]


@pytest.mark.parametrize("kind", list(FieldKind))
@pytest.mark.parametrize("value", [None, "", "   "])
def test_validate_field_treats_empty_as_not_provided(kind, value) -> None:
    """Optional identifiers that are absent are never malformed."""
    assert validate_field(kind, value) is None


def test_validate_field_accepts_plain_string_kind() -> None:
    assert validate_field("PHONE", "12345") == "Phone must be 10 digits"


def test_valid_draft_has_no_errors(make_draft) -> None:
    assert validate_draft(make_draft()) == []


def test_missing_seller_gstin_blocks_only_when_gst_enabled(make_draft) -> None:
    seller = Party(name="Acme Traders", state="Maharashtra")

    assert validate_draft(make_draft(seller=seller)) == ["Seller GSTIN is required when GST is enabled"]
    assert validate_draft(make_draft(seller=seller, gst_enabled=False)) == []


def test_empty_seller_and_items_report_every_problem(make_draft) -> None:
    draft = make_draft(seller=Party(name="", gstin="   "), items=[])

    errors = validate_draft(draft)

    assert "Seller Name is required" in errors
    assert "Seller GSTIN is required when GST is enabled" in errors
    assert "At least one item is required" in errors


def test_buyer_gstin_is_optional_but_checked(make_draft) -> None:
    assert validate_draft(make_draft(buyer=Party(name="Walk-in Customer"))) == []

    errors = validate_draft(make_draft(buyer=Party(name="Sharma Traders", gstin="29XYZ")))
    assert errors == ["Buyer GSTIN is invalid"]


def test_errors_are_collected_not_short_circuited(make_draft) -> None:
    draft = make_draft(
        seller=Party(name="", gstin="BADGSTIN", phone="123"),
        buyer=Party(name="", email="nobody"),
        items=[
            LineItem(description="", qty=0, rate=-5),
            LineItem(description="Widget", qty=1, rate=10),
        ],
    )

    assert validate_draft(draft) == [
        "Seller Name is required",
        "Seller GSTIN is invalid",
        "Seller Phone is invalid",
        "Buyer Name is required",
        "Buyer Email is invalid",
        "Item 1: Description is required",
        "Item 1: Quantity must be greater than 0",
        "Item 1: Rate cannot be negative",
    ]


def test_item_numbers_are_one_based(make_draft) -> None:
    items = [
        LineItem(description="Widget", qty=1, rate=10),
        LineItem(description="   ", qty=1, rate=10),
    ]

    assert validate_draft(make_draft(items=items)) == ["Item 2: Description is required"]


def test_draft_without_items_is_invalid(make_draft) -> None:
    assert validate_draft(make_draft(items=[])) == ["At least one item is required"]


def test_zero_rate_is_allowed(make_draft) -> None:
    items = [LineItem(description="Free sample", qty=1, rate=0)]

    assert validate_draft(make_draft(items=items)) == []


def test_lowercase_gstin_fails_the_pattern(make_draft) -> None:
    seller = Party(name="Acme Traders", gstin=VALID_GSTIN.lower(), state="Maharashtra")

    assert validate_draft(make_draft(seller=seller)) == ["Seller GSTIN is invalid"]


def test_warnings_for_clean_draft_are_empty(make_draft) -> None:
    assert DraftValidator().warnings(make_draft(due_date="2024-04-16")) == []


def test_warnings_never_block(make_draft) -> None:
    draft = make_draft(type=InvoiceType.BILL_OF_SUPPLY)
    validator = DraftValidator()

    assert validator.warnings(draft) == ["advisory: bill_of_supply_with_gst"]
    assert validator.validate(draft) == []


def test_original_reference_on_invoice_is_flagged(make_draft) -> None:
    draft = make_draft(original_invoice_number="INV-000")

    assert "advisory: original_reference_ignored" in DraftValidator().warnings(draft)


def test_original_reference_on_note_is_expected(make_draft) -> None:
    draft = make_draft(
        type=InvoiceType.CREDIT_NOTE,
        original_invoice_number="INV-000",
        original_invoice_date="2024-03-01",
    )

    assert DraftValidator().warnings(draft) == []


def test_date_warnings(make_draft) -> None:
    validator = DraftValidator()

    assert validator.warnings(make_draft(due_date="2024-03-01")) == ["business: due_before_invoice_date"]
    assert validator.warnings(make_draft(invoice_date="someday")) == ["format: invoice_date_unparseable"]
    assert validator.warnings(make_draft(due_date="someday")) == ["format: due_date_unparseable"]


def test_unknown_state_and_unusual_rate_warnings(make_draft) -> None:
    items = [LineItem(description="Widget", hsn="12", qty=1, rate=10, gst_rate=7)]
    draft = make_draft(buyer_state="Atlantis", items=items)

    assert DraftValidator().warnings(draft) == [
        "advisory: buyer_state_unknown",
        "advisory: item_1_gst_rate_unusual",
        "format: item_1_hsn_malformed",
    ]


def test_validate_drafts_summarises_batch(make_draft) -> None:
    drafts = [
        make_draft(),
        make_draft(invoice_number="INV-002", items=[]),
        make_draft(invoice_number="INV-003", items=[]),
    ]

    response = DraftValidator().validate_drafts(drafts)

    assert response.summary.total_invoices == 3
    assert response.summary.valid_invoices == 1
    assert response.summary.invalid_invoices == 2
    assert response.summary.error_counts == {"At least one item is required": 2}
    assert [r.invoice_id for r in response.results] == ["INV-001", "INV-002", "INV-003"]


def test_validate_drafts_flags_duplicates_per_seller(make_draft) -> None:
    other_seller = Party(name="Other Co", gstin="29ABCDE1234F1Z5", state="Karnataka")
    drafts = [
        make_draft(),
        make_draft(),
        make_draft(seller=other_seller),
    ]

    results = DraftValidator().validate_drafts(drafts).results

    assert "anomaly: duplicate_invoice_number" not in results[0].warnings
    assert "anomaly: duplicate_invoice_number" in results[1].warnings
    assert "anomaly: duplicate_invoice_number" not in results[2].warnings
    assert all(r.is_valid for r in results)


def test_drafts_without_number_are_not_duplicates(make_draft) -> None:
    drafts = [make_draft(invoice_number=""), make_draft(invoice_number="")]

    results = DraftValidator().validate_drafts(drafts).results

    assert all("anomaly: duplicate_invoice_number" not in r.warnings for r in results)
