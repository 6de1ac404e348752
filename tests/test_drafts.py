"""Unit tests for draft creation and immutable edits."""

from datetime import date
from decimal import Decimal

import pytest

from gst_invoice.config import Settings
from gst_invoice.drafts import (
    add_item,
    apply_patch,
    draft_number,
    new_draft,
    remove_item,
    update_item,
    update_party,
    with_summary,
)
from gst_invoice.schemas import UNSAVED_ID, DraftPatch, InvoiceType, LineItem


def test_new_draft_defaults(clean_env) -> None:
    draft = new_draft(Settings(_env_file=None))

    assert draft.id == UNSAVED_ID
    assert not draft.is_saved
    assert draft.type == InvoiceType.TAX_INVOICE
    assert draft.gst_enabled and draft.logo_enabled
    assert draft.invoice_date == date.today().isoformat()
    assert draft.invoice_number.startswith("INV-")
    assert len(draft.invoice_number) == len("INV-") + 4
    assert draft.seller.state == draft.buyer.state == "Maharashtra"
    assert len(draft.items) == 1
    item = draft.items[0]
    assert (item.description, item.hsn, item.qty, item.rate, item.gst_rate) == (
        "Consulting Services",
        "9983",
        Decimal("1"),
        Decimal("1000"),
        Decimal("18"),
    )


def test_new_draft_uses_settings() -> None:
    settings = Settings(_env_file=None, seller_name="Acme", default_state="Goa", invoice_prefix="ACM/")

    draft = new_draft(settings)

    assert draft.seller.name == "Acme"
    assert draft.buyer.state == "Goa"
    assert draft.invoice_number.startswith("ACM/")


def test_draft_number_uses_last_four_clock_digits() -> None:
    assert draft_number("INV-", now=1712345678.9012) == "INV-8901"


def test_update_party_uppercases_tax_ids(make_draft) -> None:
    draft = make_draft()

    updated = update_party(draft, "buyer", gstin="29abcde1234f1z5", pan="abcde1234f", name="Rohit")

    assert updated.buyer.gstin == "29ABCDE1234F1Z5"
    assert updated.buyer.pan == "ABCDE1234F"
    assert updated.buyer.name == "Rohit"
    assert updated.buyer.state == draft.buyer.state
    assert draft.buyer.name == "Sharma Traders"


def test_update_party_blank_identifier_becomes_absent(make_draft) -> None:
    updated = update_party(make_draft(), "seller", gstin="  ")

    assert updated.seller.gstin is None


def test_update_party_rejects_unknown_role(make_draft) -> None:
    with pytest.raises(ValueError):
        update_party(make_draft(), "shipper", name="X")


def test_add_and_remove_items(make_draft) -> None:
    draft = make_draft()

    grown = add_item(draft)
    assert len(grown.items) == 2
    assert grown.items[1].qty == 1
    assert grown.items[1].rate == 0
    assert grown.items[1].gst_rate == 18

    shrunk = remove_item(grown, 0)
    assert len(shrunk.items) == 1
    assert shrunk.items[0] == grown.items[1]
    assert len(draft.items) == 1


def test_remove_last_item_is_ignored(make_draft) -> None:
    draft = make_draft()

    assert remove_item(draft, 0) is draft


def test_update_item_autofills_hsn_from_description(make_draft) -> None:
    draft = make_draft(items=[LineItem(description="", hsn="", qty=1, rate=100)])

    updated = update_item(draft, 0, description="Dell Laptop")

    assert updated.items[0].hsn == "8471"
    assert draft.items[0].hsn == ""


def test_update_item_keeps_explicit_hsn(make_draft) -> None:
    draft = make_draft(items=[LineItem(description="", hsn="84713010", qty=1, rate=100)])

    assert update_item(draft, 0, description="Dell Laptop").items[0].hsn == "84713010"


def test_update_item_skips_autofill_without_gst(make_draft) -> None:
    draft = make_draft(gst_enabled=False, items=[LineItem(description="", qty=1, rate=100)])

    assert update_item(draft, 0, description="Dell Laptop").items[0].hsn == ""


def test_update_item_other_fields_do_not_autofill(make_draft) -> None:
    draft = make_draft(items=[LineItem(description="Dell Laptop", qty=1, rate=100)])

    updated = update_item(draft, 0, qty="3")

    assert updated.items[0].qty == Decimal("3")
    assert updated.items[0].hsn == ""


def test_edits_drop_cached_summary(make_draft) -> None:
    draft = with_summary(make_draft())
    assert draft.summary is not None
    assert draft.summary.grand_total == Decimal("1180")

    updated = update_item(draft, 0, rate=2000)

    assert updated.summary is None


def test_apply_patch_replaces_items_and_merges_buyer(make_draft) -> None:
    draft = make_draft()
    patch = DraftPatch(
        type=InvoiceType.PROFORMA_INVOICE,
        buyer_name="TechCorp",
        buyer_gstin="29abcde1234f1z5",
        items=[LineItem(description="Dell Laptops", qty=5, rate=45000)],
    )

    updated = apply_patch(draft, patch)

    assert updated.type == InvoiceType.PROFORMA_INVOICE
    assert updated.buyer.name == "TechCorp"
    assert updated.buyer.gstin == "29ABCDE1234F1Z5"
    assert updated.buyer.state == "Maharashtra"
    assert [i.description for i in updated.items] == ["Dell Laptops"]
    assert updated.items[0].hsn == "8471"
    assert updated.seller == draft.seller


def test_apply_empty_patch_returns_same_draft(make_draft) -> None:
    draft = make_draft()

    assert apply_patch(draft, DraftPatch()) is draft
