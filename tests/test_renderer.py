"""Unit tests for document views and HTML rendering."""

from decimal import Decimal

from gst_invoice.documents import BILL_OF_SUPPLY_NOTICE, build_view, number_label, tax_lines
from gst_invoice.renderer import pdf_filename, render_html
from gst_invoice.schemas import InvoiceType, LineItem
from gst_invoice.tax_engine import compute_summary


def test_intra_state_view_has_split_tax_columns(make_draft) -> None:
    draft = make_draft()

    view = build_view(draft, compute_summary(draft))

    assert view.tax_headers == ["CGST %", "CGST Amt", "SGST %", "SGST Amt"]
    assert view.rows[0].taxes == [(Decimal("9"), Decimal("90")), (Decimal("9"), Decimal("90"))]
    assert view.rows[0].total == Decimal("1180")
    assert view.totals == [
        ("Taxable Amount", Decimal("1000")),
        ("CGST Total", Decimal("90")),
        ("SGST Total", Decimal("90")),
    ]
    assert view.amount_in_words == "One Thousand One Hundred Eighty Rupees Only"


def test_inter_state_view_has_single_igst_column(make_draft) -> None:
    draft = make_draft(buyer_state="Karnataka")

    view = build_view(draft, compute_summary(draft))

    assert view.tax_headers == ["IGST %", "IGST Amt"]
    assert view.place_of_supply == "Karnataka"
    assert [label for label, _ in view.totals] == ["Taxable Amount", "IGST Total"]


def test_view_without_gst_has_no_tax_columns(make_draft) -> None:
    draft = make_draft(gst_enabled=False)
    summary = compute_summary(draft)

    view = build_view(draft, summary)

    assert view.tax_headers == []
    assert view.rows[0].taxes == []
    assert tax_lines(draft, summary) == []


def test_round_off_row_only_when_nonzero(make_draft) -> None:
    draft = make_draft(items=[LineItem(description="Pens", qty=3, rate="33.33", gst_rate=5)])

    view = build_view(draft, compute_summary(draft))

    assert view.totals[-1][0] == "Round Off"


def test_notes_show_original_reference(make_draft) -> None:
    draft = make_draft(
        type=InvoiceType.DEBIT_NOTE,
        original_invoice_number="INV-000",
        original_invoice_date="2024-03-01",
    )

    view = build_view(draft, compute_summary(draft))

    assert view.number_label == "Note #"
    assert view.original_reference == ("INV-000", "2024-03-01")
    assert number_label(InvoiceType.TAX_INVOICE) == "Invoice #"


def test_invoice_hides_original_reference(make_draft) -> None:
    draft = make_draft(original_invoice_number="INV-000")

    assert build_view(draft, compute_summary(draft)).original_reference is None


def test_render_html_contains_document_details(make_draft) -> None:
    html = render_html(make_draft(notes="Thank you", terms="Net 15"))

    assert "Tax Invoice" in html
    assert "INV-001" in html
    assert "01 Apr 2024" in html
    assert "Acme Traders" in html
    assert "27ABCDE1234F1Z5" in html
    assert "Consulting Services" in html
    assert "1,180.00" in html
    assert "One Thousand One Hundred Eighty Rupees Only" in html
    assert "Net 15" in html


def test_bill_of_supply_carries_notice(make_draft) -> None:
    html = render_html(make_draft(type=InvoiceType.BILL_OF_SUPPLY))

    assert "Bill of Supply" in html
    assert BILL_OF_SUPPLY_NOTICE in html


def test_render_html_escapes_user_text(make_draft) -> None:
    html = render_html(make_draft(notes="<script>alert(1)</script>"))

    assert "<script>alert(1)</script>" not in html
    assert "&lt;script&gt;" in html


def test_render_ignores_stale_cached_summary(make_draft) -> None:
    draft = make_draft()
    stale = compute_summary(make_draft(items=[LineItem(description="Other", qty=1, rate=5)]))

    html = render_html(draft.model_copy(update={"summary": stale}))

    assert "1,180.00" in html


def test_pdf_filename_is_path_safe(make_draft) -> None:
    assert pdf_filename(make_draft(invoice_number="INV/2024/7")) == "INV_2024_7.pdf"
    assert pdf_filename(make_draft(invoice_number="")) == "invoice.pdf"


def test_zero_rated_inter_state_keeps_igst_family(make_draft) -> None:
    draft = make_draft(buyer_state="Karnataka", items=[LineItem(description="Book", qty=1, rate=500, gst_rate=0)])
    summary = compute_summary(draft)

    view = build_view(draft, summary)

    assert view.tax_headers == ["IGST %", "IGST Amt"]
    assert tax_lines(draft, summary) == [("IGST Total", Decimal("0"))]
