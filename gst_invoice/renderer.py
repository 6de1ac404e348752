"""HTML and PDF rendering of invoice drafts.

The renderer only reads: it recomputes the summary from the draft and never
trusts the cached one.
"""
from __future__ import annotations

import importlib
import logging
from decimal import Decimal
from pathlib import Path
from typing import Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from .documents import build_view
from .schemas import InvoiceDraft, TaxSummary
from .tax_engine import compute_summary
from .utils import format_amount, parse_date

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"
_env = Environment(loader=FileSystemLoader(TEMPLATE_DIR), autoescape=select_autoescape())


def _format_date(value: Optional[str]) -> str:
    parsed = parse_date(value) if value else None
    return parsed.strftime("%d %b %Y") if parsed else (value or "")


def _format_number(value: Decimal) -> str:
    """Quantities and rates without trailing zeros (2, 2.5, 33.33)."""
    return format(value.normalize(), "f")


_env.filters["money"] = format_amount
_env.filters["date"] = _format_date
_env.filters["number"] = _format_number


def render_html(draft: InvoiceDraft, summary: Optional[TaxSummary] = None) -> str:
    summary = summary or compute_summary(draft)
    view = build_view(draft, summary)
    template = _env.get_template("invoice.html")
    return template.render(invoice=draft, view=view, summary=summary)


def render_pdf(draft: InvoiceDraft, summary: Optional[TaxSummary] = None) -> bytes:
    html = render_html(draft, summary)
    # WeasyPrint pulls in native libraries, so it is loaded only when a PDF is asked for
    weasyprint = importlib.import_module("weasyprint")
    return weasyprint.HTML(string=html, base_url=str(TEMPLATE_DIR)).write_pdf()


def pdf_filename(draft: InvoiceDraft) -> str:
    return f"{(draft.invoice_number or 'invoice').replace('/', '_')}.pdf"


def export_pdf(draft: InvoiceDraft, output_dir: Path) -> Path:
    output_dir.mkdir(parents=True, exist_ok=True)
    out_path = output_dir / pdf_filename(draft)
    out_path.write_bytes(render_pdf(draft))
    logger.info("Wrote %s", out_path)
    return out_path
