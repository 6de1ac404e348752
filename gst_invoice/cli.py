"""Command-line entrypoints for authoring, checking, sharing and exporting invoices."""
from __future__ import annotations

import json
from pathlib import Path
from typing import List, Optional

import typer
from rich import print
from rich.table import Table

from .config import configure_logging, get_settings
from .documents import tax_lines
from .drafts import apply_patch, new_draft, with_summary
from .extractor import DraftExtractor, ExtractionError
from .hsn import suggest_classification_code
from .journal import build_journal
from .renderer import export_pdf, pdf_filename, render_html
from .schemas import InvoiceDraft, TaxSummary
from .share import ShareLinkError, build_share_url, decode_draft, token_from_url
from .storage import DraftInvalidError, InvoiceStore, StorageError
from .tax_engine import compute_summary
from .utils import format_amount
from .validator import DraftValidator, validate_draft

app = typer.Typer(add_completion=False, help="GST invoice CLI")


@app.callback()
def _setup() -> None:
    configure_logging(get_settings())


def _load_drafts(json_path: Path) -> List[InvoiceDraft]:
    data = json.loads(json_path.read_text(encoding="utf-8"))
    if isinstance(data, dict):
        data = [data]
    return [InvoiceDraft.model_validate(item) for item in data]


def _load_draft(json_path: Path) -> InvoiceDraft:
    drafts = _load_drafts(json_path)
    if len(drafts) != 1:
        print(f"[red]Expected exactly one invoice in {json_path}, found {len(drafts)}[/red]")
        raise typer.Exit(code=2)
    return drafts[0]


def _write_draft(draft: InvoiceDraft, output: Path) -> None:
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(draft.model_dump_json(by_alias=True, indent=2), encoding="utf-8")


def _require_valid(draft: InvoiceDraft) -> None:
    errors = validate_draft(draft)
    if errors:
        print(f"[red]{draft.display_id} has {len(errors)} error(s):[/red]")
        for err in errors:
            print(f"- {err}")
        raise typer.Exit(code=1)


def _print_summary(draft: InvoiceDraft, summary: TaxSummary) -> None:
    table = Table(show_header=False, box=None)
    table.add_column(justify="left")
    table.add_column(justify="right")
    table.add_row("Taxable Amount", format_amount(summary.taxable_value))
    for label, amount in tax_lines(draft, summary):
        table.add_row(label, format_amount(amount))
    if summary.round_off != 0:
        table.add_row("Round Off", format_amount(summary.round_off))
    table.add_row("[bold]Grand Total[/bold]", f"[bold]{format_amount(summary.grand_total)}[/bold]")
    print(table)


def _print_report(response) -> None:
    summary = response.summary
    print(f"[bold]Total:[/bold] {summary.total_invoices}")
    print(f"[green]Valid:[/green] {summary.valid_invoices}  [red]Invalid:[/red] {summary.invalid_invoices}")
    for result in response.results:
        for err in result.errors:
            print(f"[red]{result.invoice_id}[/red]: {err}")
        for warning in result.warnings:
            print(f"[yellow]{result.invoice_id}[/yellow]: {warning}")


def _store() -> InvoiceStore:
    return InvoiceStore.from_settings(get_settings())


def _require_user(store: InvoiceStore) -> str:
    user_id = store.current_user()
    if not user_id:
        print("[red]Not signed in: set GST_INVOICE_USER_ID[/red]")
        raise typer.Exit(code=2)
    return user_id


@app.command()
def new(output: Path = typer.Option(..., help="Path to write the new draft JSON")) -> None:
    """Write a fresh draft with default seller, state and one sample item."""
    draft = new_draft(get_settings())
    _write_draft(draft, output)
    print(f"Created draft {draft.invoice_number} -> {output}")


@app.command()
def summary(input: Path = typer.Option(..., exists=True, dir_okay=False, help="Draft JSON file")) -> None:
    """Compute the tax summary of a draft."""
    draft = _load_draft(input)
    _print_summary(draft, compute_summary(draft))


@app.command()
def validate(input: Path = typer.Option(..., exists=True, dir_okay=False, help="JSON file with one draft or a list"), report: Optional[Path] = typer.Option(None, help="Optional path to write validation report")) -> None:
    """Validate drafts in a JSON file."""
    drafts = _load_drafts(input)
    response = DraftValidator().validate_drafts(drafts)
    if report:
        report.parent.mkdir(parents=True, exist_ok=True)
        report.write_text(response.model_dump_json(indent=2), encoding="utf-8")
        print(f"Report written to {report}")
    _print_report(response)
    if response.summary.invalid_invoices > 0:
        raise typer.Exit(code=1)


@app.command("suggest-hsn")
def suggest_hsn(description: str = typer.Option(..., help="Item description")) -> None:
    """Suggest an HSN/SAC code for an item description."""
    code = suggest_classification_code(description)
    if code is None:
        print("No suggestion")
        raise typer.Exit(code=1)
    typer.echo(code)


@app.command()
def journal(input: Path = typer.Option(..., exists=True, dir_okay=False, help="Draft JSON file")) -> None:
    """Show the double-entry journal the draft implies."""
    entry = build_journal(_load_draft(input))
    table = Table("Particulars", "Type", "Debit", "Credit")
    for line in entry.lines:
        table.add_row(
            line.account,
            line.kind,
            format_amount(line.debit) if line.debit else "-",
            format_amount(line.credit) if line.credit else "-",
        )
    print(table)
    print(f"[italic]({entry.narration})[/italic]")


@app.command()
def export(input: Path = typer.Option(..., exists=True, dir_okay=False, help="Draft JSON file"), output_dir: Path = typer.Option(Path("."), help="Folder to write the document into"), html: bool = typer.Option(False, "--html", help="Write HTML instead of PDF")) -> None:
    """Render a valid draft to PDF (or HTML)."""
    draft = _load_draft(input)
    _require_valid(draft)
    if html:
        output_dir.mkdir(parents=True, exist_ok=True)
        out_path = output_dir / pdf_filename(draft).replace(".pdf", ".html")
        out_path.write_text(render_html(draft), encoding="utf-8")
    else:
        out_path = export_pdf(draft, output_dir)
    print(f"Exported {draft.display_id} -> {out_path}")


@app.command()
def share(input: Path = typer.Option(..., exists=True, dir_okay=False, help="Draft JSON file")) -> None:
    """Print a share link carrying the whole draft."""
    draft = _load_draft(input)
    _require_valid(draft)
    try:
        url = build_share_url(draft, get_settings())
    except ShareLinkError as exc:
        print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)
    typer.echo(url)


@app.command("open-link")
def open_link(url: str = typer.Option(..., help="Share link or bare token"), output: Path = typer.Option(..., help="Path to write the draft JSON")) -> None:
    """Recover a draft from a share link."""
    settings = get_settings()
    try:
        token = token_from_url(url) if "data=" in url else url
        draft = decode_draft(token, defaults=new_draft(settings))
    except ShareLinkError as exc:
        print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)
    _write_draft(draft, output)
    print(f"Opened {draft.display_id} -> {output}")


@app.command()
def extract(text: Optional[str] = typer.Option(None, help="Plain-language request"), pdf: Optional[Path] = typer.Option(None, exists=True, dir_okay=False, help="PDF to read text from"), input: Optional[Path] = typer.Option(None, exists=True, dir_okay=False, help="Draft to update (default: a new draft)"), output: Path = typer.Option(..., help="Path to write the updated draft")) -> None:
    """Fill a draft from a plain-language request or a PDF."""
    if not text and not pdf:
        print("[red]Give --text or --pdf[/red]")
        raise typer.Exit(code=2)
    draft = _load_draft(input) if input else new_draft(get_settings())
    extractor = DraftExtractor()
    try:
        patch = extractor.extract_from_pdf(pdf) if pdf else extractor.parse_text(text)
    except ExtractionError as exc:
        print(f"[red]Could not understand the request: {exc}[/red]")
        raise typer.Exit(code=1)
    updated = apply_patch(draft, patch)
    _write_draft(updated, output)
    print(f"Updated {updated.display_id} with {len(patch.items)} item(s) -> {output}")


@app.command()
def save(input: Path = typer.Option(..., exists=True, dir_okay=False, help="Draft JSON file")) -> None:
    """Save a valid draft for the signed-in user and write back its id."""
    store = _store()
    user_id = _require_user(store)
    draft = _load_draft(input)
    try:
        invoice_id = store.save(draft, user_id)
    except DraftInvalidError as exc:
        print(f"[red]{draft.display_id} has {len(exc.errors)} error(s):[/red]")
        for err in exc.errors:
            print(f"- {err}")
        raise typer.Exit(code=1)
    except StorageError as exc:
        print(f"[red]Failed to save invoice: {exc}[/red]")
        raise typer.Exit(code=2)
    _write_draft(with_summary(draft).model_copy(update={"id": invoice_id}), input)
    print(f"Saved {draft.display_id} as {invoice_id}")


@app.command()
def history() -> None:
    """List invoices saved by the signed-in user, newest first."""
    store = _store()
    user_id = _require_user(store)
    try:
        invoices = store.list(user_id)
    except StorageError as exc:
        print(f"[red]Failed to load invoices: {exc}[/red]")
        raise typer.Exit(code=2)
    table = Table("Id", "Number", "Type", "Buyer", "Grand Total", "Updated")
    for inv in invoices:
        total = inv.summary.grand_total if inv.summary else compute_summary(inv).grand_total
        table.add_row(inv.id, inv.invoice_number, inv.type.value, inv.buyer.name, format_amount(total), inv.updated_at or "")
    print(table)


@app.command()
def delete(invoice_id: str = typer.Option(..., "--id", help="Saved invoice id")) -> None:
    """Delete a saved invoice."""
    store = _store()
    _require_user(store)
    try:
        deleted = store.delete(invoice_id)
    except StorageError as exc:
        print(f"[red]Failed to delete invoice: {exc}[/red]")
        raise typer.Exit(code=2)
    if not deleted:
        print(f"[yellow]No invoice {invoice_id}[/yellow]")
        raise typer.Exit(code=1)
    print(f"Deleted {invoice_id}")


def main():
    app()


if __name__ == "__main__":
    main()
