"""FastAPI application exposing tax computation, validation, sharing and storage."""
from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import Depends, FastAPI, File, Header, HTTPException, Response, UploadFile, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse
from pydantic import BaseModel

from .config import configure_logging, get_settings
from .drafts import apply_patch, new_draft
from .extractor import DraftExtractor, ExtractionError
from .hsn import suggest_classification_code
from .journal import JournalEntry, build_journal
from .renderer import pdf_filename, render_html, render_pdf
from .schemas import (
    DraftPatch,
    DraftValidationResult,
    FieldKind,
    InvoiceDraft,
    TaxSummary,
    ValidationResponse,
)
from .share import ShareLinkError, build_share_url, decode_draft
from .storage import DraftInvalidError, InvoiceStore, StorageError
from .tax_engine import compute_summary
from .validator import DraftValidator, validate_draft, validate_field

settings = get_settings()
configure_logging(settings)
logger = logging.getLogger(__name__)

UNPROCESSABLE = 422
TOO_LARGE = 413

app = FastAPI(title="GST Invoice Service", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class FieldCheckRequest(BaseModel):
    kind: FieldKind
    value: str = ""


class FieldCheckResponse(BaseModel):
    error: Optional[str] = None


class SuggestionResponse(BaseModel):
    code: Optional[str] = None


class ExtractRequest(BaseModel):
    text: str
    draft: Optional[InvoiceDraft] = None


class ShareResponse(BaseModel):
    url: str


class SavedResponse(BaseModel):
    id: str


def get_store() -> InvoiceStore:
    return InvoiceStore.from_settings(settings)


def current_user(x_user_id: Optional[str] = Header(default=None), store: InvoiceStore = Depends(get_store)) -> str:
    user_id = x_user_id or store.current_user()
    if not user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Sign in to save invoices")
    return user_id


def _require_valid(draft: InvoiceDraft) -> None:
    errors = validate_draft(draft)
    if errors:
        raise HTTPException(status_code=UNPROCESSABLE, detail={"errors": errors})


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/drafts/new", response_model=InvoiceDraft)
def create_draft():
    return new_draft(settings)


@app.post("/summary", response_model=TaxSummary)
def summary(draft: InvoiceDraft):
    return compute_summary(draft)


@app.post("/validate", response_model=DraftValidationResult)
def validate(draft: InvoiceDraft):
    validator = DraftValidator()
    errors = validator.validate(draft)
    return DraftValidationResult(
        invoice_id=draft.display_id,
        is_valid=not errors,
        errors=errors,
        warnings=validator.warnings(draft),
    )


@app.post("/validate-batch", response_model=ValidationResponse)
def validate_batch(drafts: List[InvoiceDraft]):
    return DraftValidator().validate_drafts(drafts)


@app.post("/validate-field", response_model=FieldCheckResponse)
def check_field(request: FieldCheckRequest):
    return FieldCheckResponse(error=validate_field(request.kind, request.value))


@app.get("/suggest-hsn", response_model=SuggestionResponse)
def suggest_hsn(description: str = ""):
    return SuggestionResponse(code=suggest_classification_code(description))


@app.post("/journal", response_model=JournalEntry)
def journal(draft: InvoiceDraft):
    return build_journal(draft)


@app.post("/preview", response_class=HTMLResponse)
def preview(draft: InvoiceDraft):
    return HTMLResponse(render_html(draft))


@app.post("/export/pdf")
def export_pdf(draft: InvoiceDraft):
    _require_valid(draft)
    content = render_pdf(draft)
    headers = {"Content-Disposition": f'attachment; filename="{pdf_filename(draft)}"'}
    return Response(content, media_type="application/pdf", headers=headers)


@app.post("/share", response_model=ShareResponse)
def share(draft: InvoiceDraft):
    _require_valid(draft)
    try:
        return ShareResponse(url=build_share_url(draft, settings))
    except ShareLinkError as exc:
        raise HTTPException(status_code=TOO_LARGE, detail=str(exc))


@app.get("/share/{token}", response_model=InvoiceDraft)
def open_share(token: str):
    try:
        return decode_draft(token, defaults=new_draft(settings))
    except ShareLinkError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


@app.post("/extract", response_model=InvoiceDraft)
def extract(request: ExtractRequest):
    draft = request.draft or new_draft(settings)
    try:
        patch = DraftExtractor().parse_text(request.text)
    except ExtractionError as exc:
        raise HTTPException(
            status_code=UNPROCESSABLE,
            detail=f"Could not understand the request: {exc}",
        )
    return apply_patch(draft, patch)


@app.post("/extract-pdf", response_model=DraftPatch)
async def extract_pdf(file: UploadFile = File(...)):
    content = await file.read()
    try:
        return DraftExtractor().extract_from_bytes(content)
    except ExtractionError as exc:
        raise HTTPException(
            status_code=UNPROCESSABLE,
            detail=f"Could not understand {file.filename}: {exc}",
        )


@app.post("/invoices", response_model=SavedResponse, status_code=status.HTTP_201_CREATED)
def save_invoice(draft: InvoiceDraft, user_id: str = Depends(current_user), store: InvoiceStore = Depends(get_store)):
    try:
        return SavedResponse(id=store.save(draft, user_id))
    except DraftInvalidError as exc:
        raise HTTPException(status_code=UNPROCESSABLE, detail={"errors": exc.errors})
    except StorageError as exc:
        logger.error("Save failed: %s", exc)
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Failed to save invoice. Please try again.")


@app.get("/invoices", response_model=List[InvoiceDraft])
def list_invoices(user_id: str = Depends(current_user), store: InvoiceStore = Depends(get_store)):
    try:
        return store.list(user_id)
    except StorageError as exc:
        logger.error("Listing failed: %s", exc)
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Failed to load invoices.")


@app.delete("/invoices/{invoice_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_invoice(invoice_id: str, user_id: str = Depends(current_user), store: InvoiceStore = Depends(get_store)):
    try:
        invoice = store.get(invoice_id)
        deleted = invoice is not None and invoice.user_id == user_id and store.delete(invoice_id)
    except StorageError as exc:
        logger.error("Delete failed: %s", exc)
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Failed to delete invoice.")
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"No invoice {invoice_id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
