"""Plain-language and PDF text to draft patch extraction.

Understands short requests such as::

    Invoice for Sharma Traders: Web Development Services - 50000
    Sold 5 Dell Laptops (45k each) to TechCorp, Bangalore
    Bill to Rohit Gupta: 100 kg Rice at 60/kg

The result is a ``DraftPatch``; applying it is the caller's job (see
``drafts.apply_patch``), so a failed extraction never touches a draft.
"""
from __future__ import annotations

import io
import logging
import re
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import List, Optional, Tuple

import pdfplumber

from .schemas import DraftPatch, InvoiceType, LineItem
from .utils import INDIAN_STATES

logger = logging.getLogger(__name__)

DOCUMENT_TYPE_PATTERNS = [
    (InvoiceType.CREDIT_NOTE, r"\bcredit\s+note\b"),
    (InvoiceType.DEBIT_NOTE, r"\bdebit\s+note\b"),
    (InvoiceType.PROFORMA_INVOICE, r"\bpro[\s\-]?forma\b"),
    (InvoiceType.BILL_OF_SUPPLY, r"\bbill\s+of\s+supply\b"),
]
GSTIN_PATTERN = r"\b([0-9]{2}[A-Z]{5}[0-9]{4}[A-Z][1-9A-Z]Z[0-9A-Z])\b"

# "Invoice for <buyer>: <items>" / "Bill to <buyer>: <items>"
LEAD_BUYER_PATTERN = r"(?:invoice|bill|note|receipt)\s+(?:for|to)\s+(?P<buyer>[^:\n]+?)\s*:\s*"
# "<items> to <buyer>[, <place>]"
TRAIL_BUYER_PATTERN = r"\s+to\s+(?P<buyer>[^,:\n]+?)(?:\s*,\s*(?P<place>[^:\n]+?))?\s*$"
LEADING_VERBS = r"^(?:(?:create|make|raise|generate)\s+(?:an?\s+)?(?:invoice|bill)\s+(?:for\s+)?|sold|sell|supplied|supply|delivered)\s+"

AMOUNT = r"(?P<rate>\d[\d,]*(?:\.\d+)?\s*(?:k|lakhs?|lacs?|l)?)"
CURRENCY = r"(?:rs\.?|inr|₹)?\s*"
UNITS = r"(?:kgs?|g|grams?|ltrs?|litres?|l|pcs|pieces|nos|units?|hrs?|hours?|days?|months?|boxes|box|m|meters?)"
ITEM_PATTERNS = [
    # 5 Dell Laptops (45k each)
    rf"^(?P<qty>\d+(?:\.\d+)?)\s+(?P<desc>.+?)\s*\(\s*{CURRENCY}{AMOUNT}\s*each\s*\)$",
    # 100 kg Rice at 60/kg
    rf"^(?P<qty>\d+(?:\.\d+)?)\s*(?:{UNITS}\s+)?(?P<desc>.+?)\s+(?:at|@)\s*{CURRENCY}{AMOUNT}(?:\s*/\s*\w+|\s+each)?$",
    # Web Development Services - 50000
    rf"^(?P<desc>.+?)\s*(?:-|–|:|=|\bfor\b)\s*{CURRENCY}{AMOUNT}$",
]
MULTIPLIERS = {"k": Decimal("1000"), "l": Decimal("100000"), "lakh": Decimal("100000"), "lac": Decimal("100000")}


class ExtractionError(Exception):
    """Nothing usable could be extracted from the text."""


class DraftExtractor:
    """Extract a draft patch from free text using lightweight heuristics."""

    def __init__(self, default_gst_rate: Decimal = Decimal("18")) -> None:
        self.default_gst_rate = default_gst_rate

    # Public API
    def extract_from_pdf(self, pdf_path: str | Path) -> DraftPatch:
        return self.parse_text(self._read_pdf_text(Path(pdf_path)))

    def extract_from_bytes(self, file_bytes: bytes) -> DraftPatch:
        return self.parse_text(self._read_pdf_bytes(file_bytes))

    def parse_text(self, text: str) -> DraftPatch:
        normalized = text.replace("\r", "").strip()
        patch = DraftPatch()
        if not normalized:
            raise ExtractionError("Nothing to extract: the request is empty")

        patch.type = self._detect_type(normalized)
        gstin = re.search(GSTIN_PATTERN, normalized.upper())
        if gstin:
            patch.buyer_gstin = gstin.group(1)
            normalized = re.sub(GSTIN_PATTERN, "", normalized, flags=re.IGNORECASE).strip()

        item_text = normalized
        lead = re.search(LEAD_BUYER_PATTERN, normalized, flags=re.IGNORECASE)
        if lead:
            patch.buyer_name = lead.group("buyer").strip()
            item_text = normalized[lead.end():]
        else:
            trail = re.search(TRAIL_BUYER_PATTERN, normalized, flags=re.IGNORECASE)
            if trail:
                patch.buyer_name = trail.group("buyer").strip()
                place = trail.group("place")
                if place:
                    patch.buyer_address = place.strip()
                    patch.buyer_state = self._detect_state(place)
                item_text = normalized[:trail.start()]

        item_text = re.sub(LEADING_VERBS, "", item_text.strip(), flags=re.IGNORECASE)
        patch.items = self._extract_items(item_text)

        if patch.is_empty():
            raise ExtractionError("Could not find a buyer, document type or any priced item")
        logger.debug("Extracted patch with %d item(s)", len(patch.items))
        return patch

    # Internals
    def _read_pdf_text(self, pdf_path: Path) -> str:
        pages_text: list[str] = []
        with pdfplumber.open(pdf_path) as pdf:
            for page in pdf.pages:
                pages_text.append(page.extract_text() or "")
        return "\n".join(pages_text)

    def _read_pdf_bytes(self, file_bytes: bytes) -> str:
        pages_text: list[str] = []
        with pdfplumber.open(io.BytesIO(file_bytes)) as pdf:
            for page in pdf.pages:
                pages_text.append(page.extract_text() or "")
        return "\n".join(pages_text)

    def _detect_type(self, text: str) -> Optional[InvoiceType]:
        for doc_type, pattern in DOCUMENT_TYPE_PATTERNS:
            if re.search(pattern, text, flags=re.IGNORECASE):
                return doc_type
        return None

    def _detect_state(self, text: str) -> Optional[str]:
        lowered = text.lower()
        # Longest first so "West Bengal" is not shadowed by a shorter name
        for state in sorted(INDIAN_STATES, key=len, reverse=True):
            if state.lower() in lowered:
                return state
        return None

    def _extract_items(self, text: str) -> List[LineItem]:
        items: List[LineItem] = []
        for segment in re.split(r"\s*(?:;|\n)\s*", text):
            segment = segment.strip(" .,")
            if not segment:
                continue
            parsed = self._parse_item(segment)
            if parsed:
                description, qty, rate = parsed
                items.append(LineItem(description=description, qty=qty, rate=rate, gst_rate=self.default_gst_rate))
        return items

    def _parse_item(self, segment: str) -> Optional[Tuple[str, Decimal, Decimal]]:
        for pattern in ITEM_PATTERNS:
            m = re.match(pattern, segment, flags=re.IGNORECASE)
            if not m:
                continue
            rate = self._to_number(m.group("rate"))
            qty = self._to_number(m.groupdict().get("qty") or "1")
            description = m.group("desc").strip(" -:")
            if rate is not None and qty is not None and description:
                return description, qty, rate
        return None

    def _to_number(self, value: str) -> Optional[Decimal]:
        m = re.fullmatch(r"(\d[\d,]*(?:\.\d+)?)\s*([a-z]*)", value.strip().lower())
        if not m:
            return None
        try:
            number = Decimal(m.group(1).replace(",", ""))
        except InvalidOperation:
            return None
        suffix = m.group(2).rstrip("s")
        if suffix:
            if suffix not in MULTIPLIERS:
                return None
            number *= MULTIPLIERS[suffix]
        return number
