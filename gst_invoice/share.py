"""Share links: a draft packed into a URL-safe base64 ``#data=`` fragment."""
from __future__ import annotations

import base64
import binascii
import json
import logging
from typing import Optional
from urllib.parse import parse_qs, unquote, urlsplit

from pydantic import ValidationError

from .config import Settings
from .schemas import InvoiceDraft

logger = logging.getLogger(__name__)


class ShareLinkError(Exception):
    """A draft could not be packed into, or recovered from, a share link."""


def _shareable(draft: InvoiceDraft) -> InvoiceDraft:
    # Inline logos would blow the URL length budget
    logo = draft.seller.logo_url
    if logo and logo.startswith("data:image"):
        seller = draft.seller.model_copy(update={"logo_url": None})
        return draft.model_copy(update={"seller": seller})
    return draft


def encode_draft(draft: InvoiceDraft) -> str:
    payload = _shareable(draft).model_dump(mode="json", by_alias=True, exclude={"summary"})
    raw = json.dumps(payload, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def decode_draft(token: str, defaults: Optional[InvoiceDraft] = None) -> InvoiceDraft:
    """Rebuild a draft from a token, filling missing fields from ``defaults``."""
    # Query strings turn '+' into spaces
    cleaned = unquote(token).strip().replace(" ", "+")
    cleaned += "=" * (-len(cleaned) % 4)
    try:
        data = json.loads(base64.urlsafe_b64decode(cleaned).decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError, ValueError) as exc:
        raise ShareLinkError(f"share token is not valid: {exc}") from exc
    if not isinstance(data, dict):
        raise ShareLinkError("share token does not hold an invoice")

    base = defaults.model_dump(mode="json", by_alias=True) if defaults else {}
    try:
        return InvoiceDraft.model_validate({**base, **data})
    except ValidationError as exc:
        raise ShareLinkError(f"share token holds an invalid invoice: {exc}") from exc


def build_share_url(draft: InvoiceDraft, settings: Settings) -> str:
    base_url = settings.share_base_url.split("?")[0].split("#")[0]
    url = f"{base_url}#data={encode_draft(draft)}"
    if len(url) > settings.share_url_limit:
        raise ShareLinkError(
            f"Invoice is too large to share via link (limit: {settings.share_url_limit} characters)"
        )
    logger.debug("Built share link of %d characters", len(url))
    return url


def token_from_url(url: str) -> str:
    """Pull the ``data`` parameter out of a share link's fragment or query."""
    parts = urlsplit(url)
    for section in (parts.fragment, parts.query):
        values = parse_qs(section, keep_blank_values=False).get("data")
        if values:
            return values[0]
    raise ShareLinkError("link has no 'data' parameter")
