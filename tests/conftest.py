"""Shared fixtures for the test suite."""

import os
from collections.abc import Generator
from typing import Callable, Optional, Sequence

import pytest

from gst_invoice.schemas import InvoiceDraft, LineItem, Party

VALID_GSTIN = "27ABCDE1234F1Z5"


def _make_draft(
    seller_state: str = "Maharashtra",
    buyer_state: str = "Maharashtra",
    gst_enabled: bool = True,
    items: Optional[Sequence[LineItem]] = None,
    **overrides,
) -> InvoiceDraft:
    if items is None:
        items = [LineItem(description="Consulting Services", hsn="9983", qty=1, rate=1000, gst_rate=18)]
    fields = dict(
        invoice_number="INV-001",
        invoice_date="2024-04-01",
        seller=Party(name="Acme Traders", gstin=VALID_GSTIN, state=seller_state),
        buyer=Party(name="Sharma Traders", state=buyer_state),
        gst_enabled=gst_enabled,
        items=tuple(items),
    )
    fields.update(overrides)
    return InvoiceDraft(**fields)


@pytest.fixture
def make_draft() -> Callable[..., InvoiceDraft]:
    """Factory for valid drafts; keyword arguments override fields."""
    return _make_draft


@pytest.fixture
def clean_env() -> Generator[None, None, None]:
    """Clean GST_INVOICE_ environment variables before and after test."""
    original_env = dict(os.environ)
    for var in [k for k in os.environ if k.upper().startswith("GST_INVOICE_")]:
        del os.environ[var]
    yield
    os.environ.clear()
    os.environ.update(original_env)
