"""JSON-file invoice store keyed by user id.

Saved records are snapshots: the full draft plus a freshly computed summary
for list views. Writes are serialised with a lock so two saves of the same
draft cannot interleave.
"""
from __future__ import annotations

import json
import logging
import threading
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from .config import Settings
from .drafts import with_summary
from .schemas import InvoiceDraft
from .validator import validate_draft

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """The invoice file could not be read or written."""


class DraftInvalidError(Exception):
    """A draft with blocking validation errors was offered for saving."""

    def __init__(self, errors: List[str]) -> None:
        super().__init__("; ".join(errors))
        self.errors = errors


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class InvoiceStore:
    def __init__(self, path: Path, user_id: Optional[str] = None) -> None:
        self.path = Path(path)
        self.user_id = user_id
        self._lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings: Settings) -> "InvoiceStore":
        return cls(settings.storage_path, user_id=settings.user_id)

    def current_user(self) -> Optional[str]:
        return self.user_id

    # Public API
    def save(self, draft: InvoiceDraft, user_id: str) -> str:
        errors = validate_draft(draft)
        if errors:
            raise DraftInvalidError(errors)

        with self._lock:
            records = self._read()
            stamp = _now()
            invoice_id = draft.id if draft.is_saved else self._new_id(records)
            created_at = draft.created_at or stamp
            owner = next((r.get("userId") for r in records if r.get("id") == invoice_id), user_id)
            if owner != user_id:
                # Someone else's invoice (e.g. opened from a share link) is saved as a new copy
                logger.info("Invoice %s belongs to another user; saving a copy", invoice_id)
                invoice_id = self._new_id(records)
                created_at = stamp
            snapshot = with_summary(draft).model_copy(
                update={
                    "id": invoice_id,
                    "user_id": user_id,
                    "created_at": created_at,
                    "updated_at": stamp,
                }
            )
            remaining = [r for r in records if r.get("id") != invoice_id]
            self._write([snapshot.model_dump(mode="json", by_alias=True)] + remaining)

        logger.info("Saved invoice %s for user %s", invoice_id, user_id)
        return invoice_id

    def list(self, user_id: str) -> List[InvoiceDraft]:
        drafts = []
        for record in self._read():
            if record.get("userId") != user_id:
                continue
            try:
                drafts.append(InvoiceDraft.model_validate(record))
            except ValidationError as exc:
                logger.warning("Skipping unreadable invoice %s: %s", record.get("id"), exc)
        drafts.sort(key=lambda d: d.updated_at or d.created_at or "", reverse=True)
        return drafts

    def get(self, invoice_id: str) -> Optional[InvoiceDraft]:
        for record in self._read():
            if record.get("id") == invoice_id:
                return InvoiceDraft.model_validate(record)
        return None

    def delete(self, invoice_id: str) -> bool:
        with self._lock:
            records = self._read()
            remaining = [r for r in records if r.get("id") != invoice_id]
            if len(remaining) == len(records):
                return False
            self._write(remaining)
        logger.info("Deleted invoice %s", invoice_id)
        return True

    # Internals
    def _new_id(self, records: List[dict]) -> str:
        taken = {r.get("id") for r in records}
        millis = int(time.time() * 1000)
        while f"inv-{millis}" in taken:
            millis += 1
        return f"inv-{millis}"

    def _read(self) -> List[dict]:
        if not self.path.exists():
            return []
        try:
            data = json.loads(self.path.read_text(encoding="utf-8") or "[]")
        except (OSError, ValueError) as exc:
            raise StorageError(f"cannot read {self.path}: {exc}") from exc
        if not isinstance(data, list):
            raise StorageError(f"{self.path} does not hold a list of invoices")
        return data

    def _write(self, records: List[dict]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self.path.with_suffix(self.path.suffix + ".tmp")
            tmp.write_text(json.dumps(records, indent=2), encoding="utf-8")
            tmp.replace(self.path)
        except OSError as exc:
            raise StorageError(f"cannot write {self.path}: {exc}") from exc
