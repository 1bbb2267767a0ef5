"""Local record and document storage for verified invoices."""

import json
import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..models.verification import InvoiceStatus

logger = logging.getLogger(__name__)

INVOICES_TABLE = "invoices"
ANALYSES_TABLE = "invoice_analyses"
DOCUMENTS_TABLE = "documents"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class FileStorage:
    """
    Local storage backend satisfying the persistence collaborator contract.

    Records are JSON files, one per row, under ``records_dir/<table>/``;
    document bytes live under ``documents_dir`` at their storage key.
    One file per row means concurrent inserts never touch the same file.

    Provides methods for:
    - Inserting invoice, analysis and document-metadata records
    - Uploading document bytes under a storage key
    - Reading invoices back for listing and detail views
    """

    def __init__(
        self,
        records_dir: str = "data/records",
        documents_dir: str = "data/documents"
    ):
        """
        Initialize FileStorage.

        Args:
            records_dir: Directory for JSON records
            documents_dir: Directory for uploaded document bytes
        """
        self.records_dir = Path(records_dir)
        self.documents_dir = Path(documents_dir)

        self._ensure_directories()

        logger.info(
            f"Initialized FileStorage: "
            f"records_dir={self.records_dir}, "
            f"documents_dir={self.documents_dir}"
        )

    def _ensure_directories(self) -> None:
        for directory in [
            self.records_dir / INVOICES_TABLE,
            self.records_dir / ANALYSES_TABLE,
            self.records_dir / DOCUMENTS_TABLE,
            self.documents_dir,
        ]:
            directory.mkdir(parents=True, exist_ok=True)

    # Record methods

    def _write_record(self, table: str, record: Dict[str, Any]) -> Dict[str, Any]:
        row = dict(record)
        row.setdefault("id", str(uuid.uuid4()))
        row.setdefault("created_at", _now_iso())

        path = self.records_dir / table / f"{row['id']}.json"
        tmp_path = path.with_suffix(".json.tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(row, f, indent=2, default=str)
        tmp_path.replace(path)

        logger.debug(f"Wrote {table} record {row['id']}")
        return row

    def _read_table(self, table: str) -> List[Dict[str, Any]]:
        rows = []
        for path in sorted((self.records_dir / table).glob("*.json")):
            with open(path, "r", encoding="utf-8") as f:
                rows.append(json.load(f))
        return rows

    def insert_invoice(self, record: Dict[str, Any]) -> Dict[str, Any]:
        """
        Insert an invoice summary record.

        Args:
            record: Invoice summary fields

        Returns:
            The stored row, including its assigned ``id``

        Raises:
            OSError: If the record cannot be written
        """
        row = self._write_record(INVOICES_TABLE, record)
        logger.info(f"Saved invoice record {row['id']} ({row.get('invoice_number')})")
        return row

    def insert_analysis(self, record: Dict[str, Any]) -> Dict[str, Any]:
        row = self._write_record(ANALYSES_TABLE, record)
        logger.info(f"Saved analysis record for invoice {row.get('invoice_id')}")
        return row

    def insert_document_metadata(self, record: Dict[str, Any]) -> Dict[str, Any]:
        return self._write_record(DOCUMENTS_TABLE, record)

    # Document methods

    def _document_path(self, key: str) -> Path:
        path = (self.documents_dir / key).resolve()
        if self.documents_dir.resolve() not in path.parents:
            raise ValueError(f"Storage key escapes documents directory: {key}")
        return path

    def upload_document(self, content: bytes, key: str) -> Dict[str, str]:
        """
        Store document bytes under a storage key.

        Args:
            content: File content as bytes
            key: Storage key, e.g. ``user-1/1700000000000-invoice.pdf``

        Returns:
            Dict with the stored ``path``

        Raises:
            OSError: If the file cannot be written
        """
        path = self._document_path(key)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "wb") as f:
            f.write(content)

        logger.info(f"Stored document: {key} ({len(content)} bytes)")
        return {"path": key}

    def load_document(self, key: str) -> bytes:
        path = self._document_path(key)
        if not path.exists():
            raise FileNotFoundError(f"Document not found: {key}")
        with open(path, "rb") as f:
            return f.read()

    # Read methods

    def get_invoice(self, invoice_id: str) -> Optional[Dict[str, Any]]:
        """
        Load an invoice with its analysis and document metadata.

        Returns:
            Dict with ``invoice``, ``analysis`` and ``documents``, or None if unknown
        """
        path = self.records_dir / INVOICES_TABLE / f"{invoice_id}.json"
        if not path.exists():
            return None

        with open(path, "r", encoding="utf-8") as f:
            invoice = json.load(f)

        analyses = [a for a in self._read_table(ANALYSES_TABLE) if a.get("invoice_id") == invoice_id]
        documents = [d for d in self._read_table(DOCUMENTS_TABLE) if d.get("invoice_id") == invoice_id]

        return {
            "invoice": invoice,
            "analysis": analyses[0] if analyses else None,
            "documents": documents,
        }

    def list_invoices(self, user_id: str) -> List[Dict[str, Any]]:
        """List a user's invoice records, newest first."""
        invoices = [row for row in self._read_table(INVOICES_TABLE) if row.get("user_id") == user_id]
        invoices.sort(key=lambda row: row.get("created_at", ""), reverse=True)
        return invoices

    def invoice_stats(self, user_id: str) -> Dict[str, int]:
        """Count a user's invoices by status."""
        stats = {"total": 0, **{status.value: 0 for status in InvoiceStatus}}
        for row in self.list_invoices(user_id):
            stats["total"] += 1
            status = row.get("status", InvoiceStatus.PENDING.value)
            if status in stats:
                stats[status] += 1
        return stats
