"""
JSON Data Dump Storage

DESIGN DECISION: Users can export all their documents into a single
JSON dump. Loading that dump read-only lets the accounting reports run
offline, without the live sync layer.

Dump format:
    {
        "identity": "...",
        "epoch": 1700000000000,
        "docList": [ {...doc...} | {"id": ..., "doc": {...doc...}} ]
    }

TRADEOFFS:
- Read-only: writes go through the real persistence layer
- The whole file is held in memory (fine for personal data)
"""

import json
from pathlib import Path
from typing import Any, Optional, Union

import structlog
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from cash_ledger.services.storage.interface import (
    DocumentStoreInterface,
    NotFoundError,
    StorageError,
)


logger = structlog.get_logger()


class TransientReadError(StorageError):
    """File could not be read right now (locked, on a flaky mount...)."""
    pass


class JsonBackupDocumentStore(DocumentStoreInterface):
    """
    Read-only document store backed by a JSON data dump.

    The file is read lazily on first access and kept in memory.
    """

    def __init__(self, path: Union[str, Path]):
        super().__init__()
        self._path = Path(path)
        self._docs: Optional[dict[str, dict[str, Any]]] = None

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type(TransientReadError),
        reraise=True,
    )
    def _read_file(self) -> str:
        """Read the dump, retrying transient I/O failures."""
        try:
            return self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise NotFoundError(f"Data dump not found: {self._path}")
        except OSError as e:
            raise TransientReadError(f"Failed to read data dump {self._path}: {e}")

    def _load(self) -> dict[str, dict[str, Any]]:
        if self._docs is not None:
            return self._docs

        raw = self._read_file()
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as e:
            raise StorageError(f"Data dump is not valid JSON: {e}")

        if isinstance(payload, list):
            rows = payload
        elif isinstance(payload, dict):
            rows = payload.get("docList", payload.get("docs", []))
        else:
            raise StorageError("Data dump must be a JSON object or list")

        docs = {}
        for row in rows:
            doc = row.get("doc", row) if isinstance(row, dict) else None
            if not isinstance(doc, dict) or not doc.get("_id"):
                continue
            docs[doc["_id"]] = doc

        logger.info(
            "data_dump_loaded",
            path=str(self._path),
            doc_count=len(docs),
        )
        self._docs = docs
        return docs

    async def list_by_collection(self, collection: str) -> list[dict[str, Any]]:
        return [
            json.loads(json.dumps(doc))
            for doc in self._load().values()
            if doc.get("$collection") == collection
        ]

    async def get_doc_by_id(self, doc_id: str) -> Optional[dict[str, Any]]:
        doc = self._load().get(doc_id)
        return json.loads(json.dumps(doc)) if doc is not None else None
