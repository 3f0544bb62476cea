"""File-backed receipt store keyed by normalized transaction hash."""

import asyncio
import json
import logging
import os
import secrets
import tempfile
import time
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from pydantic import ValidationError

from turjman.core.explorer import normalize_tx_hash
from turjman.schemas.receipt import NO_TX, Receipt

logger = logging.getLogger(__name__)

ReceiptMap = Dict[str, Dict[str, Any]]


class ReceiptStoreCorrupted(Exception):
    """Raised when the backing document cannot be parsed."""


def receipt_key(tx: Optional[str]) -> str:
    """Store key for a tx value: the normalized hash, else the lower-cased string."""
    if not tx:
        return ""
    return normalize_tx_hash(tx) or tx.strip().lower()


def to_receipt_map(raw: Any) -> ReceiptMap:
    """
    Coerce a parsed document into a hash-keyed mapping.

    Legacy documents are a list of receipts; later entries win when two
    share a hash.
    """
    if not raw:
        return {}
    if isinstance(raw, list):
        mapping: ReceiptMap = {}
        for entry in raw:
            if isinstance(entry, dict) and isinstance(entry.get("tx"), str):
                key = receipt_key(entry["tx"])
                mapping[key] = {**entry, "tx": key}
        return mapping
    if isinstance(raw, dict):
        return raw
    raise ReceiptStoreCorrupted("Receipts store is malformed.")


class ReceiptStore:
    """
    Durable tx-hash → receipt mapping persisted as one JSON document.

    Writes go through a single asyncio lock so read-modify-write cycles never
    interleave inside the process. Each write lands in a unique temp file in
    the same directory and is renamed over the document. There is no
    cross-process locking.
    """

    def __init__(self, path: str):
        self.path = Path(path)
        self._write_lock = asyncio.Lock()

    def _ensure_file(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        if not self.path.exists():
            self.path.write_text("{}", encoding="utf-8")

    def _read_map(self) -> ReceiptMap:
        self._ensure_file()
        raw = self.path.read_text(encoding="utf-8")
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ReceiptStoreCorrupted(f"Receipts store is not valid JSON: {e}") from e
        return to_receipt_map(parsed)

    def _write_map(self, mapping: ReceiptMap) -> None:
        tmp_fd, tmp_path = tempfile.mkstemp(
            dir=str(self.path.parent), prefix="receipts.tmp.", suffix=".json"
        )
        try:
            with os.fdopen(tmp_fd, "w", encoding="utf-8") as f:
                json.dump(mapping, f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self.path)
        except Exception:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise

    async def _mutate(self, mutator: Callable[[ReceiptMap], ReceiptMap]) -> ReceiptMap:
        def run() -> ReceiptMap:
            updated = mutator(self._read_map())
            self._write_map(updated)
            return updated

        async with self._write_lock:
            return await asyncio.to_thread(run)

    async def add(self, receipt: Receipt) -> Receipt:
        """
        Insert or overwrite the receipt for ``receipt.tx``.

        The ``(none)`` sentinel gets a unique synthetic key so failed
        submissions never overwrite each other.
        """
        key = receipt_key(receipt.tx)
        if not key or receipt.tx == NO_TX:
            key = f"{NO_TX}-{int(time.time() * 1000)}-{secrets.token_hex(6)}"

        record = receipt.model_copy(update={"tx": key})
        payload = record.to_record()

        def upsert(current: ReceiptMap) -> ReceiptMap:
            current[key] = payload
            return current

        updated = await self._mutate(upsert)
        idx = list(updated).index(key)
        logger.info(f"RECEIPT_SAVED tx_hash={key} idx={idx}")
        return record

    async def _load(self) -> ReceiptMap:
        return await asyncio.to_thread(self._read_map)

    async def get(self, tx: str) -> Optional[Receipt]:
        """Stored receipt for ``tx`` or None. Corruption is raised."""
        record = (await self._load()).get(receipt_key(tx))
        if record is None:
            return None
        try:
            return Receipt.model_validate(record)
        except ValidationError as e:
            raise ReceiptStoreCorrupted(f"Invalid receipt record for {tx}: {e}") from e

    async def read_strict(self) -> List[Receipt]:
        """All receipts; raises ReceiptStoreCorrupted on a bad document or record."""
        mapping = await self._load()
        try:
            return [Receipt.model_validate(r) for r in mapping.values()]
        except ValidationError as e:
            raise ReceiptStoreCorrupted(f"Receipts store holds an invalid record: {e}") from e

    async def list_receipts(self) -> List[Receipt]:
        """
        All readable receipts.

        An unreadable document yields an empty list; a single bad record is
        skipped with a warning and the rest are still returned.
        """
        try:
            mapping = await self._load()
        except (ReceiptStoreCorrupted, OSError) as e:
            logger.warning(f"Failed to parse receipts store {self.path}: {e}")
            return []

        receipts = []
        for key, record in mapping.items():
            try:
                receipts.append(Receipt.model_validate(record))
            except ValidationError as e:
                logger.warning(f"Skipping invalid receipt record {key}: {e}")
        return receipts
