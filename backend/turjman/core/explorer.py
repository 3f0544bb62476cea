"""Transaction hash normalization and explorer / QR link builders."""

import re
from typing import Any, Optional
from urllib.parse import urlencode

TX_HASH_PATTERN = re.compile(r"^0x[a-fA-F0-9]{64}$")


def normalize_tx_hash(value: Optional[str]) -> Optional[str]:
    """
    Normalize a transaction hash to lower-case ``0x`` + 64 hex chars.

    Returns None for anything that is not a well-formed hash.
    """
    if not value or not isinstance(value, str):
        return None
    trimmed = value.strip()
    if TX_HASH_PATTERN.match(trimmed):
        return trimmed.lower()
    return None


def build_explorer_tx_url(tx: str, base: str) -> str:
    return f"{base.rstrip('/')}/tx/{tx}"


def get_explorer_url(tx: Optional[str], base: str) -> Optional[str]:
    normalized = normalize_tx_hash(tx)
    if not normalized:
        return None
    return build_explorer_tx_url(normalized, base)


def build_qr_url(url: str, base: str, size: int = 240, margin: int = 1) -> str:
    """Image endpoint URL that renders ``url`` as a QR code PNG."""
    query = urlencode({"text": url, "size": size, "margin": margin})
    return f"{base}?{query}"


def hash_to_str(value: Any) -> Optional[str]:
    """Hex string for a hash returned by web3 (bytes/HexBytes or str)."""
    if value is None:
        return None
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    return str(value)
