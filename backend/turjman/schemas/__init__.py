"""Pydantic schemas package."""

from turjman.schemas.payment import PayRequest, PayResponse, VerifyResponse
from turjman.schemas.receipt import (
    NO_TX,
    Receipt,
    ReceiptLogRequest,
    ReceiptStatus,
    ReceiptView,
)
from turjman.schemas.service import ServiceListResponse, ServicePublic

__all__ = [
    # Payment schemas
    "PayRequest",
    "PayResponse",
    "VerifyResponse",
    # Receipt schemas
    "NO_TX",
    "Receipt",
    "ReceiptLogRequest",
    "ReceiptStatus",
    "ReceiptView",
    # Service schemas
    "ServiceListResponse",
    "ServicePublic",
]
