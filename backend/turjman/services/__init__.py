"""Business logic services package."""

from turjman.services.chain_service import (
    ChainReceiptResolver,
    ChainReceiptResult,
    ReceiptOverrides,
)
from turjman.services.payment_service import PaymentService, record_failed_payment
from turjman.services.receipt_presenter import ReceiptPresenter
from turjman.services.receipt_store import ReceiptStore, ReceiptStoreCorrupted
from turjman.services.trust_service import TrustScoreTracker
from turjman.services.verification_service import VerificationService

__all__ = [
    # Chain verification
    "ChainReceiptResolver",
    "ChainReceiptResult",
    "ReceiptOverrides",
    "VerificationService",
    # Payments
    "PaymentService",
    "record_failed_payment",
    # Receipts
    "ReceiptPresenter",
    "ReceiptStore",
    "ReceiptStoreCorrupted",
    # Trust score
    "TrustScoreTracker",
]
