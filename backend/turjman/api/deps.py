"""API dependencies giving routers access to the app-owned state."""

from typing import Optional

from fastapi import Request

from turjman.config import Settings
from turjman.core.ratelimit import RateLimiter, client_key
from turjman.schemas.receipt import ReceiptStatus
from turjman.services.chain_service import ReceiptOverrides
from turjman.services.payment_service import PaymentService
from turjman.services.receipt_presenter import ReceiptPresenter
from turjman.services.receipt_store import ReceiptStore
from turjman.services.verification_service import VerificationService


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_receipt_store(request: Request) -> ReceiptStore:
    return request.app.state.receipt_store


def get_rate_limiter(request: Request) -> RateLimiter:
    return request.app.state.rate_limiter


def get_verification_service(request: Request) -> VerificationService:
    return request.app.state.verifier


def get_payment_service(request: Request) -> PaymentService:
    return request.app.state.payments


def get_presenter(request: Request) -> ReceiptPresenter:
    return request.app.state.presenter


def assert_allowed(request: Request) -> None:
    """
    Take one token from the caller's bucket.

    Raises:
        RateLimitExceeded: If the bucket is empty
    """
    get_rate_limiter(request).check(client_key(request))


def build_overrides(
    service_id: Optional[str] = None,
    service_label: Optional[str] = None,
    partner: Optional[str] = None,
    network: Optional[str] = None,
    status: Optional[str] = None
) -> ReceiptOverrides:
    """
    Collect receipt presentation overrides from query parameters.

    Raises:
        ValueError: If ``status`` is not a known receipt status
    """
    return ReceiptOverrides(
        service_id=service_id or None,
        service_label=service_label or None,
        partner=partner or None,
        network=network or None,
        status=ReceiptStatus(status) if status else None,
    )
