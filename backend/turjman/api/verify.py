"""On-chain payment verification endpoint."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse

from turjman.api.deps import assert_allowed, build_overrides, get_verification_service
from turjman.core.context import ConfigurationError
from turjman.core.ratelimit import RateLimitExceeded
from turjman.schemas.payment import VerifyResponse
from turjman.services.verification_service import VerificationService

logger = logging.getLogger(__name__)
router = APIRouter()


def _failed(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"status": "failed", "message": message})


@router.get("/verify", response_model=VerifyResponse)
async def verify_payment(
    request: Request,
    tx: Optional[str] = Query(None, description="Transaction hash"),
    tx_hash: Optional[str] = Query(None, alias="txHash"),
    transaction_hash: Optional[str] = Query(None, alias="transactionHash"),
    service_id: Optional[str] = Query(None, alias="serviceId"),
    service_label: Optional[str] = Query(None, alias="serviceLabel"),
    partner: Optional[str] = Query(None),
    network: Optional[str] = Query(None),
    status_label: Optional[str] = Query(None, alias="status"),
    verifier: VerificationService = Depends(get_verification_service)
):
    """
    Confirm that a transaction paid the merchant wallet and record its receipt.

    Returns 202 while the transaction is not indexed yet; callers poll again
    later. Each newly verified hash raises the demo trust score by one.
    """
    try:
        assert_allowed(request)
        verifier.resolver.ensure_ready()

        raw_tx = (tx or tx_hash or transaction_hash or "").strip()
        if not raw_tx:
            return _failed(status.HTTP_400_BAD_REQUEST, "Missing tx parameter.")

        try:
            overrides = build_overrides(service_id, service_label, partner, network, status_label)
        except ValueError:
            return _failed(status.HTTP_400_BAD_REQUEST, f"Invalid status: {status_label}")

        outcome = await verifier.verify_and_record(raw_tx, overrides)
        result = outcome.result

        if result.status == "pending":
            return JSONResponse(
                status_code=status.HTTP_202_ACCEPTED,
                content={"status": "pending", "message": result.message}
            )
        if not result.ok:
            return _failed(status.HTTP_400_BAD_REQUEST, result.message)

        receipt = result.receipt
        return VerifyResponse(
            service=receipt.service_label,
            amount=receipt.amount_usdc,
            network=receipt.network,
            trust_score_new=outcome.trust_score,
            tx_hash=receipt.tx,
            receipt_url=f"/receipts/{receipt.tx}",
            pdf_url=receipt.pdf_url,
            explorer_url=receipt.explorer_url,
        )

    except RateLimitExceeded:
        return _failed(status.HTTP_429_TOO_MANY_REQUESTS, "Rate limit exceeded")
    except ConfigurationError as e:
        logger.error(f"Verification unavailable: {e}")
        return _failed(status.HTTP_500_INTERNAL_SERVER_ERROR, str(e))
    except Exception as e:
        logger.error(f"Unexpected error verifying transaction: {e}", exc_info=True)
        return _failed(status.HTTP_500_INTERNAL_SERVER_ERROR, "Unexpected verification error.")
