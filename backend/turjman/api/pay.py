"""Payment submission endpoint."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from turjman.api.deps import (
    assert_allowed,
    get_payment_service,
    get_receipt_store,
    get_settings,
)
from turjman.config import Settings
from turjman.core.ratelimit import RateLimitExceeded
from turjman.schemas.payment import PayRequest, PayResponse
from turjman.services.payment_service import (
    InsufficientBalanceError,
    PaymentService,
    PaymentValidationError,
    record_failed_payment,
)
from turjman.services.receipt_store import ReceiptStore

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/pay", response_model=PayResponse)
async def pay(
    request: Request,
    settings: Settings = Depends(get_settings),
    store: ReceiptStore = Depends(get_receipt_store),
    payments: PaymentService = Depends(get_payment_service)
):
    """
    Pay for a service from the custodial signer.

    Any failure other than rate limiting or a bad request is recorded as a
    Failed receipt so the attempt stays auditable.
    """
    pay_request: Optional[PayRequest] = None

    try:
        assert_allowed(request)
        payments.ensure_ready()

        try:
            pay_request = PayRequest.model_validate(await request.json())
        except ValidationError:
            return JSONResponse(
                status_code=status.HTTP_400_BAD_REQUEST,
                content={"error": "Invalid payment request"}
            )

        logger.info(
            f"Payment request: amount={pay_request.amount_usdc}, "
            f"service={pay_request.service_id}, partner={pay_request.partner_id}"
        )

        result = await payments.submit(pay_request.amount_usdc)

        return PayResponse(
            tx_hash=result.tx_hash,
            explorer_url=result.explorer_url,
            amount_usdc=float(result.amount),
            partner_usdc=float(result.partner_usdc),
            platform_usdc=float(result.platform_usdc),
            split_mode=result.split_mode,
            service_id=pay_request.service_id,
            service_label=pay_request.service_label,
        )

    except RateLimitExceeded:
        return JSONResponse(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            content={"error": "Rate limit exceeded"}
        )
    except PaymentValidationError as e:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": str(e)}
        )
    except InsufficientBalanceError as e:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "error": "Insufficient tUSDC balance on signer",
                "need": e.need,
                "have": e.have,
            }
        )
    except Exception as e:
        message = str(e) or "Payment failed"
        logger.error(f"Payment failed: {message}", exc_info=True)
        await record_failed_payment(store, pay_request, message, settings.DEFAULT_NETWORK)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Payment failed", "reason": message}
        )
