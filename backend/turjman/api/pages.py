"""Human-facing receipt page."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import HTMLResponse

from turjman.api.deps import build_overrides, get_presenter, get_verification_service
from turjman.core.explorer import normalize_tx_hash
from turjman.services.receipt_presenter import ReceiptPresenter
from turjman.services.verification_service import VerificationService

logger = logging.getLogger(__name__)
router = APIRouter()

UNAVAILABLE = "Receipt unavailable. Please refresh or verify again."


@router.get("/receipts/{tx}", response_class=HTMLResponse)
async def receipt_page(
    tx: str,
    service_id: Optional[str] = Query(None, alias="serviceId"),
    service_label: Optional[str] = Query(None, alias="serviceLabel"),
    partner: Optional[str] = Query(None),
    network: Optional[str] = Query(None),
    status_label: Optional[str] = Query(None, alias="status"),
    verifier: VerificationService = Depends(get_verification_service),
    presenter: ReceiptPresenter = Depends(get_presenter)
):
    """
    Render a stored receipt.

    A receipt that is not stored yet triggers one verification attempt,
    after which the page either renders it or explains why it cannot.
    """
    canonical = normalize_tx_hash(tx)
    if not canonical:
        return HTMLResponse(
            presenter.message_html(
                "Invalid transaction hash",
                "Invalid transaction hash. Please check the link and try again."
            ),
            status_code=status.HTTP_400_BAD_REQUEST
        )

    try:
        receipt = await verifier.store.get(canonical)
    except Exception as e:
        logger.error(f"Receipt lookup failed for {canonical}: {e}", exc_info=True)
        return HTMLResponse(
            presenter.message_html("Receipt unavailable", UNAVAILABLE),
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
        )

    message = UNAVAILABLE

    if receipt is None:
        try:
            overrides = build_overrides(service_id, service_label, partner, network, status_label)
            outcome = await verifier.verify_and_record(canonical, overrides)
            if outcome.result.ok:
                receipt = outcome.result.receipt
            elif outcome.result.message:
                message = f"{outcome.result.message} {UNAVAILABLE}"
        except Exception as e:
            logger.warning(f"Verification from receipt page failed for {canonical}: {e}")

    if receipt is None:
        return HTMLResponse(
            presenter.message_html("Receipt unavailable", message),
            status_code=status.HTTP_404_NOT_FOUND,
            headers={"Cache-Control": "no-store"}
        )

    view = presenter.view(receipt, canonical)
    return HTMLResponse(presenter.html(view), headers={"Cache-Control": "no-store"})
