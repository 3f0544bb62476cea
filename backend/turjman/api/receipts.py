"""Receipts API router: lookup, PDF/HTML rendering, demo log and store health."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import HTMLResponse, JSONResponse, Response
from pydantic import ValidationError

from turjman.api.deps import (
    assert_allowed,
    get_presenter,
    get_receipt_store,
    get_settings,
)
from turjman.config import Settings
from turjman.core.catalog import find_service
from turjman.core.explorer import normalize_tx_hash
from turjman.core.ratelimit import RateLimitExceeded
from turjman.schemas.receipt import Receipt, ReceiptLogRequest, ReceiptStatus
from turjman.services.receipt_presenter import ReceiptPresenter
from turjman.services.receipt_store import ReceiptStore

logger = logging.getLogger(__name__)
router = APIRouter()

NO_STORE = {"Cache-Control": "no-store"}


def _error(status_code: int, error: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": error})


def apply_partner_fallback(receipt: Receipt, settings: Settings) -> Receipt:
    if receipt.partner:
        return receipt
    service = find_service(receipt.service_id)
    partner = service.partner_name if service else settings.DEFAULT_PARTNER
    return receipt.model_copy(update={"partner": partner})


@router.get("/receipts/health")
async def receipts_health(store: ReceiptStore = Depends(get_receipt_store)):
    """Strict read of the store so corruption shows up to operators."""
    try:
        receipts = await store.read_strict()
    except Exception as e:
        logger.warning(f"Receipts store corrupted: {e}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"ok": False, "error": str(e) or "Unknown error"}
        )
    return {"ok": True, "count": len(receipts)}


@router.get("/receipts/log")
async def list_logged_receipts(
    settings: Settings = Depends(get_settings),
    store: ReceiptStore = Depends(get_receipt_store)
):
    """List every stored receipt (non-production only)."""
    if settings.is_production:
        return _error(status.HTTP_404_NOT_FOUND, "not-available")
    items = [apply_partner_fallback(r, settings).to_record() for r in await store.list_receipts()]
    return {"items": items}


@router.post("/receipts/log")
async def log_receipt(
    request: Request,
    settings: Settings = Depends(get_settings),
    store: ReceiptStore = Depends(get_receipt_store)
):
    """Store a receipt directly (non-production only)."""
    if settings.is_production:
        return _error(status.HTTP_404_NOT_FOUND, "not-available")

    try:
        assert_allowed(request)
        body = ReceiptLogRequest.model_validate(await request.json())
    except RateLimitExceeded:
        return _error(status.HTTP_429_TOO_MANY_REQUESTS, "Rate limit exceeded")
    except (ValidationError, ValueError) as e:
        return _error(status.HTTP_400_BAD_REQUEST, str(e) or "Bad request")

    missing = body.missing_field()
    if missing:
        return _error(status.HTTP_400_BAD_REQUEST, f"Missing {missing}")

    receipt = apply_partner_fallback(Receipt(
        tx=body.tx,
        amount_usdc=body.amount_usdc,
        service=body.service or body.service_label,
        service_id=body.service_id,
        service_label=body.service_label,
        partner=body.partner,
        explorer_url=body.explorer_url,
        pdf_url=body.pdf_url,
        network=body.network or settings.DEFAULT_NETWORK,
        status=body.status or ReceiptStatus.VERIFIED,
        trust_score=body.trust_score,
        partner_usdc=body.partner_usdc,
        platform_usdc=body.platform_usdc,
        split_mode=body.split_mode,
    ), settings)

    saved = await store.add(receipt)
    return saved.to_record()


@router.get("/receipts/{tx}")
async def get_receipt(
    tx: str,
    output_format: Optional[str] = Query(None, alias="format"),
    store: ReceiptStore = Depends(get_receipt_store),
    presenter: ReceiptPresenter = Depends(get_presenter)
):
    """
    Fetch a stored receipt as JSON (default), ``?format=pdf`` or ``?format=html``.
    """
    canonical = normalize_tx_hash(tx)
    if not canonical:
        return _error(status.HTTP_400_BAD_REQUEST, "invalid-tx")

    try:
        receipt = await store.get(canonical)
    except Exception as e:
        logger.error(f"Receipt lookup failed for {canonical}: {e}", exc_info=True)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "internal-error")

    if receipt is None:
        return _error(status.HTTP_404_NOT_FOUND, "not-found")

    view = presenter.view(receipt, canonical)
    wanted = (output_format or "").lower()

    if wanted == "pdf":
        try:
            pdf_bytes = await presenter.pdf(view)
        except Exception as e:
            logger.error(f"PDF build failed for {canonical}: {e}", exc_info=True)
            return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "internal-error")
        return Response(
            content=pdf_bytes,
            media_type="application/pdf",
            headers={
                "Content-Disposition": f"attachment; filename=smart-turjman-receipt-{canonical}.pdf",
                **NO_STORE,
            }
        )

    if wanted == "html":
        return HTMLResponse(presenter.html(view), headers=NO_STORE)

    return JSONResponse(content=view.model_dump(by_alias=True), headers=NO_STORE)
