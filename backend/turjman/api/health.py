"""Liveness endpoint."""

from fastapi import APIRouter, Depends

from turjman.api.deps import get_settings
from turjman.config import Settings
from turjman.core.catalog import SERVICES

router = APIRouter()


@router.get("/health")
async def health_check(settings: Settings = Depends(get_settings)):
    """Health check endpoint; never touches the chain."""
    return {
        "ok": True,
        "network": settings.DEFAULT_NETWORK,
        "usdcAddress": settings.USDC_ADDRESS,
        "services": len(SERVICES),
        "demo": settings.DEMO_MODE,
    }
