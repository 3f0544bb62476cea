"""Service catalog endpoint."""

from fastapi import APIRouter

from turjman.core.catalog import SERVICES
from turjman.schemas.service import ServiceListResponse, ServicePublic

router = APIRouter()


@router.get("/services", response_model=ServiceListResponse, response_model_by_alias=True)
async def list_services():
    """List the fixed service catalog."""
    return ServiceListResponse(items=[
        ServicePublic(
            id=service.id,
            label=service.label,
            price_usdc=float(service.price_usdc),
            partner_id=service.partner_id,
        )
        for service in SERVICES
    ])
