"""Pydantic schemas for the service catalog."""

from typing import List

from pydantic import BaseModel, ConfigDict, Field


class ServicePublic(BaseModel):
    """Public catalog entry."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    label: str
    price_usdc: float = Field(..., alias="priceUSDC")
    partner_id: str = Field(..., alias="partnerId")


class ServiceListResponse(BaseModel):
    items: List[ServicePublic]
