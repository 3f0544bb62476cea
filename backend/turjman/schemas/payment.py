"""Payment request and response schemas."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PayRequest(BaseModel):
    """Body of ``POST /api/pay``."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    amount_usdc: Optional[str] = Field(None, alias="amountUSDC")
    partner_id: Optional[str] = Field(None, alias="partnerId")
    service_id: Optional[str] = Field(None, alias="serviceId")
    service_label: Optional[str] = Field(None, alias="serviceLabel")

    @field_validator("amount_usdc", mode="before")
    @classmethod
    def amount_as_string(cls, v: Any) -> Any:
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v


class PayResponse(BaseModel):
    """Response after a successful transfer."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    tx_hash: Optional[str] = Field(None, alias="txHash")
    explorer_url: Optional[str] = Field(None, alias="explorerUrl")
    amount_usdc: float = Field(..., alias="amountUSDC")
    partner_usdc: float = Field(..., alias="partnerUSDC")
    platform_usdc: float = Field(..., alias="platformUSDC")
    split_mode: str = Field("offchain-stub", alias="splitMode")
    service_id: Optional[str] = Field(None, alias="serviceId")
    service_label: Optional[str] = Field(None, alias="serviceLabel")


class VerifyResponse(BaseModel):
    """Response after a transfer was found on-chain."""

    model_config = ConfigDict(populate_by_name=True)

    ok: bool = True
    status: str = "verified"
    service: str
    amount: str
    network: str
    trust_score_new: int = Field(..., alias="trustScoreNew")
    tx_hash: str = Field(..., alias="txHash")
    receipt_url: str = Field(..., alias="receiptUrl")
    pdf_url: str = Field(..., alias="pdfUrl")
    explorer_url: str = Field(..., alias="explorerUrl")
