"""Receipt schemas."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, ClassVar, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

NO_TX = "(none)"


class ReceiptStatus(str, Enum):
    """Receipt status enum."""
    VERIFIED = "Verified"
    PENDING = "Pending"
    FAILED = "Failed"


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class Receipt(BaseModel):
    """Durable record of a verified or failed payment, keyed by ``tx``."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    tx: str
    amount_usdc: Optional[str] = Field(None, alias="amountUSDC")
    service: Optional[str] = None
    service_id: Optional[str] = Field(None, alias="serviceId")
    service_label: Optional[str] = Field(None, alias="serviceLabel")
    partner: Optional[str] = None
    partner_usdc: Optional[float] = Field(None, alias="partnerUSDC")
    platform_usdc: Optional[float] = Field(None, alias="platformUSDC")
    split_mode: Optional[str] = Field(None, alias="splitMode")
    network: str = "Arc Testnet"
    status: ReceiptStatus = ReceiptStatus.VERIFIED
    reason: Optional[str] = None
    trust_score: Optional[int] = Field(None, alias="trustScore")
    explorer_url: str = Field("", alias="explorerUrl")
    pdf_url: str = Field("", alias="pdfUrl")
    created_at: str = Field(default_factory=utc_now_iso, alias="createdAt")

    @field_validator("amount_usdc", mode="before")
    @classmethod
    def amount_as_string(cls, v: Any) -> Any:
        """Older records stored the amount as a JSON number."""
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    def to_record(self) -> Dict[str, Any]:
        """JSON-ready dict using the wire field names."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ReceiptLogRequest(BaseModel):
    """Body of ``POST /api/receipts/log``; required fields are checked by the route."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    tx: Optional[str] = None
    amount_usdc: Optional[str] = Field(None, alias="amountUSDC")
    service: Optional[str] = None
    service_id: Optional[str] = Field(None, alias="serviceId")
    service_label: Optional[str] = Field(None, alias="serviceLabel")
    partner: Optional[str] = None
    partner_usdc: Optional[float] = Field(None, alias="partnerUSDC")
    platform_usdc: Optional[float] = Field(None, alias="platformUSDC")
    split_mode: Optional[str] = Field(None, alias="splitMode")
    network: Optional[str] = None
    status: Optional[ReceiptStatus] = None
    trust_score: Optional[int] = Field(None, alias="trustScore")
    explorer_url: Optional[str] = Field(None, alias="explorerUrl")
    pdf_url: Optional[str] = Field(None, alias="pdfUrl")

    REQUIRED: ClassVar[Tuple[str, ...]] = (
        "tx", "amountUSDC", "serviceLabel", "explorerUrl", "pdfUrl", "serviceId"
    )

    @field_validator("amount_usdc", mode="before")
    @classmethod
    def amount_as_string(cls, v: Any) -> Any:
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    def missing_field(self) -> Optional[str]:
        """Wire name of the first required field that is empty, if any."""
        values = self.model_dump(by_alias=True)
        for key in self.REQUIRED:
            if not values.get(key):
                return key
        return None


class ReceiptView(BaseModel):
    """Public JSON view of a stored receipt."""

    model_config = ConfigDict(populate_by_name=True)

    tx_hash: str = Field(..., alias="txHash")
    service: str
    partner: str
    amount: str
    network: str
    status: str
    explorer_url: str = Field(..., alias="explorerUrl")
    qr_url: str = Field(..., alias="qrUrl")
    pdf_url: str = Field(..., alias="pdfUrl")
