"""Static service catalog."""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Tuple


@dataclass(frozen=True)
class ServiceItem:
    id: str
    label: str
    partner_id: str
    price_usdc: Decimal
    service_label: Optional[str] = None
    partner: Optional[str] = None
    partner_address: str = ""
    default_trust_score: Optional[int] = None

    @property
    def display_label(self) -> str:
        return self.service_label or self.label

    @property
    def partner_name(self) -> str:
        return self.partner or self.partner_id


SERVICES: Tuple[ServiceItem, ...] = (
    ServiceItem(
        id="mofa-legal-translation",
        label="Legal Translation — MOFA",
        service_label="Legal Translation — MOFA",
        partner_id="translator-023",
        price_usdc=Decimal("1.00"),
        default_trust_score=84,
    ),
    ServiceItem(
        id="mofaic-attestation",
        label="Document Attestation — MOFAIC",
        service_label="Document Attestation — MOFAIC",
        partner_id="attest-011",
        price_usdc=Decimal("1.25"),
        default_trust_score=82,
    ),
    ServiceItem(
        id="public-prosecution",
        label="Public Prosecution Assistance",
        service_label="Public Prosecution Assistance",
        partner_id="legal-008",
        price_usdc=Decimal("0.75"),
        default_trust_score=83,
    ),
    ServiceItem(
        id="business-setup-ded",
        label="Business Setup — DED",
        service_label="Business Setup — DED",
        partner_id="biz-021",
        price_usdc=Decimal("1.00"),
        default_trust_score=85,
    ),
    ServiceItem(
        id="golden-visa",
        label="Golden Visa Application",
        service_label="Golden Visa Application",
        partner_id="gov-007",
        price_usdc=Decimal("1.00"),
        default_trust_score=86,
    ),
)


def find_service(service_id: Optional[str]) -> Optional[ServiceItem]:
    if not service_id:
        return None
    for service in SERVICES:
        if service.id == service_id:
            return service
    return None
