"""Application configuration management using Pydantic Settings."""

from typing import List, Optional
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
import json


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API
    API_PREFIX: str = "/api"

    # CORS
    CORS_ORIGINS: List[str] = ['http://localhost:3000']

    # Environment
    ENVIRONMENT: str = "development"
    DEMO_MODE: bool = False

    # Chain settings. Left empty here so the app can boot without them; the
    # chain-facing services validate them on first use.
    ARC_RPC_URL: str = ""
    ARC_CHAIN_ID: Optional[int] = None
    ARC_EXPLORER_BASE: str = "https://testnet.arcscan.app"
    USDC_ADDRESS: str = ""
    USDC_DECIMALS: Optional[int] = None
    MERCHANT_ADDRESS: str = ""
    SERVICE_PRIVATE_KEY: str = ""  # Custodial signer for /api/pay (demo only)
    PAYMENT_TIMEOUT: int = 120  # Seconds to wait for the transfer to be mined

    # Receipts
    RECEIPTS_FILE: str = "data/receipts.json"
    QR_API_BASE: str = "https://quickchart.io/qr"
    QR_FETCH_TIMEOUT: float = 10.0

    # Rate limiting (token bucket per client IP)
    RATE_LIMIT_CAPACITY: int = 20
    RATE_LIMIT_REFILL_PER_SEC: float = 1.0

    # Demo defaults
    TRUST_SCORE_SEED: int = 84
    DEFAULT_NETWORK: str = "Arc Testnet"
    DEFAULT_PARTNER: str = "Turjman Group"
    DEFAULT_SERVICE_LABEL: str = "Legal Translation - MOFA"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v) -> List[str]:
        """Parse CORS_ORIGINS from JSON string to list."""
        if isinstance(v, str):
            return json.loads(v)
        return v

    @field_validator("ARC_CHAIN_ID", "USDC_DECIMALS", mode="before")
    @classmethod
    def empty_as_none(cls, v):
        """Treat blank numeric env vars as unset."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("ARC_EXPLORER_BASE", "QR_API_BASE")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @property
    def chain_id(self) -> Optional[int]:
        """Configured chain id, ignoring non-positive values."""
        if self.ARC_CHAIN_ID and self.ARC_CHAIN_ID > 0:
            return self.ARC_CHAIN_ID
        return None


def get_settings() -> Settings:
    """Build settings from the current environment."""
    return Settings()
