"""Chain service for resolving token transfers into receipts."""

import logging
from dataclasses import dataclass
from typing import Any, Optional, Tuple
from urllib.parse import quote, urlencode

from web3 import AsyncHTTPProvider, AsyncWeb3, Web3
from web3.exceptions import TransactionNotFound

from turjman.config import Settings
from turjman.core.catalog import find_service
from turjman.core.context import (
    CachedContext,
    checksum_address,
    require_settings,
    token_decimals,
)
from turjman.core.explorer import build_explorer_tx_url, hash_to_str, normalize_tx_hash
from turjman.core.units import format_units
from turjman.schemas.receipt import Receipt, ReceiptStatus

logger = logging.getLogger(__name__)

REQUIRED_ENV = ("ARC_RPC_URL", "USDC_ADDRESS", "MERCHANT_ADDRESS", "USDC_DECIMALS")

TRANSFER_TOPIC = bytes(Web3.keccak(text="Transfer(address,address,uint256)"))

PENDING_MESSAGE = "Transaction not indexed yet. Try again in a few seconds."
REVERTED_MESSAGE = "Transaction reverted on-chain."
NOT_FOUND_MESSAGE = "USDC transfer to the merchant wallet was not found in this transaction."


@dataclass(frozen=True)
class ChainVerificationContext:
    web3: Any
    usdc_address: str
    merchant_address: str
    usdc_decimals: int


def build_verification_context(settings: Settings, web3: Any = None) -> ChainVerificationContext:
    """
    Validate chain settings and connect a web3 client.

    Raises:
        ConfigurationError: If a required setting is missing or invalid
    """
    require_settings(settings, REQUIRED_ENV)
    usdc_address = checksum_address("USDC_ADDRESS", settings.USDC_ADDRESS)
    merchant_address = checksum_address("MERCHANT_ADDRESS", settings.MERCHANT_ADDRESS)
    usdc_decimals = token_decimals(settings)

    if web3 is None:
        web3 = AsyncWeb3(AsyncHTTPProvider(settings.ARC_RPC_URL))

    logger.info(
        f"Chain verification ready: rpc={settings.ARC_RPC_URL}, "
        f"token={usdc_address}, merchant={merchant_address}, decimals={usdc_decimals}"
    )
    return ChainVerificationContext(
        web3=web3,
        usdc_address=usdc_address,
        merchant_address=merchant_address,
        usdc_decimals=usdc_decimals,
    )


@dataclass
class ReceiptOverrides:
    """Caller-supplied presentation values that win over catalog lookups."""
    service_id: Optional[str] = None
    service_label: Optional[str] = None
    partner: Optional[str] = None
    network: Optional[str] = None
    status: Optional[ReceiptStatus] = None


@dataclass
class ChainReceiptResult:
    """Outcome of a lookup: ``verified`` with a receipt, or ``pending``/``failed`` with a message."""
    status: str
    receipt: Optional[Receipt] = None
    message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == "verified"


def _as_bytes(value: Any) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if isinstance(value, str):
        return bytes.fromhex(value[2:] if value.startswith("0x") else value)
    raise ValueError(f"Unsupported log field type: {type(value).__name__}")


def decode_transfer_log(log: Any) -> Optional[Tuple[str, str, int]]:
    """
    Decode an ERC-20 Transfer log into ``(from, to, value)``.

    Returns None for logs of other events and raises ValueError for
    Transfer-signed logs whose topics or data are malformed.
    """
    topics = [_as_bytes(t) for t in log.get("topics") or []]
    if not topics or topics[0] != TRANSFER_TOPIC:
        return None
    data = _as_bytes(log.get("data") or b"")
    if len(topics) < 3 or len(topics[1]) != 32 or len(topics[2]) != 32 or len(data) < 32:
        raise ValueError("Malformed Transfer log")

    from_addr = Web3.to_checksum_address("0x" + topics[1][-20:].hex())
    to_addr = Web3.to_checksum_address("0x" + topics[2][-20:].hex())
    value = int.from_bytes(data[:32], "big")
    return from_addr, to_addr, value


class ChainReceiptResolver:
    """Look up a transaction receipt and turn a merchant transfer into a Receipt."""

    def __init__(self, settings: Settings, web3: Any = None):
        self.settings = settings
        self._context = CachedContext(lambda: build_verification_context(settings, web3))

    @property
    def context(self) -> ChainVerificationContext:
        return self._context.get()

    def ensure_ready(self) -> None:
        self._context.get()

    def find_merchant_transfer(self, logs: Any, context: ChainVerificationContext) -> Optional[int]:
        """Raw amount of the first token transfer to the merchant, or None."""
        token = context.usdc_address.lower()
        for log in logs or []:
            address = str(log.get("address") or "")
            if address.lower() != token:
                continue
            try:
                decoded = decode_transfer_log(log)
            except ValueError as e:
                logger.debug(f"Skipping undecodable log from {address}: {e}")
                continue
            if decoded is None:
                continue
            _, to_addr, value = decoded
            if to_addr == context.merchant_address:
                return value
        return None

    async def fetch_receipt(self, tx_hash: str, context: ChainVerificationContext) -> Optional[Any]:
        try:
            return await context.web3.eth.get_transaction_receipt(tx_hash)
        except TransactionNotFound:
            return None

    async def resolve(
        self,
        tx_hash: str,
        overrides: Optional[ReceiptOverrides] = None
    ) -> ChainReceiptResult:
        """
        Verify that ``tx_hash`` paid the merchant and build its receipt.

        Args:
            tx_hash: Transaction hash as supplied by the caller
            overrides: Presentation values (service, partner, network, status)

        Returns:
            ChainReceiptResult; ``pending`` means retry later

        Raises:
            ConfigurationError: If chain settings are missing or invalid
        """
        context = self.context
        overrides = overrides or ReceiptOverrides()
        trimmed = tx_hash.strip()

        logger.info(f"Resolving transaction {trimmed}")
        receipt = await self.fetch_receipt(trimmed, context)

        if not receipt:
            logger.info(f"Transaction {trimmed} not indexed yet")
            return ChainReceiptResult(status="pending", message=PENDING_MESSAGE)

        if receipt.get("status") != 1:
            logger.warning(f"Transaction reverted on-chain: tx_hash={trimmed}")
            return ChainReceiptResult(status="failed", message=REVERTED_MESSAGE)

        amount_raw = self.find_merchant_transfer(receipt.get("logs"), context)
        if amount_raw is None:
            logger.warning(f"No transfer to merchant found in tx_hash={trimmed}")
            return ChainReceiptResult(status="failed", message=NOT_FOUND_MESSAGE)

        amount_usdc = format_units(amount_raw, context.usdc_decimals)

        response_hash = (
            hash_to_str(receipt.get("transactionHash"))
            or hash_to_str(receipt.get("hash"))
            or hash_to_str(receipt.get("txHash"))
            or trimmed
        )
        canonical = normalize_tx_hash(response_hash) or response_hash.strip().lower()

        receipt_record = self.build_receipt(canonical, amount_usdc, overrides)
        logger.info(f"Transaction {canonical} verified: {amount_usdc} USDC to merchant")
        return ChainReceiptResult(status="verified", receipt=receipt_record)

    def build_receipt(self, tx: str, amount_usdc: str, overrides: ReceiptOverrides) -> Receipt:
        """Assemble the receipt, filling labels from overrides, then catalog, then defaults."""
        service = find_service(overrides.service_id)
        network = overrides.network or self.settings.DEFAULT_NETWORK
        status = overrides.status or ReceiptStatus.VERIFIED
        service_label = (
            overrides.service_label
            or (service.display_label if service else None)
            or self.settings.DEFAULT_SERVICE_LABEL
        )
        partner = (
            overrides.partner
            or (service.partner_name if service else None)
            or self.settings.DEFAULT_PARTNER
        )

        query = {}
        if overrides.service_id:
            query["serviceId"] = overrides.service_id
        query["serviceLabel"] = service_label
        query["partner"] = partner
        query["network"] = network
        query["status"] = status.value
        query["format"] = "pdf"
        pdf_url = f"/api/receipts/{quote(tx, safe='')}?{urlencode(query)}"

        return Receipt(
            tx=tx,
            service=service_label,
            service_id=overrides.service_id,
            service_label=service_label,
            partner=partner,
            amount_usdc=amount_usdc,
            network=network,
            status=status,
            explorer_url=build_explorer_tx_url(tx, self.settings.ARC_EXPLORER_BASE),
            pdf_url=pdf_url,
        )
