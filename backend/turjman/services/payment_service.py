"""Payment service: custodial USDC transfers to the merchant wallet."""

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Optional

from web3 import AsyncHTTPProvider, AsyncWeb3

from turjman.config import Settings
from turjman.core.context import (
    CachedContext,
    ConfigurationError,
    checksum_address,
    require_settings,
    token_decimals,
)
from turjman.core.explorer import get_explorer_url, hash_to_str, normalize_tx_hash
from turjman.core.split import DEFAULT_SPLIT, Split, calc_split
from turjman.core.units import format_units, parse_units
from turjman.schemas.payment import PayRequest
from turjman.schemas.receipt import NO_TX, Receipt, ReceiptStatus
from turjman.services.receipt_store import ReceiptStore

logger = logging.getLogger(__name__)

REQUIRED_ENV = (
    "ARC_RPC_URL",
    "SERVICE_PRIVATE_KEY",
    "MERCHANT_ADDRESS",
    "USDC_ADDRESS",
    "USDC_DECIMALS",
)

SPLIT_MODE = "offchain-stub"

# ERC20 ABI for transfers and balance checks
ERC20_ABI = [
    {
        "constant": False,
        "inputs": [
            {"name": "to", "type": "address"},
            {"name": "value", "type": "uint256"}
        ],
        "name": "transfer",
        "outputs": [{"name": "", "type": "bool"}],
        "stateMutability": "nonpayable",
        "type": "function"
    },
    {
        "constant": True,
        "inputs": [{"name": "owner", "type": "address"}],
        "name": "balanceOf",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function"
    }
]


class PaymentValidationError(Exception):
    """Raised for a bad payment request (HTTP 400)."""


class InsufficientBalanceError(Exception):
    """Raised when the signer holds less than the requested amount."""

    def __init__(self, need: str, have: str):
        self.need = need
        self.have = have
        super().__init__(f"Insufficient tUSDC balance on signer: need {need}, have {have}")


class PaymentError(Exception):
    """Raised when the transfer was sent but did not succeed."""


@dataclass(frozen=True)
class PaymentContext:
    web3: Any
    account: Any
    token: Any
    merchant_address: str
    usdc_decimals: int
    chain_id: Optional[int] = None

    @property
    def signer_address(self) -> str:
        return self.account.address


def build_payment_context(settings: Settings, web3: Any = None) -> PaymentContext:
    """
    Validate payment settings and load the custodial signer.

    Raises:
        ConfigurationError: If a required setting is missing or invalid
    """
    require_settings(settings, REQUIRED_ENV)
    merchant_address = checksum_address("MERCHANT_ADDRESS", settings.MERCHANT_ADDRESS)
    usdc_address = checksum_address("USDC_ADDRESS", settings.USDC_ADDRESS)
    usdc_decimals = token_decimals(settings)

    if web3 is None:
        web3 = AsyncWeb3(AsyncHTTPProvider(settings.ARC_RPC_URL))

    try:
        account = web3.eth.account.from_key(settings.SERVICE_PRIVATE_KEY)
    except (ValueError, TypeError) as e:
        raise ConfigurationError(f"SERVICE_PRIVATE_KEY is not a valid private key: {e}")

    token = web3.eth.contract(address=usdc_address, abi=ERC20_ABI)

    logger.info(f"Payment signer loaded: {account.address} → merchant {merchant_address}")
    return PaymentContext(
        web3=web3,
        account=account,
        token=token,
        merchant_address=merchant_address,
        usdc_decimals=usdc_decimals,
        chain_id=settings.chain_id,
    )


def extract_tx_hash(response: Any) -> Optional[str]:
    """First hash found under ``hash``, ``txHash`` or ``transactionHash``."""
    if not response:
        return None
    for field in ("hash", "txHash", "transactionHash"):
        value = hash_to_str(response.get(field))
        if value:
            return value
    return None


@dataclass
class PaymentResult:
    tx_hash: Optional[str]
    explorer_url: Optional[str]
    amount: Decimal
    partner_usdc: Decimal
    platform_usdc: Decimal
    split_mode: str = SPLIT_MODE


class PaymentService:
    """Move USDC from the custodial signer to the merchant wallet."""

    def __init__(
        self,
        settings: Settings,
        web3: Any = None,
        context_factory: Optional[Callable[[], PaymentContext]] = None,
        split: Split = DEFAULT_SPLIT
    ):
        self.settings = settings
        self.split = split
        self._context = CachedContext(
            context_factory or (lambda: build_payment_context(settings, web3))
        )

    @property
    def context(self) -> PaymentContext:
        return self._context.get()

    def ensure_ready(self) -> None:
        """Raise ConfigurationError now if the payment settings are unusable."""
        self._context.get()

    def validate_amount(self, amount_usdc: Optional[str], decimals: int) -> tuple[Decimal, int]:
        """
        Parse the requested amount into a Decimal and raw token units.

        Raises:
            PaymentValidationError: If the amount is missing, non-numeric,
                not positive or too precise for the token
        """
        if not amount_usdc:
            raise PaymentValidationError("amountUSDC is required")
        try:
            amount = Decimal(amount_usdc.strip())
        except InvalidOperation:
            raise PaymentValidationError("amountUSDC must be numeric")
        if not amount.is_finite():
            raise PaymentValidationError("amountUSDC must be numeric")
        if amount <= 0:
            raise PaymentValidationError("amountUSDC must be greater than zero")
        try:
            raw = parse_units(amount_usdc, decimals)
        except ValueError as e:
            raise PaymentValidationError(str(e))
        return amount, raw

    async def submit(self, amount_usdc: Optional[str]) -> PaymentResult:
        """
        Transfer ``amount_usdc`` to the merchant and wait for it to be mined.

        Args:
            amount_usdc: Decimal string amount in USDC

        Returns:
            PaymentResult with the transaction hash and revenue split

        Raises:
            ConfigurationError: If payment settings are missing or invalid
            PaymentValidationError: If the amount is invalid
            InsufficientBalanceError: If the signer cannot cover the amount
            PaymentError: If the transfer reverted
        """
        ctx = self.context
        amount, raw_amount = self.validate_amount(amount_usdc, ctx.usdc_decimals)

        signer = ctx.signer_address
        balance = await ctx.token.functions.balanceOf(signer).call()
        if balance < raw_amount:
            have = format_units(balance, ctx.usdc_decimals)
            logger.warning(f"Signer {signer} balance too low: need {amount_usdc}, have {have}")
            raise InsufficientBalanceError(need=amount_usdc, have=have)

        partner_usdc, platform_usdc = calc_split(amount, self.split)

        logger.info(
            f"Submitting transfer of {amount} USDC from {signer} to {ctx.merchant_address} "
            f"(partner {partner_usdc}, platform {platform_usdc})"
        )

        tx_params = {
            "from": signer,
            "nonce": await ctx.web3.eth.get_transaction_count(signer),
        }
        if ctx.chain_id:
            tx_params["chainId"] = ctx.chain_id

        transfer_tx = await ctx.token.functions.transfer(
            ctx.merchant_address,
            raw_amount
        ).build_transaction(tx_params)

        signed = ctx.account.sign_transaction(transfer_tx)
        sent_hash = await ctx.web3.eth.send_raw_transaction(signed.raw_transaction)
        receipt = await ctx.web3.eth.wait_for_transaction_receipt(
            sent_hash, timeout=self.settings.PAYMENT_TIMEOUT
        )

        if receipt.get("status") != 1:
            raise PaymentError(f"USDC transfer failed on-chain: {hash_to_str(sent_hash)}")

        tx_hash = extract_tx_hash(receipt) or hash_to_str(sent_hash)
        tx_hash = normalize_tx_hash(tx_hash) or tx_hash
        explorer_url = get_explorer_url(tx_hash, self.settings.ARC_EXPLORER_BASE)

        logger.info(f"USDC transfer executed: {amount} USDC (tx: {tx_hash})")

        return PaymentResult(
            tx_hash=tx_hash,
            explorer_url=explorer_url,
            amount=amount,
            partner_usdc=partner_usdc,
            platform_usdc=platform_usdc,
        )


async def record_failed_payment(
    store: ReceiptStore,
    request: Optional[PayRequest],
    reason: str,
    network: str
) -> Optional[Receipt]:
    """
    Write a Failed receipt for an unsuccessful payment attempt.

    Never raises: a failure here is logged and must not mask the
    payment error being reported.
    """
    try:
        amount = request.amount_usdc if request and request.amount_usdc else "0.00"
        return await store.add(Receipt(
            tx=NO_TX,
            service=request.service_label if request else None,
            service_id=request.service_id if request else None,
            service_label=request.service_label if request else None,
            partner=request.partner_id if request else None,
            amount_usdc=amount,
            status=ReceiptStatus.FAILED,
            reason=reason,
            network=network,
        ))
    except Exception as log_error:
        logger.warning(f"Failed to log fallback receipt: {log_error}")
        return None
