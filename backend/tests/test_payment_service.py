"""Tests for custodial USDC payments."""

from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from turjman.core.context import ConfigurationError
from turjman.schemas.payment import PayRequest
from turjman.schemas.receipt import NO_TX, ReceiptStatus
from turjman.services.payment_service import (
    InsufficientBalanceError,
    PaymentError,
    PaymentService,
    PaymentValidationError,
    extract_tx_hash,
    record_failed_payment,
)
from turjman.services.receipt_store import ReceiptStore

from conftest import MERCHANT_ADDRESS, TX_HASH, chain_receipt, fake_payment_context


def service_with(settings, context) -> PaymentService:
    return PaymentService(settings, context_factory=lambda: context)


@pytest.mark.asyncio
async def test_successful_transfer(settings):
    ctx = fake_payment_context(balance=5_000_000)
    payments = service_with(settings, ctx)

    result = await payments.submit("1.00")

    assert result.tx_hash == TX_HASH
    assert result.explorer_url == f"https://testnet.arcscan.app/tx/{TX_HASH}"
    assert result.amount == Decimal("1.00")
    assert result.partner_usdc == Decimal("0.90")
    assert result.platform_usdc == Decimal("0.10")
    assert result.split_mode == "offchain-stub"

    ctx.token.functions.transfer.assert_called_once_with(MERCHANT_ADDRESS, 1_000_000)
    build_params = ctx.token.functions.transfer.return_value.build_transaction.call_args.args[0]
    assert build_params["nonce"] == 7
    assert build_params["chainId"] == 5042002
    ctx.web3.eth.send_raw_transaction.assert_awaited_once_with(b"signed")


@pytest.mark.asyncio
async def test_insufficient_balance_sends_nothing(settings):
    ctx = fake_payment_context(balance=500_000)
    payments = service_with(settings, ctx)

    with pytest.raises(InsufficientBalanceError) as exc:
        await payments.submit("1.00")

    assert exc.value.need == "1.00"
    assert exc.value.have == "0.5"
    ctx.token.functions.transfer.assert_not_called()
    ctx.web3.eth.send_raw_transaction.assert_not_called()


@pytest.mark.asyncio
@pytest.mark.parametrize("amount,message", [
    (None, "amountUSDC is required"),
    ("", "amountUSDC is required"),
    ("abc", "amountUSDC must be numeric"),
    ("0", "amountUSDC must be greater than zero"),
    ("-1", "amountUSDC must be greater than zero"),
])
async def test_invalid_amounts(settings, amount, message):
    ctx = fake_payment_context()
    with pytest.raises(PaymentValidationError) as exc:
        await service_with(settings, ctx).submit(amount)
    assert str(exc.value) == message
    ctx.token.functions.balanceOf.assert_not_called()


@pytest.mark.asyncio
async def test_over_precise_amount_is_rejected(settings):
    with pytest.raises(PaymentValidationError):
        await service_with(settings, fake_payment_context()).submit("1.0000001")


@pytest.mark.asyncio
async def test_reverted_transfer_raises(settings):
    ctx = fake_payment_context(receipt=chain_receipt(status=0))
    with pytest.raises(PaymentError):
        await service_with(settings, ctx).submit("1.00")


@pytest.mark.asyncio
async def test_missing_signer_key_is_configuration_error(settings):
    broken = settings.model_copy(update={"SERVICE_PRIVATE_KEY": ""})
    payments = PaymentService(broken)

    with pytest.raises(ConfigurationError) as exc:
        payments.ensure_ready()
    assert "SERVICE_PRIVATE_KEY" in str(exc.value)


def test_extract_tx_hash_order():
    assert extract_tx_hash(None) is None
    assert extract_tx_hash({"txHash": "0x2", "transactionHash": "0x3"}) == "0x2"
    assert extract_tx_hash({"hash": "0x1", "txHash": "0x2"}) == "0x1"
    assert extract_tx_hash({"transactionHash": b"\x03"}) == "0x03"


@pytest.mark.asyncio
async def test_record_failed_payment(store: ReceiptStore):
    request = PayRequest(
        amount_usdc="1.25",
        partner_id="attest-011",
        service_id="mofaic-attestation",
        service_label="Document Attestation"
    )

    saved = await record_failed_payment(store, request, "nonce too low", "Arc Testnet")

    assert saved.tx.startswith(f"{NO_TX}-")
    assert saved.status == ReceiptStatus.FAILED
    assert saved.reason == "nonce too low"
    assert saved.amount_usdc == "1.25"
    assert saved.partner == "attest-011"
    assert len(await store.list_receipts()) == 1


@pytest.mark.asyncio
async def test_record_failed_payment_without_request(store: ReceiptStore):
    saved = await record_failed_payment(store, None, "boom", "Arc Testnet")
    assert saved.amount_usdc == "0.00"


@pytest.mark.asyncio
async def test_record_failed_payment_never_raises(store: ReceiptStore):
    store.add = AsyncMock(side_effect=OSError("read-only"))
    assert await record_failed_payment(store, None, "boom", "Arc Testnet") is None
