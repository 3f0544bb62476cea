"""Pytest configuration and fixtures for testing."""

from typing import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from web3 import Web3

from turjman.config import Settings
from turjman.main import create_app
from turjman.services.chain_service import TRANSFER_TOPIC, ChainReceiptResolver
from turjman.services.payment_service import PaymentContext, PaymentService
from turjman.services.receipt_store import ReceiptStore


USDC_ADDRESS = Web3.to_checksum_address("0x" + "11" * 20)
MERCHANT_ADDRESS = Web3.to_checksum_address("0x" + "22" * 20)
SIGNER_ADDRESS = Web3.to_checksum_address("0x" + "33" * 20)
TX_HASH = "0x" + "ab" * 32


def address_topic(address: str) -> bytes:
    return b"\x00" * 12 + bytes.fromhex(address[2:])


def transfer_log(
    value: int,
    to: str = MERCHANT_ADDRESS,
    sender: str = SIGNER_ADDRESS,
    token: str = USDC_ADDRESS
) -> dict:
    """Receipt log entry for an ERC-20 Transfer event."""
    return {
        "address": token,
        "topics": [TRANSFER_TOPIC, address_topic(sender), address_topic(to)],
        "data": value.to_bytes(32, "big"),
    }


def chain_receipt(logs=None, status: int = 1, tx_hash: str = TX_HASH) -> dict:
    return {
        "status": status,
        "transactionHash": bytes.fromhex(tx_hash[2:]),
        "logs": logs or [],
    }


def fake_web3(receipt=None) -> MagicMock:
    """web3 stand-in whose ``eth.get_transaction_receipt`` returns ``receipt``."""
    web3 = MagicMock()
    web3.eth.get_transaction_receipt = AsyncMock(return_value=receipt)
    return web3


def fake_payment_context(
    balance: int = 10_000_000,
    receipt=None,
    decimals: int = 6
) -> PaymentContext:
    """Payment context with a mocked token contract and signer."""
    web3 = MagicMock()
    web3.eth.get_transaction_count = AsyncMock(return_value=7)
    web3.eth.send_raw_transaction = AsyncMock(return_value=bytes.fromhex(TX_HASH[2:]))
    web3.eth.wait_for_transaction_receipt = AsyncMock(
        return_value=receipt if receipt is not None else chain_receipt()
    )

    account = MagicMock()
    account.address = SIGNER_ADDRESS
    account.sign_transaction.return_value = MagicMock(raw_transaction=b"signed")

    token = MagicMock()
    token.functions.balanceOf.return_value.call = AsyncMock(return_value=balance)
    token.functions.transfer.return_value.build_transaction = AsyncMock(
        return_value={"to": USDC_ADDRESS, "data": "0x"}
    )

    return PaymentContext(
        web3=web3,
        account=account,
        token=token,
        merchant_address=MERCHANT_ADDRESS,
        usdc_decimals=decimals,
        chain_id=5042002,
    )


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings with a temporary receipts file and fake chain addresses."""
    return Settings(
        _env_file=None,
        ENVIRONMENT="development",
        ARC_RPC_URL="http://localhost:8545",
        ARC_CHAIN_ID=5042002,
        USDC_ADDRESS=USDC_ADDRESS,
        USDC_DECIMALS=6,
        MERCHANT_ADDRESS=MERCHANT_ADDRESS,
        SERVICE_PRIVATE_KEY="0x" + "01" * 32,
        RECEIPTS_FILE=str(tmp_path / "data" / "receipts.json"),
        RATE_LIMIT_CAPACITY=100,
    )


@pytest.fixture
def store(settings: Settings) -> ReceiptStore:
    return ReceiptStore(settings.RECEIPTS_FILE)


@pytest.fixture
def app(settings: Settings) -> FastAPI:
    return create_app(settings)


def use_chain(app: FastAPI, receipt) -> MagicMock:
    """Point the app's resolver at a fake web3 returning ``receipt``."""
    web3 = fake_web3(receipt)
    app.state.verifier.resolver = ChainReceiptResolver(app.state.settings, web3=web3)
    return web3


def use_payments(app: FastAPI, context: PaymentContext) -> PaymentContext:
    """Swap the app's payment service for one using ``context``."""
    app.state.payments = PaymentService(app.state.settings, context_factory=lambda: context)
    return context


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """
    Create test client bound to the app.
    """
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
