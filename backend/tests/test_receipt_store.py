"""Tests for the JSON-file receipt store."""

import asyncio
import json

import pytest

from turjman.schemas.receipt import NO_TX, Receipt, ReceiptStatus
from turjman.services.receipt_store import (
    ReceiptStore,
    ReceiptStoreCorrupted,
    to_receipt_map,
)

HASH_A = "0x" + "aa" * 32
HASH_B = "0x" + "bb" * 32


def make_receipt(tx: str = HASH_A, amount: str = "1.0", **extra) -> Receipt:
    return Receipt(
        tx=tx,
        amount_usdc=amount,
        service_label="Legal Translation",
        explorer_url=f"https://testnet.arcscan.app/tx/{tx}",
        **extra
    )


@pytest.mark.asyncio
async def test_add_then_get(store: ReceiptStore):
    saved = await store.add(make_receipt(HASH_A.upper().replace("0X", "0x")))

    assert saved.tx == HASH_A
    fetched = await store.get(HASH_A)
    assert fetched is not None
    assert fetched.tx == HASH_A
    assert fetched.amount_usdc == "1.0"
    assert fetched.to_record() == saved.to_record()


@pytest.mark.asyncio
async def test_missing_file_is_created(store: ReceiptStore):
    assert await store.get(HASH_A) is None
    assert json.loads(store.path.read_text()) == {}


@pytest.mark.asyncio
async def test_overwrite_keeps_latest_only(store: ReceiptStore):
    await store.add(make_receipt(amount="1.0"))
    await store.add(make_receipt(amount="2.5"))

    assert (await store.get(HASH_A)).amount_usdc == "2.5"
    assert len(await store.list_receipts()) == 1


@pytest.mark.asyncio
async def test_concurrent_adds_are_not_lost(store: ReceiptStore):
    hashes = ["0x" + f"{i:064x}" for i in range(25)]

    await asyncio.gather(*(store.add(make_receipt(h)) for h in hashes))

    stored = json.loads(store.path.read_text())
    assert sorted(stored) == sorted(hashes)
    assert not list(store.path.parent.glob("receipts.tmp.*"))


@pytest.mark.asyncio
async def test_sentinel_tx_gets_unique_keys(store: ReceiptStore):
    first = await store.add(make_receipt(NO_TX, status=ReceiptStatus.FAILED))
    second = await store.add(make_receipt(NO_TX, status=ReceiptStatus.FAILED))

    assert first.tx != second.tx
    assert first.tx.startswith(f"{NO_TX}-")
    assert len(await store.list_receipts()) == 2



@pytest.mark.asyncio
async def test_legacy_list_layout_is_converted(store: ReceiptStore):
    store.path.parent.mkdir(parents=True, exist_ok=True)
    store.path.write_text(json.dumps([
        {"tx": HASH_A.upper().replace("0X", "0x"), "amountUSDC": "1.0"},
        {"tx": HASH_B, "amountUSDC": 3},
        {"tx": HASH_A, "amountUSDC": "9.0"},
    ]))

    assert (await store.get(HASH_A)).amount_usdc == "9.0"
    assert (await store.get(HASH_B)).amount_usdc == "3"
    assert len(await store.list_receipts()) == 2


def test_to_receipt_map_shapes():
    assert to_receipt_map(None) == {}
    assert to_receipt_map({HASH_A: {"tx": HASH_A}}) == {HASH_A: {"tx": HASH_A}}
    with pytest.raises(ReceiptStoreCorrupted):
        to_receipt_map("nonsense")


@pytest.mark.asyncio
async def test_corrupted_file(store: ReceiptStore):
    store.path.parent.mkdir(parents=True, exist_ok=True)
    store.path.write_text("{not json")

    assert await store.list_receipts() == []
    with pytest.raises(ReceiptStoreCorrupted):
        await store.read_strict()


@pytest.mark.asyncio
async def test_record_without_amount_is_readable(store: ReceiptStore):
    store.path.parent.mkdir(parents=True, exist_ok=True)
    store.path.write_text(json.dumps({
        HASH_A: {"tx": HASH_A, "serviceLabel": "Golden Visa Application"},
        HASH_B: {"tx": HASH_B, "amountUSDC": "2.0"},
    }))

    legacy = await store.get(HASH_A)
    assert legacy.amount_usdc is None
    assert [r.tx for r in await store.list_receipts()] == [HASH_A, HASH_B]
    assert len(await store.read_strict()) == 2


@pytest.mark.asyncio
async def test_invalid_record_is_skipped_when_listing(store: ReceiptStore):
    store.path.parent.mkdir(parents=True, exist_ok=True)
    store.path.write_text(json.dumps({
        HASH_A: {"amountUSDC": "1.0", "status": "Bogus"},
        HASH_B: {"tx": HASH_B, "amountUSDC": "2.0"},
    }))

    assert [r.tx for r in await store.list_receipts()] == [HASH_B]
    with pytest.raises(ReceiptStoreCorrupted):
        await store.read_strict()
    with pytest.raises(ReceiptStoreCorrupted):
        await store.get(HASH_A)


@pytest.mark.asyncio
async def test_failed_write_removes_temp_file(store: ReceiptStore, monkeypatch):
    await store.add(make_receipt(amount="1.0"))
    before = store.path.read_text()

    def failing_replace(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr("turjman.services.receipt_store.os.replace", failing_replace)

    with pytest.raises(OSError, match="disk full"):
        await store.add(make_receipt(HASH_B, amount="2.0"))

    assert store.path.read_text() == before
    assert not list(store.path.parent.glob("receipts.tmp.*"))
