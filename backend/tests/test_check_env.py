"""Tests for the environment check script."""

from web3 import Web3

from turjman.check_env import collect_warnings, main, missing_keys

from conftest import MERCHANT_ADDRESS, USDC_ADDRESS

GOOD_ENV = {
    "ARC_RPC_URL": "https://rpc.testnet.arc.network",
    "ARC_CHAIN_ID": "5042002",
    "ARC_EXPLORER_BASE": "https://testnet.arcscan.app",
    "USDC_ADDRESS": USDC_ADDRESS,
    "USDC_DECIMALS": "6",
    "SERVICE_PRIVATE_KEY": "0x" + "01" * 32,
    "MERCHANT_ADDRESS": MERCHANT_ADDRESS,
}


def test_clean_env_has_no_findings():
    assert missing_keys(GOOD_ENV) == []
    assert collect_warnings(GOOD_ENV) == []


def test_reports_suspicious_values():
    lower = "0x" + "ab" * 20
    env = dict(
        GOOD_ENV,
        USDC_ADDRESS=lower,
        MERCHANT_ADDRESS="0x123",
        SERVICE_PRIVATE_KEY="deadbeef",
        ARC_CHAIN_ID="arc",
        ARC_RPC_URL="ws://localhost:8546",
    )

    warnings = collect_warnings(env)

    assert f"USDC_ADDRESS is not checksummed. Suggested value: {Web3.to_checksum_address(lower)}" in warnings
    assert "MERCHANT_ADDRESS is not a valid address: 0x123" in warnings
    assert "SERVICE_PRIVATE_KEY should be 32-byte hex string prefixed with 0x." in warnings
    assert "ARC_CHAIN_ID must be numeric. Received: arc" in warnings
    assert "ARC_RPC_URL should start with http:// or https://" in warnings


def test_exit_code_reflects_missing_keys(tmp_path, monkeypatch, capsys):
    for key in GOOD_ENV:
        monkeypatch.delenv(key, raising=False)

    env_file = tmp_path / ".env"
    env_file.write_text("\n".join(f"{k}={v}" for k, v in GOOD_ENV.items()))
    assert main([str(env_file)]) == 0
    assert "Environment looks good" in capsys.readouterr().out

    env_file.write_text("ARC_RPC_URL=https://rpc.testnet.arc.network\n")
    assert main([str(env_file)]) == 1
    assert "USDC_ADDRESS" in capsys.readouterr().out
