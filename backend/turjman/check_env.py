"""
Check the chain configuration before starting the API.

Reads ``.env`` (values already exported in the environment win) and prints
missing keys and suspicious values. Exits with status 1 when required keys
are missing; warnings alone do not fail the check.
"""

import os
import re
import sys
from pathlib import Path
from typing import Dict, List, Mapping, Optional

from dotenv import dotenv_values
from web3 import Web3

REQUIRED_KEYS = (
    "ARC_RPC_URL",
    "ARC_CHAIN_ID",
    "ARC_EXPLORER_BASE",
    "USDC_ADDRESS",
    "USDC_DECIMALS",
    "SERVICE_PRIVATE_KEY",
    "MERCHANT_ADDRESS",
)

PRIVATE_KEY_PATTERN = re.compile(r"^0x[0-9a-fA-F]{64}$")


def load_env(env_path: Path) -> Dict[str, str]:
    values: Dict[str, str] = {}
    if env_path.exists():
        values.update({k: v for k, v in dotenv_values(env_path).items() if v is not None})
    else:
        print(f"[env:check] No {env_path.name} found. Create one to configure the app.")
    for key in REQUIRED_KEYS:
        if os.environ.get(key):
            values[key] = os.environ[key]
    return values


def missing_keys(env: Mapping[str, str]) -> List[str]:
    return [key for key in REQUIRED_KEYS if not env.get(key)]


def address_warning(key: str, value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    if not Web3.is_address(value):
        return f"{key} is not a valid address: {value}"
    checksum = Web3.to_checksum_address(value)
    if checksum != value:
        return f"{key} is not checksummed. Suggested value: {checksum}"
    return None


def numeric_warning(key: str, value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    try:
        float(value)
    except ValueError:
        return f"{key} must be numeric. Received: {value}"
    return None


def collect_warnings(env: Mapping[str, str]) -> List[str]:
    warnings = [
        address_warning("USDC_ADDRESS", env.get("USDC_ADDRESS")),
        address_warning("MERCHANT_ADDRESS", env.get("MERCHANT_ADDRESS")),
        numeric_warning("ARC_CHAIN_ID", env.get("ARC_CHAIN_ID")),
        numeric_warning("USDC_DECIMALS", env.get("USDC_DECIMALS")),
    ]

    private_key = env.get("SERVICE_PRIVATE_KEY")
    if private_key and not PRIVATE_KEY_PATTERN.match(private_key):
        warnings.append("SERVICE_PRIVATE_KEY should be 32-byte hex string prefixed with 0x.")

    rpc_url = env.get("ARC_RPC_URL")
    if rpc_url and not re.match(r"^https?://", rpc_url, re.IGNORECASE):
        warnings.append("ARC_RPC_URL should start with http:// or https://")

    return [w for w in warnings if w]


def main(argv: Optional[List[str]] = None) -> int:
    args = argv if argv is not None else sys.argv[1:]
    env = load_env(Path(args[0]) if args else Path(".env"))

    missing = missing_keys(env)
    if missing:
        print("[env:check] Missing environment variables:")
        for key in missing:
            print(f"  • {key}")

    warnings = collect_warnings(env)
    if warnings:
        print("[env:check] Warnings:")
        for warning in warnings:
            print(f"  • {warning}")
    elif not missing:
        print("[env:check] Environment looks good ✅")

    return 1 if missing else 0


if __name__ == "__main__":
    sys.exit(main())
