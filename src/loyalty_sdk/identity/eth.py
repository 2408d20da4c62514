"""
ECDSA / secp256k1 signing identity for the LoyaltySDK.

The private key is supplied by the caller or read from the environment
(PRIVATE_KEY), optionally loaded from ~/.loyalty/.env. It is only held in
memory inside an eth-account LocalAccount and is never written or logged.

Dependencies: eth-account (lightweight, no full web3.py needed)
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from eth_account import Account
from eth_account.signers.local import LocalAccount

from ..errors import ConfigError


# Default config directory
LOYALTY_DIR = Path.home() / ".loyalty"
LOYALTY_ENV = LOYALTY_DIR / ".env"


def normalize_private_key(private_key: str) -> str:
    """Strip whitespace and ensure the 0x prefix."""
    private_key = private_key.strip()
    if not private_key.startswith("0x"):
        private_key = "0x" + private_key
    return private_key


def load_private_key(env_path: Optional[Path] = None) -> str:
    """
    Load private key from .env file or environment.

    Args:
        env_path: Path to .env file (default: ~/.loyalty/.env)

    Returns:
        0x-prefixed hex private key

    Raises:
        ConfigError: If PRIVATE_KEY is not set
    """
    env_path = env_path or LOYALTY_ENV

    if env_path.exists():
        load_dotenv(env_path, override=False)

    private_key = os.environ.get("PRIVATE_KEY")
    if not private_key:
        raise ConfigError(f"PRIVATE_KEY not found. Set PRIVATE_KEY in the environment or in {env_path}")

    return normalize_private_key(private_key)


def get_account(private_key: Optional[str] = None) -> LocalAccount:
    """
    Get an eth-account LocalAccount from a private key.

    Args:
        private_key: hex private key. If None, loads from .env.

    Raises:
        ConfigError: If the key is missing or malformed
    """
    if private_key is None:
        private_key = load_private_key()
    try:
        return Account.from_key(normalize_private_key(private_key))
    except Exception as exc:
        # Never echo the key itself.
        raise ConfigError("Invalid private key") from exc


def get_address(private_key: Optional[str] = None) -> str:
    """Return the checksummed address for a private key."""
    return get_account(private_key).address
