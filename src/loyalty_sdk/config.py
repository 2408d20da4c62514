"""
Configuration for the LoyaltySDK.

Values come from the environment, optionally loaded from ~/.loyalty/.env.
The resulting SDKConfig is immutable.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .chain.tx import DEFAULT_CONFIRMATION_TIMEOUT, DEFAULT_GAS_LIMIT, DEFAULT_POLL_INTERVAL
from .errors import ConfigError
from .identity.eth import LOYALTY_ENV

# Ganache default (truffle "development" network)
DEFAULT_RPC_URL = "http://127.0.0.1:7545"
DEFAULT_REQUEST_TIMEOUT = 30.0


@dataclass(frozen=True)
class SDKConfig:
    rpc_url: str = DEFAULT_RPC_URL
    contract_address: Optional[str] = None
    chain_id: Optional[int] = None
    gas_limit: int = DEFAULT_GAS_LIMIT
    confirmation_timeout: float = DEFAULT_CONFIRMATION_TIMEOUT
    poll_interval: float = DEFAULT_POLL_INTERVAL
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT

    def require_contract_address(self) -> str:
        if not self.contract_address:
            raise ConfigError(
                f"LOYALTY_TOKEN_ADDRESS not set. Use --token <address> or set it in {LOYALTY_ENV}."
            )
        return self.contract_address


def _env_number(name: str, default: float, kind: type = float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return kind(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from exc


def load_config(env_path: Optional[Path] = None, **overrides: object) -> SDKConfig:
    """
    Build an SDKConfig from the environment.

    Args:
        env_path: Path to .env file (default: ~/.loyalty/.env)
        **overrides: Field values that take precedence (None values are ignored)

    Returns:
        SDKConfig
    """
    env_path = env_path or LOYALTY_ENV
    if env_path.exists():
        load_dotenv(env_path, override=False)

    chain_id = os.environ.get("LOYALTY_CHAIN_ID")
    values: dict[str, object] = {
        "rpc_url": os.environ.get("LOYALTY_RPC_URL", DEFAULT_RPC_URL),
        "contract_address": os.environ.get("LOYALTY_TOKEN_ADDRESS") or None,
        "chain_id": int(_env_number("LOYALTY_CHAIN_ID", 0, int)) if chain_id else None,
        "gas_limit": int(_env_number("LOYALTY_GAS_LIMIT", DEFAULT_GAS_LIMIT, int)),
        "confirmation_timeout": _env_number("LOYALTY_CONFIRMATION_TIMEOUT", DEFAULT_CONFIRMATION_TIMEOUT),
        "poll_interval": _env_number("LOYALTY_POLL_INTERVAL", DEFAULT_POLL_INTERVAL),
    }
    values.update({k: v for k, v in overrides.items() if v is not None})
    return SDKConfig(**values)  # type: ignore[arg-type]
