"""
Error taxonomy for the LoyaltySDK.

Local validation errors are raised before any network request. Remote
rejections surface as ChainRevertError, transport failures as
TransportError. Every error carries an ``exit_code`` used by the CLI.
"""

from __future__ import annotations

from typing import Any, Optional


class LoyaltySDKError(RuntimeError):
    exit_code: int = 1


class ConfigError(LoyaltySDKError):
    exit_code = 2


class ValidationError(LoyaltySDKError):
    exit_code = 3


class InvalidAddressError(ValidationError):
    def __init__(self, address: Any) -> None:
        super().__init__(f"Invalid Ethereum address: {address!r}")
        self.address = address


class InvalidAmountError(ValidationError):
    def __init__(self, value: Any, message: str = "Value must be a non-negative integer") -> None:
        super().__init__(f"{message}: {value!r}")
        self.value = value


class ChainRevertError(LoyaltySDKError):
    """The contract rejected the state transition."""

    exit_code = 4

    def __init__(self, reason: str, tx_hash: Optional[str] = None) -> None:
        self.reason = reason
        self.tx_hash = tx_hash
        suffix = f" (tx {tx_hash})" if tx_hash else ""
        super().__init__(f"Transaction reverted: {reason}{suffix}")


class ZeroAddressRecipientError(ValidationError, ChainRevertError):
    """Transfer to the zero address, rejected before submission.

    Also a ChainRevertError: the contract would revert the same call.
    """

    exit_code = 3

    def __init__(self) -> None:
        ChainRevertError.__init__(self, "transfer to the zero address")


class TransportError(LoyaltySDKError):
    exit_code = 5


class ConfirmationTimeoutError(TransportError):
    def __init__(self, tx_hash: str, timeout: float) -> None:
        super().__init__(f"Transaction {tx_hash} not confirmed within {timeout}s")
        self.tx_hash = tx_hash
        self.timeout = timeout


class RpcError(LoyaltySDKError):
    """Node answered with a JSON-RPC error object that is not a revert."""

    exit_code = 6

    def __init__(self, method: str, code: int, message: str, data: Any = None) -> None:
        super().__init__(f"RPC error in {method}: [{code}] {message}")
        self.method = method
        self.code = code
        self.message = message
        self.data = data


class AbiError(LoyaltySDKError):
    exit_code = 7
