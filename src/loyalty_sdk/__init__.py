__all__ = [
    # Facade
    "LoyaltySDK",
    # Configuration
    "SDKConfig",
    "load_config",
    # Chain layer
    "RpcClient",
    "ContractProxy",
    "PendingTransaction",
    "TransactionLifecycle",
    "TransactionReceipt",
    "LOYALTY_TOKEN_ABI",
    "load_abi",
    # Validation
    "ZERO_ADDRESS",
    "MAX_UINT256",
    "is_address",
    "to_checksum_address",
    "validate_address",
    "validate_amount",
    "validate_recipient",
    # Errors
    "LoyaltySDKError",
    "ConfigError",
    "ValidationError",
    "InvalidAddressError",
    "InvalidAmountError",
    "ZeroAddressRecipientError",
    "ChainRevertError",
    "TransportError",
    "ConfirmationTimeoutError",
    "RpcError",
    "AbiError",
]

from .errors import (
    AbiError,
    ChainRevertError,
    ConfigError,
    ConfirmationTimeoutError,
    InvalidAddressError,
    InvalidAmountError,
    LoyaltySDKError,
    RpcError,
    TransportError,
    ValidationError,
    ZeroAddressRecipientError,
)
from .validation import (
    MAX_UINT256,
    ZERO_ADDRESS,
    is_address,
    to_checksum_address,
    validate_address,
    validate_amount,
    validate_recipient,
)
from .chain.abi import LOYALTY_TOKEN_ABI, load_abi
from .chain.rpc import RpcClient
from .chain.tx import PendingTransaction, TransactionLifecycle, TransactionReceipt
from .chain.contract import ContractProxy
from .config import SDKConfig, load_config
from .sdk import LoyaltySDK
