"""
LoyaltySDK - act for one account against one deployed LoyaltyToken.

Every operation validates its inputs locally first, so malformed input
never costs a network round-trip. Mutating operations return only once
the network has confirmed the transaction; a rejection by the contract
is raised as ChainRevertError. The contract is the single source of truth
for balances, allowances and ownership: none of those rules are
pre-checked here.
"""

from __future__ import annotations

from typing import Any, Optional, Union

from .chain.contract import ContractProxy
from .chain.rpc import RpcClient
from .chain.tx import (
    DEFAULT_CONFIRMATION_TIMEOUT,
    DEFAULT_GAS_LIMIT,
    DEFAULT_POLL_INTERVAL,
    PendingTransaction,
    TransactionLifecycle,
    TransactionReceipt,
)
from .config import DEFAULT_REQUEST_TIMEOUT, SDKConfig
from .identity.eth import get_account, load_private_key
from .validation import validate_address, validate_amount, validate_recipient

Amount = Union[int, str]


class LoyaltySDK:
    """
    Interface to the LoyaltyToken smart contract.

    Args:
        rpc: JSON-RPC client (or an endpoint URL) for the target chain
        private_key: hex private key of the account the client acts for
        contract_address: address of the deployed LoyaltyToken contract
        abi: contract ABI (default: the bundled LoyaltyToken ABI)
        chain_id: EIP-155 chain id (default: asked from the node once)
    """

    def __init__(
        self,
        rpc: Union[RpcClient, str],
        private_key: str,
        contract_address: str,
        abi: Optional[list[dict[str, Any]]] = None,
        chain_id: Optional[int] = None,
        gas_limit: int = DEFAULT_GAS_LIMIT,
        confirmation_timeout: float = DEFAULT_CONFIRMATION_TIMEOUT,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ) -> None:
        account = get_account(private_key)
        contract_address = validate_address(contract_address)
        # Only open a connection pool once the identity and binding are valid.
        if isinstance(rpc, str):
            rpc = RpcClient(rpc, timeout=request_timeout)
        self._rpc = rpc
        self._contract = ContractProxy(
            rpc,
            account,
            contract_address,
            abi=abi,
            chain_id=chain_id,
            gas_limit=gas_limit,
        )
        self._lifecycle = TransactionLifecycle(
            rpc, timeout=confirmation_timeout, poll_interval=poll_interval
        )

    @classmethod
    def from_config(cls, config: SDKConfig, private_key: Optional[str] = None) -> "LoyaltySDK":
        """Build a client from an SDKConfig; the key defaults to PRIVATE_KEY."""
        contract_address = config.require_contract_address()
        private_key = private_key or load_private_key()
        return cls(
            config.rpc_url,
            private_key,
            contract_address,
            chain_id=config.chain_id,
            gas_limit=config.gas_limit,
            confirmation_timeout=config.confirmation_timeout,
            poll_interval=config.poll_interval,
            request_timeout=config.request_timeout,
        )

    @property
    def address(self) -> str:
        """Address of the account this client signs for."""
        return self._contract.sender

    @property
    def contract_address(self) -> str:
        return self._contract.address

    async def aclose(self) -> None:
        await self._rpc.aclose()

    async def __aenter__(self) -> "LoyaltySDK":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def _confirm(self, pending: PendingTransaction) -> TransactionReceipt:
        return await self._lifecycle.confirm(pending)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_balance(self, account: str) -> str:
        """
        Gets the token balance of an address.

        Returns:
            The balance in the token's smallest unit, as an integer string.
        """
        return await self._contract.read_balance(validate_address(account))

    async def allowance(self, owner: str, spender: str) -> str:
        """
        Checks the allowance granted to a spender by an owner.

        Returns:
            The remaining allowance as an integer string.
        """
        owner = validate_address(owner)
        spender = validate_address(spender)
        return await self._contract.read_allowance(owner, spender)

    async def owner(self) -> str:
        """The address of the contract owner."""
        return await self._contract.read_owner()

    async def name(self) -> str:
        return await self._contract.read_name()

    async def symbol(self) -> str:
        return await self._contract.read_symbol()

    async def decimals(self) -> int:
        return await self._contract.read_decimals()

    async def total_supply(self) -> str:
        return await self._contract.read_total_supply()

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def transfer(self, to: str, amount: Amount) -> None:
        """
        Transfers tokens from the client's account to a recipient.

        Raises:
            InvalidAddressError: ``to`` is malformed
            ZeroAddressRecipientError: ``to`` is the zero address
            InvalidAmountError: ``amount`` is negative or not an integer
            ChainRevertError: the contract rejected the transfer
        """
        to = validate_recipient(to)
        value = validate_amount(amount)
        await self._confirm(await self._contract.submit_transfer(to, value))

    async def approve(self, spender: str, amount: Amount) -> None:
        """Sets the allowance of ``spender`` over the client's tokens to ``amount``."""
        spender = validate_address(spender)
        value = validate_amount(amount)
        await self._confirm(await self._contract.submit_approve(spender, value))

    async def increase_allowance(self, spender: str, amount: Amount) -> None:
        spender = validate_address(spender)
        value = validate_amount(amount)
        await self._confirm(await self._contract.submit_increase_allowance(spender, value))

    async def decrease_allowance(self, spender: str, amount: Amount) -> None:
        """
        Lowers the allowance of ``spender``.

        Going below zero is not checked here; the contract reverts it.
        """
        spender = validate_address(spender)
        value = validate_amount(amount)
        await self._confirm(await self._contract.submit_decrease_allowance(spender, value))

    async def transfer_from(self, from_: str, to: str, amount: Amount) -> None:
        """
        Moves tokens from ``from_`` to ``to`` using the client's allowance.

        A zero ``from_`` or ``to`` passes validation and is left to the
        contract to reject.
        """
        from_ = validate_address(from_)
        to = validate_address(to)
        value = validate_amount(amount)
        await self._confirm(await self._contract.submit_transfer_from(from_, to, value))

    async def transfer_ownership(self, new_owner: str) -> None:
        """Transfers contract ownership. Only the current owner can do this."""
        new_owner = validate_address(new_owner)
        await self._confirm(await self._contract.submit_transfer_ownership(new_owner))
