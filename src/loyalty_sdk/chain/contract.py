"""
Contract proxy - one deployed LoyaltyToken bound to one signing account.

Read operations go through eth_call and return immediately. Mutating
operations are signed with the bound account, broadcast, and returned as
PendingTransaction handles; confirming them is the lifecycle's job.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

from eth_account.signers.local import LocalAccount

from ..errors import AbiError
from ..validation import to_checksum_address
from .abi import LOYALTY_TOKEN_ABI, decode_result, encode_call, find_function
from .rpc import RpcClient
from .tx import DEFAULT_GAS_LIMIT, PendingTransaction, build_contract_tx, sign_transaction

logger = logging.getLogger(__name__)


class ContractProxy:
    def __init__(
        self,
        rpc: RpcClient,
        account: LocalAccount,
        address: str,
        abi: Optional[list[dict[str, Any]]] = None,
        chain_id: Optional[int] = None,
        gas_limit: int = DEFAULT_GAS_LIMIT,
    ) -> None:
        self._rpc = rpc
        self._account = account
        self._address = to_checksum_address(address)
        self._abi = abi or LOYALTY_TOKEN_ABI
        self._chain_id = chain_id
        self._gas_limit = gas_limit
        # Serializes nonce allocation and broadcast only; never held while confirming.
        self._submit_lock = asyncio.Lock()
        self._next_nonce: Optional[int] = None

    @property
    def address(self) -> str:
        return self._address

    @property
    def sender(self) -> str:
        return self._account.address

    # ------------------------------------------------------------------
    # Generic dispatch
    # ------------------------------------------------------------------

    async def read(self, function_name: str, args: tuple[Any, ...] = ()) -> Any:
        """
        Call a view function (eth_call) and decode its result.

        Raises:
            AbiError: The function has outputs but the node returned no data,
                which is what an address without contract code answers
        """
        calldata = encode_call(self._abi, function_name, list(args))
        result = await self._rpc.eth_call(
            {"from": self.sender, "to": self._address, "data": calldata}
        )
        if result is None or result == "0x":
            if find_function(self._abi, function_name).get("outputs"):
                raise AbiError(
                    f"{function_name} returned no data; is {self._address} a LoyaltyToken contract?"
                )
            return None
        return decode_result(self._abi, function_name, result)

    async def submit(self, function_name: str, args: tuple[Any, ...] = ()) -> PendingTransaction:
        """
        Sign and broadcast a state-changing call.

        Returns:
            PendingTransaction for the broadcast transaction

        Raises:
            ChainRevertError: The node rejected the call at broadcast time
            TransportError / RpcError: The node could not accept the transaction
        """
        calldata = encode_call(self._abi, function_name, list(args))

        async with self._submit_lock:
            chain_id = await self._resolve_chain_id()
            nonce = await self._allocate_nonce()
            gas_price = await self._rpc.gas_price()

            tx = build_contract_tx(
                contract_address=self._address,
                calldata=calldata,
                nonce=nonce,
                gas_price=gas_price,
                chain_id=chain_id,
                gas_limit=self._gas_limit,
            )
            raw_tx = sign_transaction(self._account, tx)
            try:
                tx_hash = await self._rpc.send_raw_transaction(raw_tx)
            except BaseException:
                # The nonce was not consumed; re-read it on the next submission.
                self._next_nonce = None
                raise
            self._next_nonce = nonce + 1

        logger.debug("%s submitted tx=%s nonce=%d", function_name, tx_hash, nonce)
        return PendingTransaction(
            tx_hash=tx_hash,
            function=function_name,
            args=tuple(args),
            sender=self.sender,
            contract_address=self._address,
            calldata=calldata,
            nonce=nonce,
        )

    async def _resolve_chain_id(self) -> int:
        if self._chain_id is None:
            self._chain_id = await self._rpc.chain_id()
        return self._chain_id

    async def _allocate_nonce(self) -> int:
        remote = await self._rpc.get_nonce(self.sender, "pending")
        if self._next_nonce is None:
            return remote
        return max(remote, self._next_nonce)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def read_balance(self, account: str) -> str:
        return str(await self.read("balanceOf", (account,)))

    async def read_allowance(self, owner: str, spender: str) -> str:
        return str(await self.read("allowance", (owner, spender)))

    async def read_owner(self) -> str:
        return to_checksum_address(await self.read("owner"))

    async def read_name(self) -> str:
        return await self.read("name")

    async def read_symbol(self) -> str:
        return await self.read("symbol")

    async def read_decimals(self) -> int:
        return int(await self.read("decimals"))

    async def read_total_supply(self) -> str:
        return str(await self.read("totalSupply"))

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def submit_transfer(self, to: str, amount: int) -> PendingTransaction:
        return await self.submit("transfer", (to, amount))

    async def submit_approve(self, spender: str, amount: int) -> PendingTransaction:
        return await self.submit("approve", (spender, amount))

    async def submit_increase_allowance(self, spender: str, amount: int) -> PendingTransaction:
        return await self.submit("increaseAllowance", (spender, amount))

    async def submit_decrease_allowance(self, spender: str, amount: int) -> PendingTransaction:
        return await self.submit("decreaseAllowance", (spender, amount))

    async def submit_transfer_from(self, from_: str, to: str, amount: int) -> PendingTransaction:
        return await self.submit("transferFrom", (from_, to, amount))

    async def submit_transfer_ownership(self, new_owner: str) -> PendingTransaction:
        return await self.submit("transferOwnership", (new_owner,))
