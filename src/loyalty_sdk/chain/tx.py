"""
Transaction lifecycle - build, sign, and confirm contract transactions.

Uses eth-account for signing and the async JSON-RPC client for sending.
A submitted transaction is a PendingTransaction; TransactionLifecycle
resolves it exactly once to a confirmed TransactionReceipt or a
ChainRevertError.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from eth_account.signers.local import LocalAccount

from ..errors import ChainRevertError, ConfirmationTimeoutError, RpcError
from .rpc import RpcClient

logger = logging.getLogger(__name__)

DEFAULT_GAS_LIMIT = 500_000
DEFAULT_CONFIRMATION_TIMEOUT = 120.0
DEFAULT_POLL_INTERVAL = 1.0
DEFAULT_MAX_POLL_INTERVAL = 5.0


def build_contract_tx(
    contract_address: str,
    calldata: str,
    nonce: int,
    gas_price: int,
    chain_id: int,
    gas_limit: int = DEFAULT_GAS_LIMIT,
    value: int = 0,
) -> dict[str, Any]:
    """
    Build an unsigned legacy contract call transaction.

    Args:
        contract_address: Checksummed contract address
        calldata: 0x-prefixed ABI-encoded call
        nonce: Sender nonce
        gas_price: Gas price in wei
        chain_id: EIP-155 chain id
        gas_limit: Gas limit
        value: ETH value in wei

    Returns:
        Unsigned transaction dict
    """
    return {
        "to": contract_address,
        "data": calldata,
        "value": value,
        "nonce": nonce,
        "gas": gas_limit,
        "gasPrice": gas_price,
        "chainId": chain_id,
    }


def sign_transaction(account: LocalAccount, tx: dict[str, Any]) -> str:
    """Sign a transaction and return the 0x-prefixed raw bytes."""
    signed = account.sign_transaction(tx)
    return "0x" + bytes(signed.raw_transaction).hex()


def _to_int(value: Any) -> int:
    if value is None:
        return 0
    if isinstance(value, int):
        return value
    return int(value, 16)


@dataclass(frozen=True)
class TransactionReceipt:
    tx_hash: str
    block_number: int
    gas_used: int
    status: int
    raw: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_rpc(cls, payload: dict[str, Any]) -> "TransactionReceipt":
        status = payload.get("status")
        return cls(
            tx_hash=payload.get("transactionHash", ""),
            block_number=_to_int(payload.get("blockNumber")),
            gas_used=_to_int(payload.get("gasUsed")),
            # Pre-Byzantium receipts have no status; treat them as success.
            status=1 if status is None else _to_int(status),
            raw=payload,
        )

    @property
    def succeeded(self) -> bool:
        return self.status == 1


@dataclass
class PendingTransaction:
    """A broadcast state-changing call awaiting finality."""

    tx_hash: str
    function: str
    args: tuple[Any, ...]
    sender: str
    contract_address: str
    calldata: str
    nonce: int
    _outcome: Optional["asyncio.Future[TransactionReceipt]"] = field(
        default=None, init=False, repr=False, compare=False
    )


async def wait_for_receipt(
    rpc: RpcClient,
    tx_hash: str,
    timeout: float = DEFAULT_CONFIRMATION_TIMEOUT,
    poll_interval: float = DEFAULT_POLL_INTERVAL,
    max_poll_interval: float = DEFAULT_MAX_POLL_INTERVAL,
    backoff: float = 1.5,
) -> dict[str, Any]:
    """
    Wait for a transaction receipt.

    Polls with growing intervals, suspending on asyncio.sleep between polls.

    Raises:
        ConfirmationTimeoutError: If no receipt is found within timeout
    """
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    interval = poll_interval

    while True:
        receipt = await rpc.get_receipt(tx_hash)
        if receipt is not None:
            return receipt

        remaining = deadline - loop.time()
        if remaining <= 0:
            raise ConfirmationTimeoutError(tx_hash, timeout)

        await asyncio.sleep(min(interval, remaining))
        interval = min(interval * backoff, max_poll_interval)


class TransactionLifecycle:
    """
    Resolves pending transactions to Confirmed or Reverted.

    Each PendingTransaction gets one outcome future. Awaiting it from several
    places, or abandoning an await, never starts a second wait nor cancels
    the first: a broadcast transaction cannot be withdrawn.
    """

    def __init__(
        self,
        rpc: RpcClient,
        timeout: float = DEFAULT_CONFIRMATION_TIMEOUT,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        max_poll_interval: float = DEFAULT_MAX_POLL_INTERVAL,
    ) -> None:
        self._rpc = rpc
        self._timeout = timeout
        self._poll_interval = poll_interval
        self._max_poll_interval = max(max_poll_interval, poll_interval)

    def track(self, pending: PendingTransaction) -> "asyncio.Future[TransactionReceipt]":
        """Return the single-shot outcome future for a pending transaction."""
        if pending._outcome is None:
            task = asyncio.ensure_future(self._finalize(pending))
            task.add_done_callback(_log_unobserved)
            pending._outcome = task
        return pending._outcome

    async def confirm(self, pending: PendingTransaction) -> TransactionReceipt:
        """
        Wait until the network finalizes a pending transaction.

        Returns:
            The receipt of the confirmed transaction

        Raises:
            ChainRevertError: The contract rejected the transaction
            ConfirmationTimeoutError: No receipt within the timeout
            TransportError: The node could not be reached
        """
        return await asyncio.shield(self.track(pending))

    async def _finalize(self, pending: PendingTransaction) -> TransactionReceipt:
        payload = await wait_for_receipt(
            self._rpc,
            pending.tx_hash,
            timeout=self._timeout,
            poll_interval=self._poll_interval,
            max_poll_interval=self._max_poll_interval,
        )
        receipt = TransactionReceipt.from_rpc(payload)

        if receipt.succeeded:
            logger.info(
                "%s confirmed tx=%s block=%d gas=%d",
                pending.function, receipt.tx_hash, receipt.block_number, receipt.gas_used,
            )
            return receipt

        reason = await self._revert_reason(pending, receipt)
        logger.warning("%s reverted tx=%s reason=%s", pending.function, pending.tx_hash, reason)
        raise ChainRevertError(reason, tx_hash=pending.tx_hash)

    async def _revert_reason(self, pending: PendingTransaction, receipt: TransactionReceipt) -> str:
        """
        Replay the call to recover the revert reason.

        The replay runs against the state after the receipt's block, which
        includes the sender's earlier transactions in that block. Later
        transactions in the same block can make it pass, so the parent block
        is tried next. Neither replay is exact; if both pass the reason is
        reported as "execution reverted".
        """
        call = {"from": pending.sender, "to": pending.contract_address, "data": pending.calldata}
        blocks = [receipt.block_number]
        if receipt.block_number > 0:
            blocks.append(receipt.block_number - 1)

        for block in blocks:
            try:
                await self._rpc.eth_call(call, hex(block))
            except ChainRevertError as exc:
                return exc.reason
            except RpcError as exc:
                logger.debug("revert replay at block %d failed for tx=%s: %s", block, pending.tx_hash, exc)
        return "execution reverted"


def _log_unobserved(task: "asyncio.Future[TransactionReceipt]") -> None:
    # Retrieve the outcome so abandoned waits never go unreported.
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.debug("transaction outcome: %s", exc)
