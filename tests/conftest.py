"""
Shared fixtures: an in-memory LoyaltyToken node behind httpx.MockTransport.

The fake node speaks just enough Ethereum JSON-RPC for the SDK (eth_call,
eth_sendRawTransaction, receipts, nonces) and implements ERC-20 +
increase/decreaseAllowance + Ownable with OpenZeppelin revert messages.
Signed transactions are decoded for real (rlp + eth-account), so the
client's encoding, signing and nonce handling are exercised end to end.
"""

from __future__ import annotations

import copy
import json
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

import httpx
import pytest
import rlp
from eth_abi import decode, encode
from eth_account import Account
from eth_hash.auto import keccak

from loyalty_sdk import LoyaltySDK, RpcClient

# ============ Accounts ============

OWNER_KEY = "0x" + "11" * 32
OTHER_KEY = "0x" + "22" * 32
OWNER = Account.from_key(OWNER_KEY).address
OTHER = Account.from_key(OTHER_KEY).address

ALICE = "0x" + "a1" * 20
BOB = "0x" + "b0" * 20
ZERO = "0x" + "00" * 20

TOKEN_ADDRESS = "0x" + "c0" * 20
CHAIN_ID = 1337
INITIAL_SUPPLY = 1_000_000 * 10**18
RPC_URL = "http://fake-node.test"


class Revert(Exception):
    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


def _selector(signature: str) -> bytes:
    return keccak(signature.encode("utf-8"))[:4]


def _addr(value: str) -> str:
    return value.lower()


@dataclass
class TokenState:
    owner: str
    balances: dict[str, int] = field(default_factory=lambda: defaultdict(int))
    allowances: dict[tuple[str, str], int] = field(default_factory=lambda: defaultdict(int))
    total_supply: int = 0


# ============ Fake node ============


class FakeTokenNode:
    """In-memory chain hosting one LoyaltyToken contract."""

    def __init__(
        self,
        owner: str = OWNER,
        supply: int = INITIAL_SUPPLY,
        pending_polls: int = 0,
        revert_on_send: bool = False,
    ) -> None:
        self.state = TokenState(owner=_addr(owner), total_supply=supply)
        self.state.balances[_addr(owner)] = supply
        self.nonces: dict[str, int] = defaultdict(int)
        self.receipts: dict[str, dict[str, Any]] = {}
        self.block = 0
        self.requests: list[dict[str, Any]] = []
        self.pending_polls = pending_polls
        self.revert_on_send = revert_on_send
        self.offline = False
        self._polls: dict[str, int] = {}

        self._functions: dict[bytes, tuple[list[str], Callable[..., bytes]]] = {
            _selector("name()"): ([], lambda s, sender: encode(["string"], ["Loyalty Token"])),
            _selector("symbol()"): ([], lambda s, sender: encode(["string"], ["LOYAL"])),
            _selector("decimals()"): ([], lambda s, sender: encode(["uint8"], [18])),
            _selector("totalSupply()"): ([], lambda s, sender: encode(["uint256"], [s.total_supply])),
            _selector("owner()"): ([], lambda s, sender: encode(["address"], [s.owner])),
            _selector("balanceOf(address)"): (["address"], self._balance_of),
            _selector("allowance(address,address)"): (["address", "address"], self._allowance),
            _selector("transfer(address,uint256)"): (["address", "uint256"], self._transfer),
            _selector("approve(address,uint256)"): (["address", "uint256"], self._approve),
            _selector("transferFrom(address,address,uint256)"): (
                ["address", "address", "uint256"],
                self._transfer_from,
            ),
            _selector("increaseAllowance(address,uint256)"): (["address", "uint256"], self._increase),
            _selector("decreaseAllowance(address,uint256)"): (["address", "uint256"], self._decrease),
            _selector("transferOwnership(address)"): (["address"], self._transfer_ownership),
        }

    # ---- inspection helpers -------------------------------------------

    def balance(self, account: str) -> int:
        return self.state.balances[_addr(account)]

    def methods(self) -> list[str]:
        return [r["method"] for r in self.requests]

    def rpc(self) -> RpcClient:
        transport = httpx.MockTransport(self.handle)
        return RpcClient(RPC_URL, client=httpx.AsyncClient(transport=transport))

    # ---- contract logic (OpenZeppelin 4.x semantics) --------------------

    def _balance_of(self, s: TokenState, sender: str, account: str) -> bytes:
        return encode(["uint256"], [s.balances[_addr(account)]])

    def _allowance(self, s: TokenState, sender: str, owner: str, spender: str) -> bytes:
        return encode(["uint256"], [s.allowances[(_addr(owner), _addr(spender))]])

    def _move(self, s: TokenState, src: str, dst: str, amount: int) -> None:
        if _addr(src) == ZERO:
            raise Revert("ERC20: transfer from the zero address")
        if _addr(dst) == ZERO:
            raise Revert("ERC20: transfer to the zero address")
        if s.balances[_addr(src)] < amount:
            raise Revert("ERC20: transfer amount exceeds balance")
        s.balances[_addr(src)] -= amount
        s.balances[_addr(dst)] += amount

    def _set_allowance(self, s: TokenState, owner: str, spender: str, amount: int) -> None:
        if _addr(owner) == ZERO:
            raise Revert("ERC20: approve from the zero address")
        if _addr(spender) == ZERO:
            raise Revert("ERC20: approve to the zero address")
        s.allowances[(_addr(owner), _addr(spender))] = amount

    def _transfer(self, s: TokenState, sender: str, to: str, amount: int) -> bytes:
        self._move(s, sender, to, amount)
        return encode(["bool"], [True])

    def _approve(self, s: TokenState, sender: str, spender: str, amount: int) -> bytes:
        self._set_allowance(s, sender, spender, amount)
        return encode(["bool"], [True])

    def _transfer_from(self, s: TokenState, sender: str, src: str, dst: str, amount: int) -> bytes:
        current = s.allowances[(_addr(src), _addr(sender))]
        if current != 2**256 - 1:
            if current < amount:
                raise Revert("ERC20: insufficient allowance")
            self._set_allowance(s, src, sender, current - amount)
        self._move(s, src, dst, amount)
        return encode(["bool"], [True])

    def _increase(self, s: TokenState, sender: str, spender: str, added: int) -> bytes:
        current = s.allowances[(_addr(sender), _addr(spender))]
        self._set_allowance(s, sender, spender, current + added)
        return encode(["bool"], [True])

    def _decrease(self, s: TokenState, sender: str, spender: str, subtracted: int) -> bytes:
        current = s.allowances[(_addr(sender), _addr(spender))]
        if current < subtracted:
            raise Revert("ERC20: decreased allowance below zero")
        self._set_allowance(s, sender, spender, current - subtracted)
        return encode(["bool"], [True])

    def _transfer_ownership(self, s: TokenState, sender: str, new_owner: str) -> bytes:
        if _addr(sender) != s.owner:
            raise Revert("Ownable: caller is not the owner")
        if _addr(new_owner) == ZERO:
            raise Revert("Ownable: new owner is the zero address")
        s.owner = _addr(new_owner)
        return b""

    def _execute(self, state: TokenState, sender: str, to: str, data: bytes) -> bytes:
        if _addr(to) != _addr(TOKEN_ADDRESS):
            raise Revert("call to non-contract")
        entry = self._functions.get(data[:4])
        if entry is None:
            raise Revert("unknown function")
        types, fn = entry
        args = decode(types, data[4:]) if types else ()
        return fn(state, sender, *args)

    # ---- JSON-RPC ------------------------------------------------------

    def handle(self, request: httpx.Request) -> httpx.Response:
        if self.offline:
            raise httpx.ConnectError("connection refused", request=request)

        payload = json.loads(request.content)
        self.requests.append(payload)
        body: dict[str, Any] = {"jsonrpc": "2.0", "id": payload["id"]}

        handler = getattr(self, "rpc_" + payload["method"], None)
        if handler is None:
            body["error"] = {"code": -32601, "message": "Method not found"}
            return httpx.Response(200, json=body)

        try:
            body["result"] = handler(*payload.get("params", []))
        except Revert as exc:
            revert_data = "0x08c379a0" + encode(["string"], [exc.reason]).hex()
            body["error"] = {
                "code": 3,
                "message": f"execution reverted: {exc.reason}",
                "data": revert_data,
            }
        except NodeError as exc:
            body["error"] = {"code": exc.code, "message": exc.message}
        return httpx.Response(200, json=body)

    def rpc_eth_chainId(self) -> str:
        return hex(CHAIN_ID)

    def rpc_eth_gasPrice(self) -> str:
        return hex(10**9)

    def rpc_eth_getTransactionCount(self, address: str, block: str) -> str:
        return hex(self.nonces[_addr(address)])

    def rpc_eth_call(self, tx: dict[str, Any], block: str = "latest") -> str:
        data = bytes.fromhex(tx["data"][2:])
        sender = tx.get("from") or ZERO
        result = self._execute(copy.deepcopy(self.state), sender, tx["to"], data)
        return "0x" + result.hex()

    def rpc_eth_sendRawTransaction(self, raw_tx: str) -> str:
        raw = bytes.fromhex(raw_tx[2:])
        fields = rlp.decode(raw)
        nonce = int.from_bytes(fields[0], "big")
        to = "0x" + fields[3].hex()
        data = fields[5]
        sender = _addr(Account.recover_transaction(raw_tx))

        if nonce != self.nonces[sender]:
            raise NodeError(-32000, f"nonce too low: expected {self.nonces[sender]}, got {nonce}")

        self.nonces[sender] += 1
        self.block += 1
        tx_hash = "0x" + keccak(raw).hex()

        working = copy.deepcopy(self.state)
        status = 1
        reason: Optional[str] = None
        try:
            self._execute(working, sender, to, data)
            self.state = working
        except Revert as exc:
            status = 0
            reason = exc.reason

        self.receipts[tx_hash] = {
            "transactionHash": tx_hash,
            "blockNumber": hex(self.block),
            "gasUsed": hex(21_000),
            "status": hex(status),
        }
        self._polls[tx_hash] = self.pending_polls

        if reason is not None and self.revert_on_send:
            raise NodeError(-32000, f"VM Exception while processing transaction: revert {reason}")
        return tx_hash

    def rpc_eth_getTransactionReceipt(self, tx_hash: str) -> Optional[dict[str, Any]]:
        if self._polls.get(tx_hash, 0) > 0:
            self._polls[tx_hash] -= 1
            return None
        return self.receipts.get(tx_hash)


class NodeError(Exception):
    def __init__(self, code: int, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


# ============ Fixtures ============


@pytest.fixture()
def node() -> FakeTokenNode:
    return FakeTokenNode()


@pytest.fixture()
def make_sdk(node: FakeTokenNode) -> Callable[..., LoyaltySDK]:
    """Build a LoyaltySDK bound to the fake node."""

    def factory(private_key: str = OWNER_KEY, **kwargs: Any) -> LoyaltySDK:
        kwargs.setdefault("poll_interval", 0.001)
        kwargs.setdefault("confirmation_timeout", 2.0)
        return LoyaltySDK(node.rpc(), private_key, TOKEN_ADDRESS, **kwargs)

    return factory


@pytest.fixture()
def sdk(make_sdk: Callable[..., LoyaltySDK]) -> LoyaltySDK:
    return make_sdk()
