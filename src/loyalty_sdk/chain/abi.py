"""
ABI handling for the LoyaltyToken contract.

Ships the LoyaltyToken ABI (ERC-20 + allowance helpers + Ownable) and can
load an ABI from a Truffle build artifact (build/contracts/*.json).
Encoding and decoding go through eth-abi.
"""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError, EncodingError
from eth_hash.auto import keccak

from ..errors import AbiError


def _fn(name: str, inputs: list[tuple[str, str]], outputs: list[str], mutability: str) -> dict[str, Any]:
    return {
        "type": "function",
        "name": name,
        "inputs": [{"name": n, "type": t} for n, t in inputs],
        "outputs": [{"name": "", "type": t} for t in outputs],
        "stateMutability": mutability,
    }


LOYALTY_TOKEN_ABI: list[dict[str, Any]] = [
    _fn("name", [], ["string"], "view"),
    _fn("symbol", [], ["string"], "view"),
    _fn("decimals", [], ["uint8"], "view"),
    _fn("totalSupply", [], ["uint256"], "view"),
    _fn("balanceOf", [("account", "address")], ["uint256"], "view"),
    _fn("allowance", [("owner", "address"), ("spender", "address")], ["uint256"], "view"),
    _fn("owner", [], ["address"], "view"),
    _fn("transfer", [("to", "address"), ("amount", "uint256")], ["bool"], "nonpayable"),
    _fn("approve", [("spender", "address"), ("amount", "uint256")], ["bool"], "nonpayable"),
    _fn(
        "transferFrom",
        [("from", "address"), ("to", "address"), ("amount", "uint256")],
        ["bool"],
        "nonpayable",
    ),
    _fn(
        "increaseAllowance",
        [("spender", "address"), ("addedValue", "uint256")],
        ["bool"],
        "nonpayable",
    ),
    _fn(
        "decreaseAllowance",
        [("spender", "address"), ("subtractedValue", "uint256")],
        ["bool"],
        "nonpayable",
    ),
    _fn("transferOwnership", [("newOwner", "address")], [], "nonpayable"),
]

# Error(string) and Panic(uint256) selectors used by Solidity >= 0.8
ERROR_SELECTOR = bytes.fromhex("08c379a0")
PANIC_SELECTOR = bytes.fromhex("4e487b71")


def _find_build_contracts() -> Path:
    """
    Locate the Truffle build/contracts/ directory.

    Searches from the current working directory upward.
    """
    current = Path.cwd().resolve()
    for parent in [current, *current.parents]:
        candidate = parent / "build" / "contracts"
        if candidate.is_dir():
            return candidate
    raise FileNotFoundError(
        "Cannot find build/contracts/. Run 'truffle compile' in the contract project."
    )


@lru_cache(maxsize=16)
def load_abi(contract_name: str = "LoyaltyToken", artifact_path: Optional[Path] = None) -> list[dict[str, Any]]:
    """
    Load a contract ABI from a Truffle build artifact.

    Args:
        contract_name: Contract name (e.g., "LoyaltyToken")
        artifact_path: Explicit artifact JSON path (default: build/contracts/<name>.json)

    Returns:
        ABI as a list of dicts

    Raises:
        FileNotFoundError: If the artifact is not found
        AbiError: If the artifact carries no ABI
    """
    path = artifact_path or _find_build_contracts() / f"{contract_name}.json"
    if not path.exists():
        raise FileNotFoundError(f"ABI artifact not found: {path}")

    with path.open("r", encoding="utf-8") as f:
        artifact = json.load(f)

    abi = artifact.get("abi") if isinstance(artifact, dict) else artifact
    if not isinstance(abi, list):
        raise AbiError(f"No ABI in artifact {path}")
    return abi


def find_function(abi: list[dict[str, Any]], function_name: str) -> dict[str, Any]:
    for entry in abi:
        if entry.get("type") == "function" and entry.get("name") == function_name:
            return entry
    raise AbiError(f"Function {function_name} not found in ABI")


def function_selector(function_name: str, input_types: list[str]) -> bytes:
    # NOTE: Keccak-256 != SHA3-256 (NIST). Never use hashlib.sha3_256 here.
    sig = f"{function_name}({','.join(input_types)})"
    return keccak(sig.encode("utf-8"))[:4]


def encode_call(abi: list[dict[str, Any]], function_name: str, args: list[Any]) -> str:
    """
    ABI-encode a function call.

    Returns:
        0x-prefixed hex calldata
    """
    func = find_function(abi, function_name)
    input_types = [inp["type"] for inp in func.get("inputs", [])]
    if len(args) != len(input_types):
        raise AbiError(
            f"{function_name} expects {len(input_types)} arguments, got {len(args)}"
        )

    selector = function_selector(function_name, input_types)
    try:
        encoded_args = encode(input_types, list(args)) if args else b""
    except EncodingError as exc:
        raise AbiError(f"Cannot encode arguments for {function_name}: {exc}") from exc

    return "0x" + selector.hex() + encoded_args.hex()


def decode_result(abi: list[dict[str, Any]], function_name: str, data: str) -> Any:
    """
    ABI-decode a function call result.

    Returns:
        A single value, a tuple for multiple outputs, or None without outputs
    """
    func = find_function(abi, function_name)
    output_types = [out["type"] for out in func.get("outputs", [])]
    if not output_types:
        return None

    raw = bytes.fromhex(data[2:] if data.startswith("0x") else data)
    try:
        decoded = decode(output_types, raw)
    except DecodingError as exc:
        raise AbiError(f"Cannot decode result of {function_name}: {exc}") from exc

    if len(decoded) == 1:
        return decoded[0]
    return decoded


def decode_revert_reason(data: Any) -> Optional[str]:
    """
    Decode revert data returned by a node.

    Handles Error(string) and Panic(uint256) payloads. Returns None when the
    payload carries no reason.
    """
    if not isinstance(data, str) or not data.startswith("0x"):
        return None
    try:
        raw = bytes.fromhex(data[2:])
    except ValueError:
        return None

    selector, payload = raw[:4], raw[4:]
    try:
        if selector == ERROR_SELECTOR:
            return decode(["string"], payload)[0]
        if selector == PANIC_SELECTOR:
            return f"panic code {hex(decode(['uint256'], payload)[0])}"
    except DecodingError:
        return None
    return None
