"""
Chain - On-chain interaction layer for the LoyaltySDK.

Provides the async JSON-RPC client, ABI handling, the contract proxy and
the transaction lifecycle for one deployed LoyaltyToken contract.

Uses httpx + eth-account + eth-abi instead of the heavyweight web3.py.
"""
