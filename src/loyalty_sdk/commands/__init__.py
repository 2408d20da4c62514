"""
Commands - CLI command implementations for the LoyaltySDK.

- token: balance, allowance, owner, info and the transaction commands
"""
