"""
Identity - the signing account a LoyaltySDK client acts for.
"""
