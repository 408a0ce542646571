"""Solana wallet proxy package.

Read-only aggregation service that merges on-chain token balances with
USD price feeds and normalizes recent buy trades for a token or wallet.
"""

__version__ = "0.1.0"
__author__ = "Solana Wallet Proxy Developers"
__email__ = "dev@example.com"
