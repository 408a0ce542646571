"""Upstream clients for the wallet proxy.

This package provides the HTTP clients for the Solana RPC node, the Jupiter
price/token-list APIs and the Birdeye price/trade APIs.
"""

from wallet_proxy.clients.base_client import BaseHttpClient
from wallet_proxy.clients.birdeye_client import BirdeyeClient
from wallet_proxy.clients.jupiter_client import JupiterClient
from wallet_proxy.clients.rpc_client import SolanaRpcClient

__all__ = [
    'BaseHttpClient',
    'BirdeyeClient',
    'JupiterClient',
    'SolanaRpcClient',
]
