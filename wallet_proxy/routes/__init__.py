"""HTTP routes for the wallet proxy."""

from wallet_proxy.routes.birdeye import router as birdeye_router
from wallet_proxy.routes.buys import router as buys_router
from wallet_proxy.routes.system import router as system_router
from wallet_proxy.routes.wallet import router as wallet_router

__all__ = [
    'birdeye_router',
    'buys_router',
    'system_router',
    'wallet_router',
]
