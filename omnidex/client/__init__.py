"""
Marketplace access: request pacing, HTTP transport and the marketplace client.
"""

from .auth import MarketplaceAuth
from .http import MarketplaceHttpClient
from .marketplace import MarketplaceClient
from .pacing import RequestPacer, USER_AGENTS

__all__ = [
    "MarketplaceAuth",
    "MarketplaceClient",
    "MarketplaceHttpClient",
    "RequestPacer",
    "USER_AGENTS",
]
