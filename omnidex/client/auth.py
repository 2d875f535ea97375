"""
Marketplace authentication placeholder.

The public marketplace needs no login; this only keeps a user-supplied token
around so a later authenticated flow has somewhere to read it from.
"""
import logging
from typing import Optional


logger = logging.getLogger(__name__)


class MarketplaceAuth:
    def __init__(self, token: Optional[str] = None):
        self._token = token

    @property
    def is_authenticated(self) -> bool:
        return bool(self._token)

    @property
    def token(self) -> Optional[str]:
        return self._token

    def set_token(self, token: str) -> None:
        if not token or not token.strip():
            raise ValueError("Token must not be empty")
        logger.info("Setting marketplace authentication token")
        self._token = token.strip()

    def clear(self) -> None:
        logger.info("Clearing marketplace authentication")
        self._token = None

    @staticmethod
    def instructions() -> str:
        return (
            "The marketplace product pages, search and product API are public.\n"
            "No account is needed for scanning or matching. If a token is ever\n"
            "required, set OMNIDEX_MARKETPLACE_TOKEN in the environment or .env file."
        )
