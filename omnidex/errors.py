"""
Exception hierarchy for Omnidex.
"""
from typing import Optional


class OmnidexError(Exception):
    """Base class for all Omnidex errors."""


class FetchError(OmnidexError):
    """A marketplace request failed for good."""

    def __init__(
        self,
        url: str,
        message: str,
        status_code: Optional[int] = None,
        attempts: int = 1,
    ):
        self.url = url
        self.status_code = status_code
        self.attempts = attempts
        super().__init__(message)


class TransientFetchError(FetchError):
    """Transport error, 5xx or 429. Worth another attempt."""


class ClientFetchError(FetchError):
    """Non-retryable response (4xx other than 429)."""


class ListingParseError(OmnidexError):
    """Payload could not be read as the expected product envelope."""

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Could not parse listing from {source}: {reason}")


class StorageError(OmnidexError):
    """Persistence failure, with the operation and asset it concerned."""

    def __init__(self, operation: str, target: object, cause: Optional[BaseException] = None):
        self.operation = operation
        self.target = target
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Storage operation '{operation}' failed for {target}{detail}")


class ManualMatchError(OmnidexError):
    """User-facing validation failure of a manual match request."""


class ScanCancelled(OmnidexError):
    def __init__(self, location_id: int):
        self.location_id = location_id
        super().__init__(f"Scan cancelled by user for location {location_id}")


class ScanAlreadyRunning(OmnidexError):
    def __init__(self, location_id: int):
        self.location_id = location_id
        super().__init__(f"A scan is already running for location {location_id}")
