"""
Rate-limited marketplace HTTP client with retry logic.
"""
import asyncio
import logging
import threading
from typing import Awaitable, Callable, Optional
from urllib.parse import urlsplit

import requests
from requests.adapters import HTTPAdapter
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_none,
)

from ..config import HttpConfig, get_config
from ..errors import ClientFetchError, FetchError, TransientFetchError
from .pacing import RequestPacer


logger = logging.getLogger(__name__)

Sleeper = Callable[[float], Awaitable[None]]


def _log_retry(retry_state: RetryCallState) -> None:
    error = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(f"Retry attempt {retry_state.attempt_number} failed: {error}")


class MarketplaceHttpClient:
    """
    One long-lived session shared by every scan in the process.

    Every attempt, the first one included, waits for the pacer's delay
    before going out. Transport errors, 5xx and 429 are retried up to
    `max_attempts`; any other non-success status fails straight away.
    """

    def __init__(
        self,
        pacer: RequestPacer,
        base_url: Optional[str] = None,
        http_config: Optional[HttpConfig] = None,
        session: Optional[requests.Session] = None,
        sleep: Sleeper = asyncio.sleep,
    ):
        config = get_config()
        self.http_config = http_config or config.http
        self.base_url = (base_url or config.marketplace.base_url).rstrip("/")
        self.pacer = pacer
        self.session = session or self._build_session(self.http_config)
        self.timeout = (self.http_config.connect_timeout, self.http_config.request_timeout)
        self._sleep = sleep
        self._visited_hosts: set[str] = set()
        self._visited_lock = threading.Lock()
        logger.info("MarketplaceHttpClient initialized")

    @staticmethod
    def _build_session(http_config: HttpConfig) -> requests.Session:
        session = requests.Session()
        adapter = HTTPAdapter(
            pool_connections=http_config.pool_maxsize,
            pool_maxsize=http_config.pool_maxsize,
            max_retries=0,
        )
        session.mount("https://", adapter)
        session.mount("http://", adapter)
        session.max_redirects = http_config.max_redirects
        return session

    def _is_first_visit(self, url: str) -> bool:
        """First request to this host, or a request for the bare home page."""
        if url.rstrip("/") == self.base_url:
            return True
        host = urlsplit(url).netloc.lower()
        with self._visited_lock:
            first = host not in self._visited_hosts
            self._visited_hosts.add(host)
        return first

    async def fetch(
        self,
        url: str,
        max_attempts: Optional[int] = None,
        accept: Optional[str] = None,
    ) -> str:
        """
        GET `url` and return the body text.

        Raises:
            ClientFetchError: non-retryable status, after one attempt
            FetchError: every attempt failed with a retryable error
        """
        attempts = self.http_config.default_max_attempts if max_attempts is None else max_attempts
        if attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        retrying = AsyncRetrying(
            stop=stop_after_attempt(attempts),
            wait=wait_none(),
            retry=retry_if_exception_type(TransientFetchError),
            before_sleep=_log_retry,
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    return await self._attempt(url, attempt.retry_state.attempt_number, accept)
        except TransientFetchError as e:
            raise FetchError(
                url,
                f"Failed to fetch URL {url} after {attempts} attempts: {e}",
                status_code=e.status_code,
                attempts=attempts,
            ) from e
        # AsyncRetrying either returns from the block above or raises
        raise FetchError(url, f"Failed to fetch URL {url}", attempts=attempts)

    async def _attempt(self, url: str, attempt_number: int, accept: Optional[str]) -> str:
        await self._sleep(self.pacer.next_delay())

        user_agent = self.pacer.user_agent()
        headers = self.pacer.browser_headers(user_agent, self._is_first_visit(url), accept)

        logger.info(f"Attempt {attempt_number} to fetch URL: {url}")
        try:
            response = await asyncio.to_thread(
                self.session.get,
                url,
                headers=headers,
                timeout=self.timeout,
                allow_redirects=True,
            )
        except requests.TooManyRedirects as e:
            raise ClientFetchError(url, f"Too many redirects for {url}: {e}", attempts=attempt_number) from e
        except requests.RequestException as e:
            logger.warning(f"Network error fetching URL {url}: {e}")
            raise TransientFetchError(url, f"Network error: {e}", attempts=attempt_number) from e

        status = response.status_code
        if 200 <= status < 300:
            logger.info(f"Successfully fetched URL: {url} with status: {status}")
            return response.text

        if status >= 500 or status == 429:
            logger.warning(f"Server error ({status}) for URL: {url}")
            raise TransientFetchError(url, f"Server error status {status}", status_code=status, attempts=attempt_number)

        logger.warning(f"Client error ({status}) for URL: {url}. Not retrying.")
        raise ClientFetchError(
            url,
            f"Failed to fetch URL {url}: client error status {status}",
            status_code=status,
            attempts=attempt_number,
        )

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "MarketplaceHttpClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
