"""
Request pacing - delay schedule, user-agent rotation and browser-like headers.

One pacer is shared by every component that talks to the marketplace, so
concurrent scans draw from the same counter and the pacing stays global.
"""
import itertools
import random
from typing import Optional


# Base delay in milliseconds, indexed by request counter modulo 10
BASE_DELAY_SCHEDULE_MS = (1000, 1500, 2000, 2500, 2500, 3000, 3000, 3500, 3500, 4000)

USER_AGENTS = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:132.0) Gecko/20100101 Firefox/132.0",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10.15; rv:132.0) Gecko/20100101 Firefox/132.0",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.1 Safari/605.1.15",
)

DEFAULT_ACCEPT = "application/json, text/plain, */*"


class RequestPacer:
    """
    Deterministic pattern, random exact timing.

    `next_delay()` advances an internal counter; the delay and the current
    user agent are pure functions of that counter (plus jitter).
    """

    def __init__(
        self,
        referer: str,
        min_delay_ms: int = 800,
        jitter: float = 0.2,
        rng: Optional[random.Random] = None,
    ):
        self.referer = referer
        self.min_delay_ms = min_delay_ms
        self.jitter = jitter
        self._rng = rng or random.Random()
        self._counter = itertools.count()
        self._issued = 0

    @property
    def request_count(self) -> int:
        return self._issued

    def next_delay(self) -> float:
        """Advance the counter and return the pre-request delay in seconds."""
        count = next(self._counter)
        self._issued = count + 1
        return self.delay_for(count)

    def delay_for(self, count: int) -> float:
        base_delay = BASE_DELAY_SCHEDULE_MS[count % len(BASE_DELAY_SCHEDULE_MS)]
        offset = (self._rng.random() - 0.5) * 2 * self.jitter * base_delay
        return max(base_delay + offset, self.min_delay_ms) / 1000.0

    def user_agent(self) -> str:
        """User agent for the current counter value."""
        return USER_AGENTS[self._issued % len(USER_AGENTS)]

    def browser_headers(
        self,
        user_agent: str,
        first_visit: bool,
        accept: Optional[str] = None,
    ) -> dict[str, str]:
        """Headers that look like the browser family named by `user_agent`."""
        headers = {
            "User-Agent": user_agent,
            "Accept": accept or DEFAULT_ACCEPT,
            "Accept-Language": "en-US,en;q=0.9",
            "Cache-Control": "no-cache",
        }
        if not first_visit:
            headers["Referer"] = self.referer

        if "Chrome" in user_agent:
            headers["Sec-Fetch-Dest"] = "empty" if accept is None else "document"
            headers["Sec-Fetch-Mode"] = "cors" if accept is None else "navigate"
            headers["Sec-Fetch-Site"] = "same-origin"
        elif "Firefox" in user_agent:
            headers["Accept-Language"] = "en-US,en;q=0.5"
            headers["DNT"] = "1"
        return headers
