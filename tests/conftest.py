"""
Shared fixtures: a scripted stand-in for requests.Session and a client
factory wired to it. Nothing here touches the network.
"""
import random
from typing import Callable, Union

import pytest

from omnidex.client import MarketplaceClient, MarketplaceHttpClient, RequestPacer
from omnidex.config import HttpConfig, MarketplaceConfig
from omnidex.models.selectors import DEFAULT_SELECTORS


BASE_URL = "https://orbital-market.com"


class FakeResponse:
    def __init__(self, status_code: int = 200, text: str = ""):
        self.status_code = status_code
        self.text = text


Route = Callable[[str], Union[FakeResponse, Exception]]


class FakeSession:
    """Answers GETs from `route(url)`; an Exception result is raised."""

    def __init__(self, route: Route):
        self.route = route
        self.calls: list[dict] = []
        self.closed = False

    def get(self, url, headers=None, timeout=None, allow_redirects=True):
        self.calls.append({"url": url, "headers": headers, "timeout": timeout})
        result = self.route(url)
        if isinstance(result, Exception):
            raise result
        return result

    def close(self):
        self.closed = True

    @property
    def urls(self) -> list[str]:
        return [call["url"] for call in self.calls]


async def no_sleep(seconds: float) -> None:
    return None


@pytest.fixture
def base_url() -> str:
    return BASE_URL


@pytest.fixture
def marketplace_config() -> MarketplaceConfig:
    return MarketplaceConfig(base_url=BASE_URL)


@pytest.fixture
def http_config() -> HttpConfig:
    return HttpConfig()


@pytest.fixture
def response():
    """Factory for fake responses: response(404) or response(200, "<html>")."""
    return FakeResponse


@pytest.fixture
def fake_session():
    """The FakeSession class, for tests that wire a client by hand."""
    return FakeSession


@pytest.fixture
def sequence_route():
    """Route that returns the given responses in order, whatever the URL."""
    def build(*responses):
        remaining = list(responses)

        def route(url):
            return remaining.pop(0)
        return route
    return build


@pytest.fixture
def make_http():
    def build(route: Route, http_config: HttpConfig = None):
        session = FakeSession(route)
        pacer = RequestPacer(referer=BASE_URL, rng=random.Random(7))
        http = MarketplaceHttpClient(
            pacer,
            base_url=BASE_URL,
            http_config=http_config or HttpConfig(),
            session=session,
            sleep=no_sleep,
        )
        return http, session
    return build


@pytest.fixture
def make_client(make_http, marketplace_config):
    """make_client(route) -> (MarketplaceClient, FakeSession)"""
    def build(route: Route, selectors=None):
        http, session = make_http(route)
        client = MarketplaceClient(
            http,
            selectors=selectors or DEFAULT_SELECTORS,
            marketplace=marketplace_config,
            http_config=http.http_config,
        )
        return client, session
    return build
