"""
Shared fixtures for OfferLens tests.

No test touches the network: remote clients are mocked and sleeps are
replaced with recording no-ops.
"""

from typing import List

import pytest

from offerlens.core.credentials import CredentialStore


class RecordingSleep:
    """Awaitable stand-in for asyncio.sleep that records requested delays."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def no_sleep():
    return RecordingSleep()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def credentials():
    """Store with every back-end configured."""
    return CredentialStore({
        "firecrawl": "fc-test-key",
        "apify": "apify_api_test",
        "openrouter": "sk-or-test",
        "perplexity": "pplx-test",
    })


@pytest.fixture
def empty_credentials():
    return CredentialStore()


SCENARIO_A_MARKDOWN = (
    "# Acme Widget\n"
    "Get amazing results in 30 days.\n"
    "\"This changed my life!\" - Jane\n"
    "$49 only today\n"
    "60-day money-back guarantee"
)


@pytest.fixture
def sales_markdown():
    return SCENARIO_A_MARKDOWN
