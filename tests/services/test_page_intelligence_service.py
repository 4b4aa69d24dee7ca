"""
Tests for PageIntelligenceService: the end-to-end pipeline with scripted
back-ends, cache behavior, batch pacing and credential probes.

Run with: pytest tests/services/test_page_intelligence_service.py -v
"""

from typing import Any, List
from unittest.mock import AsyncMock, MagicMock

import pytest

from offerlens.core.credentials import CredentialStore
from offerlens.core.exceptions import BackendError
from offerlens.services.completion_service import CompletionClient
from offerlens.services.content_extraction import ContentExtractor
from offerlens.services.models import (
    Backend,
    Confidence,
    ErrorKind,
    UNKNOWN_PRODUCT,
    ExtractionMethod,
    PageMetadata,
    RawPage,
    ScrapeProfile,
)
from offerlens.services.page_intelligence_service import (
    PageIntelligenceService,
    build_default_service,
)
from offerlens.services.result_cache import ResultCache
from offerlens.services.scrape_backends.base import ScrapeBackend
from offerlens.services.scrape_orchestrator import ScrapeOrchestrator

OFFER_URL = "https://example.com/offer"


class ScriptedBackend(ScrapeBackend):
    """Returns (or raises) the same result for every call."""

    def __init__(self, credentials, kind: Backend, name: str, result: Any):
        super().__init__(credentials)
        self.kind = kind
        self.name = name
        self.credential_name = name
        self.cost_per_page = 0.01
        self.max_attempts = 1
        self.result = result
        self.calls: List[str] = []
        self.probe = AsyncMock(return_value=True)

    def default_profile(self, is_affiliate: bool = False) -> ScrapeProfile:
        return ScrapeProfile(is_affiliate=is_affiliate)

    async def scrape(self, url: str, profile: ScrapeProfile) -> RawPage:
        self.credentials.require(self.credential_name)
        self.calls.append(url)
        if isinstance(self.result, Exception):
            raise self.result
        return self.result

    def normalize_response(self, response: Any, url: str) -> RawPage:
        return response

    async def test_credential(self, token: str) -> bool:
        return await self.probe(token)


def _service(credentials, page_or_error, sleep=None, clients=None):
    fast = ScriptedBackend(credentials, Backend.FAST, "firecrawl", page_or_error)
    deep = ScriptedBackend(credentials, Backend.DEEP, "apify", page_or_error)
    cache = ResultCache()
    orchestrator = ScrapeOrchestrator([fast, deep], cache=cache)
    kwargs = {"sleep": sleep} if sleep is not None else {}
    service = PageIntelligenceService(
        orchestrator=orchestrator,
        extractor=ContentExtractor(clients or []),
        cache=cache,
        credentials=credentials,
        batch_delay=1.0,
        **kwargs,
    )
    return service, fast, deep


class TestAnalyzeUrl:

    @pytest.mark.asyncio
    async def test_sales_page_end_to_end(self, credentials, sales_markdown):
        service, fast, deep = _service(credentials, RawPage(markdown=sales_markdown))

        result = await service.analyze_url(OFFER_URL)

        assert result.success is True
        assert result.from_cache is False
        assert fast.calls == [OFFER_URL] and deep.calls == []
        assert result.scored.data.product_name == "Acme Widget"
        assert result.scored.extraction_method == ExtractionMethod.HEURISTIC
        assert result.scored.confidence == Confidence.MEDIUM
        assert result.scored.missing_fields == ["Call-to-Actions"]

    @pytest.mark.asyncio
    async def test_second_request_is_served_from_cache(self, credentials, sales_markdown):
        service, fast, _ = _service(credentials, RawPage(markdown=sales_markdown))

        first = await service.analyze_url(OFFER_URL)
        second = await service.analyze_url(OFFER_URL.upper().replace("HTTPS://EXAMPLE.COM", "https://example.com"))

        assert second.success and second.from_cache
        assert second.scored == first.scored
        assert second.outcome.backend_used == "cache"
        assert len(fast.calls) == 1

    @pytest.mark.asyncio
    async def test_content_empty_pages_are_not_cached(self, credentials):
        service, fast, _ = _service(
            credentials, RawPage(markdown="   ", metadata=PageMetadata(title="Acme Store | Home"))
        )

        first = await service.analyze_url(OFFER_URL)
        await service.analyze_url(OFFER_URL)

        assert first.success is True
        assert first.outcome.page.content_empty is True
        assert first.scored.confidence == Confidence.LOW
        assert first.scored.data.product_name == UNKNOWN_PRODUCT
        assert len(fast.calls) == 2
        assert len(service.cache) == 0

    @pytest.mark.asyncio
    async def test_llm_result_flows_through(self, credentials):
        client = MagicMock(spec=CompletionClient)
        client.name = "openrouter"
        client.enabled = True
        client.complete = AsyncMock(
            return_value='{"productName": "Acme Widget", "headlines": ["A", "B"], '
                         '"benefits": ["One", "Two"], "ctas": ["Order Now"], "category": "software"}'
        )
        service, _, _ = _service(credentials, RawPage(markdown="Acme page"), clients=[client])

        result = await service.analyze_url(OFFER_URL)

        assert result.scored.extraction_method == ExtractionMethod.LLM
        assert result.to_dict()["result"]["category"] == "software"

    @pytest.mark.asyncio
    async def test_invalid_url(self, credentials):
        service, fast, _ = _service(credentials, RawPage(markdown="x"))

        result = await service.analyze_url("not a url")

        assert result.success is False
        assert result.scored is None
        assert result.to_dict()["error_kind"] == ErrorKind.INVALID_URL.value
        assert fast.calls == []

    @pytest.mark.asyncio
    async def test_backend_failure_is_reported(self, credentials):
        service, fast, deep = _service(credentials, BackendError("503", code="request_failed"))

        result = await service.analyze_url(OFFER_URL)

        assert result.success is False
        assert result.outcome.error_kind == ErrorKind.BACKEND_ERROR
        assert len(fast.calls) == 1 and len(deep.calls) == 1


class TestAnalyzeBatch:

    @pytest.mark.asyncio
    async def test_delay_between_urls_only(self, credentials, sales_markdown, no_sleep):
        service, fast, _ = _service(credentials, RawPage(markdown=sales_markdown), sleep=no_sleep)

        results = await service.analyze_batch(["https://a.com/x", "  ", "https://b.com/y"])

        assert [r.url for r in results] == ["https://a.com/x", "https://b.com/y"]
        assert all(r.success for r in results)
        assert no_sleep.delays == [1.0]

    @pytest.mark.asyncio
    async def test_failures_do_not_stop_the_batch(self, credentials, sales_markdown, no_sleep):
        service, _, _ = _service(credentials, RawPage(markdown=sales_markdown), sleep=no_sleep)

        results = await service.analyze_batch(["ftp://bad", "https://a.com/x"])

        assert [r.success for r in results] == [False, True]


class TestCheckCredentials:

    @pytest.mark.asyncio
    async def test_probes_configured_backends_only(self):
        credentials = CredentialStore({"firecrawl": "fc-key", "openrouter": "sk-or-key"})
        client = MagicMock(spec=CompletionClient)
        client.name = "openrouter"
        client.test_credential = AsyncMock(return_value=False)
        service, fast, deep = _service(credentials, RawPage(markdown="x"), clients=[client])

        results = await service.check_credentials()

        assert results == {"firecrawl": True, "apify": None, "openrouter": False}
        fast.probe.assert_awaited_once_with("fc-key")
        deep.probe.assert_not_awaited()
        client.test_credential.assert_awaited_once_with("sk-or-key")


def test_build_default_service(credentials):
    service = build_default_service(credentials)

    assert set(service.orchestrator.backends) == {Backend.FAST, Backend.DEEP}
    assert [c.name for c in service.extractor.completion_clients] == ["openrouter", "perplexity"]
    assert service.cache is service.orchestrator.cache
