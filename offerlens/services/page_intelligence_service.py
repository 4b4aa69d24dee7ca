"""
PageIntelligenceService - URL in, scored marketing record out.

Pipeline for one URL:
  classify -> cache lookup -> scrape (retry + fallback) -> extract -> score
  -> cache write -> AnalysisResult

Pages that came back content-empty are scored but never cached, so the
next request for the URL scrapes again.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Union

from ..core.config import Config
from ..core.credentials import CredentialStore
from ..core.observability import get_logfire
from .completion_service import default_completion_chain
from .content_extraction import ContentExtractor
from .models import Backend, ScoredResult, ScrapingOutcome, URLAnalysis
from .quality_scorer import QualityScorer
from .result_cache import ResultCache
from .scrape_backends import ApifyBackend, FirecrawlBackend
from .scrape_orchestrator import AUTO, ScrapeOrchestrator
from .url_classifier import classify_url

logger = logging.getLogger(__name__)


@dataclass
class AnalysisResult:
    """Outcome of analyzing one URL."""
    url: str
    success: bool
    outcome: ScrapingOutcome
    scored: Optional[ScoredResult] = None
    error: Optional[str] = None
    from_cache: bool = False

    def to_dict(self) -> Dict[str, Any]:
        outcome = self.outcome
        return {
            "url": self.url,
            "success": self.success,
            "error": self.error,
            "error_kind": outcome.error_kind.value if outcome.error_kind else None,
            "from_cache": self.from_cache,
            "backend_used": outcome.backend_used,
            "is_affiliate_page": outcome.is_affiliate_page,
            "attempts": len(outcome.attempts),
            "processing_time_ms": outcome.processing_time_ms,
            "cost_estimate": outcome.cost_estimate,
            "result": self.scored.to_record() if self.scored else None,
        }


class PageIntelligenceService:
    """
    Orchestrates scrape, extraction and scoring for marketing pages.

    Usage:
        service = build_default_service()
        result = await service.analyze_url("https://example.com/offer")
        if result.success:
            print(result.scored.quality_score)
    """

    def __init__(
        self,
        orchestrator: ScrapeOrchestrator,
        extractor: ContentExtractor,
        scorer: Optional[QualityScorer] = None,
        cache: Optional[ResultCache[ScoredResult]] = None,
        credentials: Optional[CredentialStore] = None,
        batch_delay: Optional[float] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.orchestrator = orchestrator
        self.extractor = extractor
        self.scorer = scorer or QualityScorer()
        self.cache = cache if cache is not None else orchestrator.cache
        self.credentials = credentials
        self.batch_delay = Config.BATCH_DELAY_SECONDS if batch_delay is None else batch_delay
        self._sleep = sleep

    def classify(self, url: str) -> URLAnalysis:
        return classify_url(url)

    async def analyze_url(self, url: str, preferred_backend: Union[str, Backend, None] = AUTO) -> AnalysisResult:
        """
        Analyze one URL end to end.

        Args:
            url: Page URL
            preferred_backend: 'auto', 'fast' or 'deep'

        Returns:
            AnalysisResult; failures are reported, not raised
        """
        lf = get_logfire()
        with lf.span("analyze_url", url=url):
            outcome = await self.orchestrator.scrape_url(url, preferred_backend)

            if not outcome.success:
                logger.warning(f"Analysis failed for {url}: {outcome.error}")
                return AnalysisResult(url=outcome.url, success=False, outcome=outcome, error=outcome.error)

            if outcome.from_cache:
                return AnalysisResult(
                    url=outcome.url, success=True, outcome=outcome, scored=outcome.cached_result, from_cache=True
                )

            data, method = await self.extractor.extract(outcome.page, outcome.is_affiliate_page)
            scored = self.scorer.score(data, outcome.is_affiliate_page, method)

            if self.cache is not None and outcome.page is not None and not outcome.page.content_empty:
                self.cache.put(outcome.url, scored)

        return AnalysisResult(url=outcome.url, success=True, outcome=outcome, scored=scored)

    async def analyze_batch(
        self,
        urls: Iterable[str],
        preferred_backend: Union[str, Backend, None] = AUTO,
    ) -> List[AnalysisResult]:
        """Analyze URLs one at a time, pausing between requests."""
        pending = [u.strip() for u in urls if u and u.strip()]
        results: List[AnalysisResult] = []

        for i, url in enumerate(pending):
            if i > 0 and self.batch_delay > 0:
                await self._sleep(self.batch_delay)
            logger.info(f"[{i + 1}/{len(pending)}] Analyzing {url}")
            results.append(await self.analyze_url(url, preferred_backend))

        succeeded = sum(1 for r in results if r.success)
        logger.info(f"Batch complete: {succeeded}/{len(results)} succeeded")
        return results

    async def check_credentials(self) -> Dict[str, Optional[bool]]:
        """
        Probe every back-end's credential.

        Returns:
            Back-end name -> True/False probe result, or None when no
            credential is configured
        """
        probes = [(b.credential_name, b) for b in self.orchestrator.backends.values()]
        probes += [(c.name, c) for c in self.extractor.completion_clients]

        results: Dict[str, Optional[bool]] = {}
        for name, prober in probes:
            token = self.credentials.get(name) if self.credentials else None
            if not token:
                results[name] = None
                continue
            results[name] = await prober.test_credential(token)
            logger.info(f"Credential probe for {name}: {'ok' if results[name] else 'failed'}")
        return results


def build_default_service(credentials: Optional[CredentialStore] = None) -> PageIntelligenceService:
    """Wire the default back-ends, LLM chain, cache and scorer from Config."""
    credentials = credentials or CredentialStore.from_config()
    cache: ResultCache[ScoredResult] = ResultCache()

    orchestrator = ScrapeOrchestrator(
        [FirecrawlBackend(credentials), ApifyBackend(credentials)],
        cache=cache,
    )
    extractor = ContentExtractor(default_completion_chain(credentials))

    logger.info(f"Service ready; configured back-ends: {', '.join(credentials.configured()) or 'none'}")
    return PageIntelligenceService(
        orchestrator=orchestrator,
        extractor=extractor,
        scorer=QualityScorer(),
        cache=cache,
        credentials=credentials,
    )
