"""
ScrapeOrchestrator - Pick a back-end, retry with backoff, fall back once.

Flow for one URL:
  validate -> cache lookup -> resolve back-end (classifier or caller choice)
  -> up to N attempts on the primary (1s, 2s, ... between attempts)
  -> exactly one attempt on the alternate back-end
  -> ScrapingOutcome (never raises for network-class failures)

Successful scrapes that return no content still succeed, carrying a
placeholder RawPage so the pipeline can produce a low-quality result
instead of aborting.
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Dict, Iterable, List, Optional, Union

from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..core.exceptions import BackendError, BackendTimeout, CredentialMissing, InvalidURL
from ..core.observability import get_logfire
from .models import (
    AttemptRecord,
    Backend,
    ErrorKind,
    RawPage,
    ScoredResult,
    ScrapeProfile,
    ScrapingOutcome,
    URLAnalysis,
)
from .result_cache import ResultCache
from .scrape_backends.base import ScrapeBackend
from .url_classifier import classify_url

logger = logging.getLogger(__name__)

AUTO = "auto"

# Accepted spellings for an explicit back-end choice
_BACKEND_ALIASES: Dict[str, Backend] = {
    "fast": Backend.FAST,
    "firecrawl": Backend.FAST,
    "deep": Backend.DEEP,
    "apify": Backend.DEEP,
}


def resolve_preferred_backend(preferred: Union[str, Backend, None], analysis: URLAnalysis) -> Backend:
    """'auto' (or None) defers to the classifier; anything else is the caller's choice."""
    if isinstance(preferred, Backend):
        return preferred
    choice = (preferred or AUTO).strip().lower()
    if choice == AUTO:
        return analysis.recommended_backend
    if choice not in _BACKEND_ALIASES:
        raise ValueError(f"Unknown back-end '{preferred}'. Use auto, fast or deep.")
    return _BACKEND_ALIASES[choice]


def _error_kind(error: Exception) -> ErrorKind:
    if isinstance(error, CredentialMissing):
        return ErrorKind.CREDENTIAL_MISSING
    if isinstance(error, BackendTimeout):
        return ErrorKind.TIMEOUT
    return ErrorKind.BACKEND_ERROR


class ScrapeOrchestrator:
    """
    Drives the scrape back-ends for a single URL.

    Usage:
        orchestrator = ScrapeOrchestrator([firecrawl, apify], cache=cache)
        outcome = await orchestrator.scrape_url("https://example.com/offer")
        if outcome.success:
            page = outcome.page
    """

    def __init__(
        self,
        backends: Iterable[ScrapeBackend],
        cache: Optional[ResultCache[ScoredResult]] = None,
        max_attempts: Optional[Dict[Backend, int]] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """
        Args:
            backends: One adapter per Backend kind (fast and deep)
            cache: Result cache consulted before scraping
            max_attempts: Per-kind retry budget override (defaults come from each adapter)
            sleep: Awaitable sleep used between attempts, replaceable in tests
        """
        self.backends: Dict[Backend, ScrapeBackend] = {b.kind: b for b in backends}
        missing = [kind.value for kind in Backend if kind not in self.backends]
        if missing:
            raise ValueError(f"No adapter configured for back-end(s): {', '.join(missing)}")

        self.cache = cache
        self.max_attempts = max_attempts or {}
        self._sleep = sleep

    def _attempt_budget(self, adapter: ScrapeBackend) -> int:
        return max(1, self.max_attempts.get(adapter.kind, getattr(adapter, "max_attempts", 3)))

    async def scrape_url(self, url: str, preferred_backend: Union[str, Backend, None] = AUTO) -> ScrapingOutcome:
        """
        Scrape a URL with retry and fallback.

        Args:
            url: Page URL
            preferred_backend: 'auto', 'fast' or 'deep'

        Returns:
            ScrapingOutcome. On a cache hit, ``cached_result`` carries the
            previously scored result and no back-end is called.
        """
        start = time.monotonic()

        try:
            analysis = classify_url(url)
        except InvalidURL as e:
            logger.warning(f"Rejected URL: {e}")
            return ScrapingOutcome(
                success=False, url=url, error=str(e), error_kind=ErrorKind.INVALID_URL
            )

        url = analysis.url

        if self.cache is not None:
            cached = self.cache.get(url)
            if cached is not None:
                logger.info(f"Cache hit for {url}")
                return ScrapingOutcome(
                    success=True,
                    url=url,
                    backend_used="cache",
                    is_affiliate_page=analysis.is_affiliate,
                    cached_result=cached,
                )

        primary = self.backends[resolve_preferred_backend(preferred_backend, analysis)]
        logger.info(f"Using {primary.name} for {url} ({analysis.reasoning})")

        attempts: List[AttemptRecord] = []
        lf = get_logfire()

        with lf.span("scrape_url", url=url, backend=primary.kind.value):
            try:
                page = await self._scrape_with_retries(primary, url, analysis, attempts)
                used, backend_used = primary, primary.kind.value

            except CredentialMissing as e:
                logger.error(f"Cannot scrape {url}: {e}")
                return self._failure(url, analysis, e, attempts, start)

            except BackendError as primary_error:
                fallback = self.backends[primary.kind.alternate]
                if not fallback.enabled:
                    logger.warning(f"{primary.name} exhausted and {fallback.name} has no credential; giving up on {url}")
                    return self._failure(url, analysis, primary_error, attempts, start)

                logger.warning(f"{primary.name} failed after {len(attempts)} attempt(s), trying {fallback.name} fallback...")
                try:
                    page = await self._attempt(
                        fallback, url, fallback.default_profile(analysis.is_affiliate), 1, attempts, is_fallback=True
                    )
                except (BackendError, CredentialMissing) as fallback_error:
                    logger.error(f"Fallback {fallback.name} also failed for {url}: {fallback_error}")
                    return self._failure(url, analysis, fallback_error, attempts, start)

                used, backend_used = fallback, f"{fallback.kind.value}-fallback"

        if not page.has_content:
            logger.warning(f"{used.name} returned no content for {url}; using placeholder page")
            page = RawPage.placeholder(page.metadata)

        elapsed_ms = int((time.monotonic() - start) * 1000)
        logger.info(f"Scraped {url} via {backend_used} in {elapsed_ms}ms ({len(attempts)} attempt(s))")

        return ScrapingOutcome(
            success=True,
            url=url,
            page=page,
            backend_used=backend_used,
            is_affiliate_page=analysis.is_affiliate,
            attempts=attempts,
            processing_time_ms=elapsed_ms,
            cost_estimate=used.cost_per_page,
        )

    async def _scrape_with_retries(
        self,
        adapter: ScrapeBackend,
        url: str,
        analysis: URLAnalysis,
        attempts: List[AttemptRecord],
    ) -> RawPage:
        """Up to N attempts on one back-end with exponential backoff (1s, 2s, 4s...)."""
        profile = adapter.default_profile(analysis.is_affiliate)

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._attempt_budget(adapter)),
            wait=wait_exponential(multiplier=1),
            retry=retry_if_exception_type(BackendError),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            sleep=self._sleep,
            reraise=True,
        )

        async for attempt in retrying:
            with attempt:
                page = await self._attempt(
                    adapter, url, profile, attempt.retry_state.attempt_number, attempts
                )
        return page

    async def _attempt(
        self,
        adapter: ScrapeBackend,
        url: str,
        profile: ScrapeProfile,
        number: int,
        attempts: List[AttemptRecord],
        is_fallback: bool = False,
    ) -> RawPage:
        """Single call against one back-end, recorded in ``attempts``."""
        record = AttemptRecord(
            backend=adapter.kind, provider=adapter.name, attempt=number, success=False, is_fallback=is_fallback
        )
        try:
            page = await adapter.scrape(url, profile)
        except CredentialMissing:
            raise
        except BackendError as e:
            record.error = str(e)
            attempts.append(record)
            logger.warning(f"{adapter.name} attempt {number} failed for {url}: {e}")
            raise

        record.success = True
        attempts.append(record)
        return page

    def _failure(
        self,
        url: str,
        analysis: URLAnalysis,
        error: Exception,
        attempts: List[AttemptRecord],
        start: float,
    ) -> ScrapingOutcome:
        return ScrapingOutcome(
            success=False,
            url=url,
            error=str(error),
            error_kind=_error_kind(error),
            is_affiliate_page=analysis.is_affiliate,
            attempts=attempts,
            processing_time_ms=int((time.monotonic() - start) * 1000),
        )
