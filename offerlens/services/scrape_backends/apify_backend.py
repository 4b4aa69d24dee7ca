"""
ApifyBackend - Deep (headless browser) back-end using an Apify actor.

Runs a Puppeteer page function that renders the page, waits for JS, and
pulls persuasion elements out of the DOM with CSS selectors. The arrays it
returns become RawPage.structured_json (DOM-derived, not LLM-derived), the
page's visible text becomes RawPage.markdown.

Two variants:
- ApifyBackend: submits a job, polls its status every 3s up to a bounded
  number of attempts, then reads the first dataset item
- ApifySyncBackend: lets the Apify API wait for the run server-side
"""

import asyncio
import json
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx
from apify_client import ApifyClientAsync

from ...core.config import Config
from ...core.credentials import APIFY, CredentialStore
from ...core.exceptions import BackendError, BackendTimeout, JobFailed
from ..models import Backend, PageMetadata, RawPage, ScrapeProfile
from .base import ScrapeBackend

logger = logging.getLogger(__name__)

APIFY_BASE_URL = "https://api.apify.com/v2"

# Keys the page function returns that are DOM-selected persuasion elements
STRUCTURED_KEYS = (
    "productName", "headlines", "testimonials", "pricing", "benefits",
    "ctas", "guarantees", "socialProof",
)

FAILED_STATUSES = ("FAILED", "ABORTED", "TIMED-OUT")

PAGE_FUNCTION = """
async function pageFunction(context) {
    const { page, customData } = context;
    const settings = customData || {};

    await new Promise(resolve => setTimeout(resolve, settings.waitMs || 3000));

    const texts = (selector, limit) => page.$$eval(selector,
        (els, max) => els.map(el => (el.textContent || el.value || '').trim()).filter(Boolean).slice(0, max),
        limit);

    return {
        url: page.url(),
        title: await page.title(),
        description: await page.$eval('meta[name="description"]', el => el.content).catch(() => ''),
        bodyText: await page.evaluate(() => document.body ? document.body.innerText : ''),
        html: settings.includeHtml ? await page.content() : '',
        headlines: await texts('h1, h2, .headline, [class*="hero"], [class*="title"]', 10),
        testimonials: await texts('.testimonial, [class*="testimonial"], [class*="review"], [class*="feedback"], [class*="quote"]', 10),
        pricing: await texts('.price, [class*="price"], [class*="cost"], [class*="money"], [class*="dollar"]', 5),
        benefits: await texts('.benefit, [class*="feature"], li, [class*="advantage"]', 15),
        ctas: await texts('button, .btn, [class*="cta"], [class*="button"], input[type="submit"]', 8),
        guarantees: await texts('[class*="guarantee"], [class*="refund"], [class*="risk"]', 5),
        socialProof: await texts('[class*="social"], [class*="proof"], [class*="rating"], [class*="star"]', 5),
    };
}
"""


class ApifyBackend(ScrapeBackend):
    """
    Apify adapter using job submission and status polling.

    Example usage:
        backend = ApifyBackend(credentials)
        page = await backend.scrape(url, backend.default_profile(is_affiliate=True))
    """

    name = "apify"
    kind = Backend.DEEP
    credential_name = APIFY
    cost_per_page = 0.05
    max_attempts = Config.DEEP_MAX_ATTEMPTS

    def __init__(
        self,
        credentials: CredentialStore,
        actor_id: Optional[str] = None,
        poll_interval: Optional[float] = None,
        max_poll_attempts: Optional[int] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """
        Initialize ApifyBackend.

        Args:
            credentials: Credential store holding the Apify token
            actor_id: Actor to run (defaults to Config.APIFY_ACTOR_ID)
            poll_interval: Seconds between status checks (default 3)
            max_poll_attempts: Status checks before giving up (default 20)
            sleep: Awaitable sleep, replaceable in tests
        """
        super().__init__(credentials)
        self.actor_id = actor_id or Config.APIFY_ACTOR_ID
        self.poll_interval = poll_interval if poll_interval is not None else Config.APIFY_POLL_INTERVAL_SECONDS
        self.max_poll_attempts = max_poll_attempts or Config.APIFY_POLL_MAX_ATTEMPTS
        self._sleep = sleep
        self._client: Optional[ApifyClientAsync] = None
        self._client_token: Optional[str] = None

    def _get_client(self, token: str) -> ApifyClientAsync:
        if self._client is None or self._client_token != token:
            self._client = ApifyClientAsync(token, max_retries=2, timeout_secs=30)
            self._client_token = token
        return self._client

    def default_profile(self, is_affiliate: bool = False) -> ScrapeProfile:
        return ScrapeProfile(timeout_ms=30000, wait_ms=3000, include_html=True, is_affiliate=is_affiliate)

    def build_run_input(self, url: str, profile: ScrapeProfile) -> Dict[str, Any]:
        return {
            "startUrls": [{"url": url}],
            "linkSelector": "",
            "pageFunction": PAGE_FUNCTION,
            "customData": {"waitMs": profile.wait_ms, "includeHtml": profile.include_html},
            "pageLoadTimeoutSecs": max(1, profile.timeout_ms // 1000),
            "ignoreSslErrors": True,
            "maxRequestRetries": 2,
            "maxPagesPerCrawl": 1,
            "maxRequestsPerCrawl": 1,
        }

    async def scrape(self, url: str, profile: ScrapeProfile) -> RawPage:
        token = self.credentials.require(self.credential_name)
        client = self._get_client(token)
        run_input = self.build_run_input(url, profile)

        logger.info(f"Starting Apify actor {self.actor_id} for {url}")
        logger.debug(f"Input: {describe_run_input(run_input)}")
        item = await self._run(client, run_input)
        return self.normalize_response(item, url)

    async def _run(self, client: ApifyClientAsync, run_input: Dict[str, Any]) -> Dict[str, Any]:
        try:
            run = await client.actor(self.actor_id).start(run_input=run_input)
        except Exception as e:
            raise BackendError(f"Failed to start Apify scraper: {e}", code="start_failed", backend=self.name) from e

        if not run:
            raise BackendError("Apify returned no run", code="start_failed", backend=self.name)

        return await self._poll_for_completion(client, run["id"], run["defaultDatasetId"])

    async def _poll_for_completion(self, client: ApifyClientAsync, run_id: str, dataset_id: str) -> Dict[str, Any]:
        """Poll run status until SUCCEEDED/FAILED or the attempt budget runs out."""
        for attempt in range(1, self.max_poll_attempts + 1):
            try:
                run = await client.run(run_id).get()
            except Exception as e:
                raise BackendError(f"Status check failed for run {run_id}: {e}", code="poll_failed", backend=self.name) from e

            status = (run or {}).get("status")
            logger.debug(f"Apify run {run_id} status: {status} (poll {attempt}/{self.max_poll_attempts})")

            if status == "SUCCEEDED":
                return await self._fetch_first_item(client, dataset_id)
            if status in FAILED_STATUSES:
                raise JobFailed(f"Apify run {run_id} finished with status {status}", backend=self.name)

            if attempt < self.max_poll_attempts:
                await self._sleep(self.poll_interval)

        raise BackendTimeout(
            f"Apify run {run_id} not finished after {self.max_poll_attempts} status checks",
            backend=self.name,
        )

    async def _fetch_first_item(self, client: ApifyClientAsync, dataset_id: str) -> Dict[str, Any]:
        try:
            page = await client.dataset(dataset_id).list_items(limit=1)
        except Exception as e:
            raise BackendError(f"Failed to fetch dataset {dataset_id}: {e}", code="dataset_failed", backend=self.name) from e

        items = page.items if page else []
        logger.info(f"Fetched {len(items)} item(s) from dataset {dataset_id}")
        return items[0] if items else {}

    def normalize_response(self, response: Any, url: str) -> RawPage:
        """Convert the page function's dataset item into a RawPage."""
        item: Dict[str, Any] = response if isinstance(response, dict) else {}

        structured = {key: item[key] for key in STRUCTURED_KEYS if item.get(key)}
        if structured and not structured.get("productName") and item.get("title"):
            structured["productName"] = item["title"]

        return RawPage(
            markdown=item.get("bodyText") or "",
            html=item.get("html") or "",
            structured_json=structured or None,
            structured_by_llm=False,
            metadata=PageMetadata(
                title=item.get("title") or "",
                description=item.get("description") or "",
                source_url=item.get("url") or url,
            ),
        )

    async def test_credential(self, token: str) -> bool:
        try:
            async with httpx.AsyncClient(timeout=Config.PROBE_TIMEOUT_SECONDS) as client:
                response = await client.get(f"{APIFY_BASE_URL}/users/me", params={"token": token})
            return response.is_success
        except httpx.HTTPError as e:
            logger.warning(f"Apify credential test failed: {e}")
            return False


class ApifySyncBackend(ApifyBackend):
    """Apify adapter that waits for the run server-side instead of polling."""

    async def _run(self, client: ApifyClientAsync, run_input: Dict[str, Any]) -> Dict[str, Any]:
        wait_secs = self.poll_interval * self.max_poll_attempts
        try:
            run = await client.actor(self.actor_id).call(run_input=run_input, wait_secs=int(wait_secs))
        except Exception as e:
            raise BackendError(f"Apify run failed: {e}", code="run_failed", backend=self.name) from e

        status = (run or {}).get("status")
        if status in FAILED_STATUSES:
            raise JobFailed(f"Apify run finished with status {status}", backend=self.name)
        if status != "SUCCEEDED":
            raise BackendTimeout(f"Apify run still {status} after {wait_secs:.0f}s", backend=self.name)

        return await self._fetch_first_item(client, run["defaultDatasetId"])


def describe_run_input(run_input: Dict[str, Any]) -> str:
    """Compact log form of a run input (page function omitted)."""
    shown = {k: v for k, v in run_input.items() if k != "pageFunction"}
    return json.dumps(shown, sort_keys=True)
