"""
FirecrawlBackend - Fast rendering back-end using FireCrawl.

Maps the generic ScrapeProfile onto FireCrawl scrape options (tag allow/deny
lists, ad blocking, TLS verification, JS wait) and normalizes the returned
Document into a RawPage. Optionally asks FireCrawl for in-band LLM
structured extraction, which becomes RawPage.structured_json.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

from firecrawl import AsyncFirecrawl
from firecrawl.v2.types import JsonFormat

from ...core.config import Config
from ...core.credentials import FIRECRAWL, CredentialStore
from ...core.exceptions import BackendError
from ..models import Backend, PageMetadata, RawPage, ScrapeProfile
from .base import AFFILIATE_EXTRA_TAGS, EXCLUDE_TAGS, INCLUDE_TAGS, ScrapeBackend

logger = logging.getLogger(__name__)

# Extra seconds on top of the remote timeout before we give up locally
_LOCAL_TIMEOUT_MARGIN_S = 5

STRUCTURED_EXTRACTION_PROMPT = (
    "Extract the marketing elements of this sales page: product name, headlines, "
    "benefits, testimonials, pricing, calls to action, guarantees, timeframes and "
    "social proof. Use short verbatim phrases from the page."
)


def _string_array(description: str) -> Dict[str, Any]:
    return {"type": "array", "items": {"type": "string"}, "description": description}


MARKETING_PAGE_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "productName": {"type": "string", "description": "Name of the main product/service"},
        "headlines": _string_array("Main headline and sub-headlines"),
        "benefits": _string_array("Product benefits and features"),
        "testimonials": _string_array("Customer testimonial quotes"),
        "pricing": _string_array("Prices and offers"),
        "ctas": _string_array("Call-to-action button texts"),
        "guarantees": _string_array("Money-back guarantees or risk reversal"),
        "timeframes": _string_array("Result timeframes, e.g. 'in 30 days'"),
        "socialProof": _string_array("Customer counts, ratings, review counts"),
        "mainBenefit": {"type": "string"},
        "targetAudience": {"type": "string"},
        "category": {"type": "string", "enum": ["software", "physical", "service", "info", "health"]},
        "industry": {"type": "string"},
        "pricePoint": {"type": "string", "enum": ["low", "medium", "high", "premium"]},
    },
}


class FirecrawlBackend(ScrapeBackend):
    """
    FireCrawl adapter.

    Example usage:
        backend = FirecrawlBackend(credentials)
        page = await backend.scrape(url, backend.default_profile())
    """

    name = "firecrawl"
    kind = Backend.FAST
    credential_name = FIRECRAWL
    cost_per_page = 0.01
    max_attempts = Config.FAST_MAX_ATTEMPTS

    def __init__(
        self,
        credentials: CredentialStore,
        structured_extraction: bool = False,
        block_ads: bool = True,
        skip_tls_verification: bool = True,
    ):
        """
        Initialize FirecrawlBackend.

        Args:
            credentials: Credential store holding the FireCrawl API key
            structured_extraction: Ask FireCrawl for LLM JSON extraction in-band
            block_ads: Enable FireCrawl ad/cookie-banner blocking
            skip_tls_verification: Tolerate broken certificates on sales pages
        """
        super().__init__(credentials)
        self.structured_extraction = structured_extraction
        self.block_ads = block_ads
        self.skip_tls_verification = skip_tls_verification
        self._client: Optional[AsyncFirecrawl] = None
        self._client_token: Optional[str] = None

    def _get_client(self, token: str) -> AsyncFirecrawl:
        """Get or create async FireCrawl client for the current token."""
        if self._client is None or self._client_token != token:
            self._client = AsyncFirecrawl(api_key=token)
            self._client_token = token
        return self._client

    def default_profile(self, is_affiliate: bool = False) -> ScrapeProfile:
        if is_affiliate:
            # Wait longer for hop redirects and JS loading
            return ScrapeProfile(timeout_ms=20000, wait_ms=8000, include_html=True, is_affiliate=True)
        return ScrapeProfile(timeout_ms=15000, wait_ms=3000, include_html=True)

    def _build_options(self, profile: ScrapeProfile) -> Dict[str, Any]:
        formats: List[Any] = ["markdown"]
        if profile.include_html:
            formats.append("html")
        if self.structured_extraction:
            formats.append(JsonFormat(type="json", prompt=STRUCTURED_EXTRACTION_PROMPT, schema=MARKETING_PAGE_SCHEMA))

        include_tags = list(INCLUDE_TAGS)
        if profile.is_affiliate:
            include_tags += AFFILIATE_EXTRA_TAGS

        options: Dict[str, Any] = {
            "formats": formats,
            "only_main_content": True,
            "include_tags": include_tags,
            "exclude_tags": list(EXCLUDE_TAGS),
            "timeout": profile.timeout_ms,
            "block_ads": self.block_ads,
            "skip_tls_verification": self.skip_tls_verification,
        }
        if profile.wait_ms > 0:
            options["wait_for"] = profile.wait_ms
        return options

    async def scrape(self, url: str, profile: ScrapeProfile) -> RawPage:
        token = self.credentials.require(self.credential_name)
        client = self._get_client(token)
        options = self._build_options(profile)

        logger.info(f"FireCrawl scraping: {url} (timeout={profile.timeout_ms}ms, wait={profile.wait_ms}ms)")

        try:
            document = await asyncio.wait_for(
                client.scrape(url, **options),
                timeout=profile.timeout_ms / 1000 + _LOCAL_TIMEOUT_MARGIN_S,
            )
        except asyncio.TimeoutError:
            raise BackendError(
                f"No response within {profile.timeout_ms}ms", code="request_timeout", backend=self.name
            )
        except Exception as e:
            raise BackendError(f"{type(e).__name__}: {e}", code="request_failed", backend=self.name) from e

        if document is None:
            raise BackendError("Empty response from FireCrawl", code="empty_response", backend=self.name)

        return self.normalize_response(document, url)

    def normalize_response(self, response: Any, url: str) -> RawPage:
        """Convert a FireCrawl Document into a RawPage."""
        metadata = getattr(response, "metadata", None)
        structured = getattr(response, "json", None)

        return RawPage(
            markdown=getattr(response, "markdown", None) or "",
            html=getattr(response, "html", None) or "",
            structured_json=structured if isinstance(structured, dict) and structured else None,
            structured_by_llm=True,
            metadata=PageMetadata(
                title=getattr(metadata, "title", None) or "",
                description=getattr(metadata, "description", None) or "",
                source_url=getattr(metadata, "source_url", None) or url,
            ),
        )

    async def test_credential(self, token: str) -> bool:
        try:
            client = AsyncFirecrawl(api_key=token)
            await asyncio.wait_for(
                client.scrape("https://example.com", formats=["markdown"]),
                timeout=Config.PROBE_TIMEOUT_SECONDS,
            )
            return True
        except Exception as e:
            logger.warning(f"FireCrawl credential test failed: {e}")
            return False
