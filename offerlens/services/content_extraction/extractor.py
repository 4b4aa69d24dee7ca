"""
ContentExtractor - Turn a RawPage into ExtractedMarketingData.

Strategies are tried in order; the first that yields a well-formed record
wins:
  1. Structured JSON already produced by the scrape back-end
  2. LLM completion (general-purpose back-end, then search-grounded)
  3. Regex/keyword heuristics (never fails)

If the winner is missing a core element and the page has HTML, DOM
selector results are merged in and the method becomes hybrid.
"""

import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Tuple

from ...core.exceptions import CredentialMissing, ExtractionStrategyFailed
from ...core.observability import get_logfire
from ..completion_service import CompletionClient
from ..models import ExtractedMarketingData, ExtractionMethod, RawPage
from .dom_extractor import extract_dom_elements
from .heuristics import extract_with_heuristics, page_markdown
from .normalizer import (
    FIELD_ALIASES,
    has_recognized_content,
    merge_extractions,
    normalize_extraction,
)
from .prompts import build_extraction_prompt
from .utils import parse_llm_json

logger = logging.getLogger(__name__)

ExtractionResult = Tuple[ExtractedMarketingData, ExtractionMethod]

# Classification fields a DOM-only payload never carries
_CLASSIFICATION_FIELDS = ("category", "industry", "price_point")


class ContentExtractor:
    """
    Runs the extraction strategy chain for one page.

    Usage:
        extractor = ContentExtractor(default_completion_chain(credentials))
        data, method = await extractor.extract(page, is_affiliate_page=True)
    """

    def __init__(
        self,
        completion_clients: Optional[Sequence[CompletionClient]] = None,
        content_char_limit: Optional[int] = None,
    ):
        """
        Args:
            completion_clients: LLM back-ends in the order they should be tried.
                Clients without a credential are skipped at call time.
            content_char_limit: Characters of page content sent to the LLM
        """
        self.completion_clients: List[CompletionClient] = list(completion_clients or [])
        self.content_char_limit = content_char_limit

    @property
    def strategies(self) -> List[Tuple[str, Callable[[RawPage, bool], Awaitable[Optional[ExtractionResult]]]]]:
        return [
            ("structured", self._from_structured),
            ("llm", self._from_llm),
        ]

    async def extract(self, page: Optional[RawPage], is_affiliate_page: bool = False) -> ExtractionResult:
        """
        Extract marketing data from a scraped page.

        Args:
            page: Scraped page; None or a placeholder page yields the empty record
            is_affiliate_page: Passed to the LLM prompt

        Returns:
            (ExtractedMarketingData, ExtractionMethod)
        """
        lf = get_logfire()
        with lf.span("extract_content", is_affiliate=is_affiliate_page):
            data, method = await self._run_strategies(page, is_affiliate_page)

            if data.is_incomplete() and page is not None and not page.content_empty and page.html.strip():
                merged = merge_extractions(data, normalize_extraction(extract_dom_elements(page.html)))
                if merged is not data:
                    logger.info(f"Supplemented incomplete {method.value} extraction with DOM selectors")
                    data, method = merged, ExtractionMethod.HYBRID

        logger.info(f"Extracted '{data.product_name}' via {method.value}")
        return data, method

    async def _run_strategies(self, page: Optional[RawPage], is_affiliate_page: bool) -> ExtractionResult:
        if page is not None and not page.content_empty:
            for name, strategy in self.strategies:
                try:
                    result = await strategy(page, is_affiliate_page)
                except ExtractionStrategyFailed as e:
                    logger.warning(f"Extraction strategy '{name}' failed: {e}")
                    continue
                if result is not None:
                    return result

        return extract_with_heuristics(page), ExtractionMethod.HEURISTIC

    async def _from_structured(self, page: RawPage, is_affiliate_page: bool) -> Optional[ExtractionResult]:
        """Use back-end structured JSON when it carries at least one known field."""
        payload = page.structured_json
        if not has_recognized_content(payload):
            return None

        data = normalize_extraction(payload)
        if page.structured_by_llm:
            return data, ExtractionMethod.LLM

        # Selector output: fill free-text and classification fields from page text
        heuristic = extract_with_heuristics(page)
        data = merge_extractions(data, heuristic)
        updates = {
            name: getattr(heuristic, name)
            for name in _CLASSIFICATION_FIELDS
            if not _payload_has(payload, name)
        }
        return data.model_copy(update=updates), ExtractionMethod.HEURISTIC

    async def _from_llm(self, page: RawPage, is_affiliate_page: bool) -> Optional[ExtractionResult]:
        clients = [c for c in self.completion_clients if c.enabled]
        content = page_markdown(page)
        if not clients or not content.strip():
            return None

        prompt = build_extraction_prompt(page, content, is_affiliate_page, self.content_char_limit)
        for client in clients:
            try:
                payload = parse_llm_json(await client.complete(prompt))
            except (ExtractionStrategyFailed, CredentialMissing, ValueError) as e:
                logger.warning(f"LLM extraction via {client.name} failed: {e}")
                continue

            if not has_recognized_content(payload):
                logger.warning(f"LLM extraction via {client.name} returned no recognizable fields")
                continue
            return normalize_extraction(payload), ExtractionMethod.LLM

        return None


def _payload_has(payload: Dict[str, Any], field: str) -> bool:
    return any(payload.get(key) for key in FIELD_ALIASES[field])
