"""
Content extraction: RawPage -> ExtractedMarketingData.

Strategy chain (back-end JSON, LLM, heuristics) with DOM-selector
supplementation for incomplete results.
"""

from .extractor import ContentExtractor
from .heuristics import extract_with_heuristics
from .dom_extractor import extract_dom_elements, html_to_text
from .normalizer import merge_extractions, normalize_extraction
from .utils import parse_llm_json

__all__ = [
    "ContentExtractor",
    "extract_with_heuristics",
    "extract_dom_elements",
    "html_to_text",
    "merge_extractions",
    "normalize_extraction",
    "parse_llm_json",
]
