"""
CSS-selector extraction over page HTML.

Mirrors the selectors the deep back-end's page function evaluates in the
browser, so a page scraped by either back-end can be supplemented from its
HTML when text-based extraction comes back incomplete.
"""

import logging
from typing import Dict, List, Tuple

from bs4 import BeautifulSoup

from .utils import collapse_whitespace, dedupe_capped

logger = logging.getLogger(__name__)

# Output key -> (CSS selector, max items)
DOM_SELECTORS: Dict[str, Tuple[str, int]] = {
    "headlines": ('h1, h2, .headline, [class*="hero"], [class*="title"]', 10),
    "testimonials": ('.testimonial, [class*="testimonial"], [class*="review"], [class*="feedback"], [class*="quote"], blockquote', 10),
    "pricing": ('.price, [class*="price"], [class*="cost"], [class*="money"], [class*="dollar"]', 5),
    "benefits": ('.benefit, [class*="feature"], li, [class*="advantage"]', 15),
    "ctas": ('button, .btn, [class*="cta"], [class*="button"], input[type="submit"]', 8),
    "guarantees": ('[class*="guarantee"], [class*="refund"], [class*="risk"]', 5),
    "socialProof": ('[class*="social"], [class*="proof"], [class*="rating"], [class*="star"]', 5),
}

# Elements that never carry offer copy
_NOISE_TAGS = ["script", "style", "noscript", "nav", "footer", "template", "svg"]

# Matched containers longer than this are page sections, not single elements
MAX_ELEMENT_CHARS = 300


def _soup(html: str) -> BeautifulSoup:
    soup = BeautifulSoup(html or "", "html.parser")
    for tag in soup(_NOISE_TAGS):
        tag.decompose()
    return soup


def html_to_text(html: str) -> str:
    """Readable line-per-block text for pages that came back as HTML only."""
    if not html or not html.strip():
        return ""
    soup = _soup(html)
    container = soup.body or soup
    lines = (collapse_whitespace(line) for line in container.get_text(separator="\n").splitlines())
    return "\n".join(line for line in lines if line)


def _element_texts(soup: BeautifulSoup, selector: str, limit: int) -> List[str]:
    texts = []
    for el in soup.select(selector):
        text = collapse_whitespace(el.get_text(" ", strip=True) or el.get("value", ""))
        if text and len(text) <= MAX_ELEMENT_CHARS:
            texts.append(text)
    return dedupe_capped(texts, limit)


def extract_dom_elements(html: str) -> Dict[str, object]:
    """
    Evaluate the selector map against the HTML.

    Args:
        html: Raw page HTML

    Returns:
        Dict shaped like the deep back-end's item (camelCase keys plus
        ``productName`` from the title or first h1), ready for
        normalize_extraction. Empty dict when there is no HTML.
    """
    if not html or not html.strip():
        return {}

    soup = _soup(html)
    result: Dict[str, object] = {
        key: _element_texts(soup, selector, limit) for key, (selector, limit) in DOM_SELECTORS.items()
    }

    h1 = soup.find("h1")
    title = soup.title.get_text(strip=True) if soup.title else ""
    result["productName"] = (h1.get_text(" ", strip=True) if h1 else "") or title

    logger.debug(
        "DOM extraction: " + ", ".join(f"{key}={len(result[key])}" for key in DOM_SELECTORS)
    )
    return result
