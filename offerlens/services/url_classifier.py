"""
URL Classifier - Route a sales page URL to the right scrape back-end.

Pure keyword matching, no I/O:
1. Affiliate networks (ClickBank hops, JVZoo, WarriorPlus, ...) and affiliate
   query markers (?hop=, cbpage=, vendor=)
2. Page-builder / checkout platforms that need full browser rendering

Affiliate or complex-platform URLs go to the deep (headless) back-end,
everything else to the fast-render back-end. This is only a recommendation;
the orchestrator still falls back when it proves wrong.

Example:
    >>> classify_url("https://hop.clickbank.net/?affiliate=x&vendor=y").recommended_backend
    <Backend.DEEP: 'deep'>
"""

import logging
from typing import Tuple
from urllib.parse import urlparse

from ..core.exceptions import InvalidURL
from .models import Backend, URLAnalysis

logger = logging.getLogger(__name__)

COMPLEX_PLATFORMS: Tuple[str, ...] = (
    "shopify.com",
    "clickfunnels.com",
    "leadpages.net",
    "squarespace.com",
    "wix.com",
    "webflow.io",
    "samcart.com",
    "thrivecart.com",
    "gumroad.com",
)

AFFILIATE_NETWORKS: Tuple[str, ...] = (
    "clickbank.net",
    "hop.clickbank.net",
    "jvzoo.com",
    "warriorplus.com",
    "commission-junction.com",
    "cj.com",
    "linkshare.com",
    "shareasale.com",
)

# Substrings anywhere in the URL that mark an affiliate link
AFFILIATE_URL_MARKERS: Tuple[str, ...] = (
    "affiliate",
    "?hop=",
    "&hop=",
    "cbpage=",
    "vendor=",
)

ALLOWED_SCHEMES = ("http", "https")


def validate_url(url: str) -> str:
    """Return the trimmed URL or raise InvalidURL when it is malformed."""
    if not isinstance(url, str) or not url.strip():
        raise InvalidURL(str(url), "Empty URL")

    candidate = url.strip()
    try:
        parsed = urlparse(candidate)
    except ValueError as e:
        raise InvalidURL(candidate, f"Unparseable URL ({e})")

    if parsed.scheme.lower() not in ALLOWED_SCHEMES:
        raise InvalidURL(candidate, "URL must start with http:// or https://")
    if not parsed.hostname or "." not in parsed.hostname:
        raise InvalidURL(candidate, "URL has no valid host")
    if any(ch.isspace() for ch in candidate):
        raise InvalidURL(candidate, "URL contains whitespace")

    return candidate


def _domain(url: str) -> str:
    host = (urlparse(url).hostname or "").lower()
    if host.startswith("www."):
        host = host[4:]
    return host


def _match_domain(domain: str, candidates: Tuple[str, ...]) -> str:
    """Return the first candidate contained in the domain, or ''."""
    for candidate in candidates:
        if candidate in domain:
            return candidate
    return ""


def classify_url(url: str) -> URLAnalysis:
    """
    Classify a URL by platform and affiliate network.

    Args:
        url: Page URL.

    Returns:
        URLAnalysis with the recommended back-end and reasoning.

    Raises:
        InvalidURL: If the URL is malformed.
    """
    url = validate_url(url)
    domain = _domain(url)
    lowered = url.lower()

    network = _match_domain(domain, AFFILIATE_NETWORKS)
    platform = _match_domain(domain, COMPLEX_PLATFORMS)

    is_affiliate = bool(network) or any(marker in lowered for marker in AFFILIATE_URL_MARKERS)
    is_complex = bool(platform)

    if is_affiliate:
        reasoning = "Affiliate URL detected, using advanced extraction for sales pages"
    elif is_complex:
        reasoning = "Complex platform detected, needs full browser rendering"
    else:
        reasoning = "Standard landing page, content extraction sufficient"

    recommended = Backend.DEEP if (is_affiliate or is_complex) else Backend.FAST

    analysis = URLAnalysis(
        url=url,
        domain=domain,
        is_affiliate=is_affiliate,
        is_complex_platform=is_complex,
        platform=network or platform or "standard",
        recommended_backend=recommended,
        reasoning=reasoning,
    )
    logger.debug(f"Classified {url}: {analysis.platform} -> {recommended.value}")
    return analysis
