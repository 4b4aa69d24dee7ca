"""
Scrape back-end adapters.

Each adapter wraps one remote scraping provider behind the uniform
``scrape(url, profile) -> RawPage`` contract.
"""

from .base import ScrapeBackend
from .firecrawl_backend import FirecrawlBackend
from .apify_backend import ApifyBackend, ApifySyncBackend

__all__ = [
    "ScrapeBackend",
    "FirecrawlBackend",
    "ApifyBackend",
    "ApifySyncBackend",
]
