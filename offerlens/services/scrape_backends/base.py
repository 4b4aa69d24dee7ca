"""
Base scrape back-end interface
"""

import logging
from abc import ABC, abstractmethod
from typing import Any

from ...core.credentials import CredentialStore
from ..models import Backend, RawPage, ScrapeProfile

logger = logging.getLogger(__name__)

# Content tags kept by rendering back-ends that support allow/deny lists
INCLUDE_TAGS = [
    'title', 'meta', 'h1', 'h2', 'h3', 'h4', 'h5', 'h6', 'p', 'div', 'span',
    'button', 'a', 'ul', 'li', 'section', 'article', 'main', 'blockquote',
    'strong', 'em', 'b', 'i',
]
# Order forms on affiliate pages carry pricing and CTA text
AFFILIATE_EXTRA_TAGS = ['form', 'input']
EXCLUDE_TAGS = ['script', 'style', 'nav', 'footer', 'header', 'aside', 'noscript', 'iframe']


class ScrapeBackend(ABC):
    """
    Abstract base class for remote scraping back-ends

    Each adapter wraps one provider behind ``scrape(url, profile) -> RawPage``
    and is solely responsible for turning that provider's response into a
    RawPage. Failures are raised as BackendError (or CredentialMissing).
    """

    name: str = ""
    kind: Backend = Backend.FAST
    credential_name: str = ""
    cost_per_page: float = 0.0

    def __init__(self, credentials: CredentialStore):
        self.credentials = credentials

    @property
    def enabled(self) -> bool:
        return self.credentials.has(self.credential_name)

    @abstractmethod
    def default_profile(self, is_affiliate: bool = False) -> ScrapeProfile:
        """Timeouts and waits suited to this back-end."""

    @abstractmethod
    async def scrape(self, url: str, profile: ScrapeProfile) -> RawPage:
        """
        Scrape one URL

        Args:
            url: Page URL
            profile: Timeout/wait/html settings

        Returns:
            RawPage (possibly with empty markdown/html)

        Raises:
            CredentialMissing: No token configured for this back-end
            BackendError: Remote or network failure
        """

    @abstractmethod
    def normalize_response(self, response: Any, url: str) -> RawPage:
        """Convert the provider's response into a RawPage."""

    @abstractmethod
    async def test_credential(self, token: str) -> bool:
        """Send a minimal request with the token; True on success."""
