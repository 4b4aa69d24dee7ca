"""
Credential store - one opaque API token per back-end, held in memory.

Tokens are never validated here; adapters expose an optional
``test_credential`` probe for that.
"""

import logging
import threading
from typing import Dict, List, Optional

from .config import Config
from .exceptions import CredentialMissing

logger = logging.getLogger(__name__)

FIRECRAWL = "firecrawl"
APIFY = "apify"
OPENROUTER = "openrouter"
PERPLEXITY = "perplexity"

KNOWN_BACKENDS = (FIRECRAWL, APIFY, OPENROUTER, PERPLEXITY)


class CredentialStore:
    """Process-wide credential holder, passed by reference to the services."""

    def __init__(self, tokens: Optional[Dict[str, str]] = None):
        self._tokens: Dict[str, str] = {}
        self._lock = threading.Lock()
        for backend, token in (tokens or {}).items():
            self.set(backend, token)

    @classmethod
    def from_config(cls) -> "CredentialStore":
        """Seed a store from environment configuration."""
        return cls({
            FIRECRAWL: Config.FIRECRAWL_API_KEY,
            APIFY: Config.APIFY_TOKEN,
            OPENROUTER: Config.OPENROUTER_API_KEY,
            PERPLEXITY: Config.PERPLEXITY_API_KEY,
        })

    def set(self, backend: str, token: Optional[str]) -> None:
        """Save (or clear, with an empty token) the credential for a back-end."""
        token = (token or "").strip()
        with self._lock:
            if token:
                self._tokens[backend] = token
            else:
                self._tokens.pop(backend, None)
        if token:
            # Log token presence (not the actual token)
            logger.info(f"Credential saved for {backend}: {token[:4]}...")

    def get(self, backend: str) -> Optional[str]:
        return self._tokens.get(backend)

    def has(self, backend: str) -> bool:
        return backend in self._tokens

    def require(self, backend: str) -> str:
        """Return the token or raise CredentialMissing."""
        token = self._tokens.get(backend)
        if not token:
            raise CredentialMissing(backend)
        return token

    def configured(self) -> List[str]:
        """Names of back-ends that currently have a credential."""
        return sorted(self._tokens)
