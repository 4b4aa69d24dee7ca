"""
Text-completion back-ends used for LLM-assisted extraction.

Both OpenRouter (general-purpose models) and Perplexity (search-grounded
models) speak the OpenAI chat-completions protocol, so one client class
covers both, configured with a base URL, credential and model.
"""

import logging
from typing import Any, Dict, List, Optional

from openai import AsyncOpenAI

from ..core.config import Config
from ..core.credentials import OPENROUTER, PERPLEXITY, CredentialStore
from ..core.exceptions import ExtractionStrategyFailed

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are an expert at analyzing marketing content and extracting structured data. "
    "Always return valid JSON responses."
)


class CompletionClient:
    """
    One OpenAI-compatible chat-completion back-end.

    Example usage:
        client = CompletionClient.openrouter(credentials)
        text = await client.complete(prompt)
    """

    def __init__(
        self,
        name: str,
        credentials: CredentialStore,
        base_url: str,
        model: str,
        extra_body: Optional[Dict[str, Any]] = None,
        default_headers: Optional[Dict[str, str]] = None,
        timeout: float = 60.0,
    ):
        self.name = name
        self.credentials = credentials
        self.base_url = base_url
        self.model = model
        self.extra_body = extra_body or {}
        self.default_headers = default_headers or {}
        self.timeout = timeout
        self._client: Optional[AsyncOpenAI] = None
        self._client_token: Optional[str] = None

    @classmethod
    def openrouter(cls, credentials: CredentialStore, model: Optional[str] = None) -> "CompletionClient":
        return cls(
            name=OPENROUTER,
            credentials=credentials,
            base_url=Config.OPENROUTER_BASE_URL,
            model=model or Config.get_model("openrouter"),
            default_headers={"X-Title": "OfferLens"},
        )

    @classmethod
    def perplexity(cls, credentials: CredentialStore, model: Optional[str] = None) -> "CompletionClient":
        return cls(
            name=PERPLEXITY,
            credentials=credentials,
            base_url=Config.PERPLEXITY_BASE_URL,
            model=model or Config.get_model("perplexity"),
            extra_body={"return_images": False, "return_related_questions": False},
        )

    @property
    def enabled(self) -> bool:
        return self.credentials.has(self.name)

    def _get_client(self, token: str) -> AsyncOpenAI:
        if self._client is None or self._client_token != token:
            self._client = AsyncOpenAI(
                api_key=token,
                base_url=self.base_url,
                default_headers=self.default_headers,
                timeout=self.timeout,
                max_retries=1,
            )
            self._client_token = token
        return self._client

    def _messages(self, prompt: str) -> List[Dict[str, str]]:
        return [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ]

    async def complete(self, prompt: str) -> str:
        """
        Send one prompt and return the first choice's content.

        Raises:
            CredentialMissing: No token configured
            ExtractionStrategyFailed: Non-2xx response, transport error, or empty choices
        """
        token = self.credentials.require(self.name)
        client = self._get_client(token)

        logger.info(f"Requesting extraction from {self.name} ({self.model})")
        try:
            response = await client.chat.completions.create(
                model=self.model,
                messages=self._messages(prompt),
                temperature=Config.LLM_TEMPERATURE,
                max_tokens=Config.LLM_MAX_TOKENS,
                extra_body=self.extra_body or None,
            )
        except Exception as e:
            raise ExtractionStrategyFailed(self.name, f"{type(e).__name__}: {e}") from e

        if not response.choices:
            raise ExtractionStrategyFailed(self.name, f"No response from {self.name} API")

        content = response.choices[0].message.content
        if not content:
            raise ExtractionStrategyFailed(self.name, "Empty completion content")
        return content

    async def test_credential(self, token: str) -> bool:
        """Minimal 10-token request; True on a 2xx response."""
        try:
            client = AsyncOpenAI(
                api_key=token,
                base_url=self.base_url,
                default_headers=self.default_headers,
                timeout=Config.PROBE_TIMEOUT_SECONDS,
                max_retries=0,
            )
            await client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": "Test message"}],
                max_tokens=10,
                temperature=Config.LLM_TEMPERATURE,
            )
            return True
        except Exception as e:
            logger.warning(f"{self.name} credential test failed: {e}")
            return False


def default_completion_chain(credentials: CredentialStore) -> List[CompletionClient]:
    """General-purpose back-end first, search-grounded back-end second."""
    return [
        CompletionClient.openrouter(credentials),
        CompletionClient.perplexity(credentials),
    ]
