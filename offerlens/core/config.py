"""
Configuration management for OfferLens
"""

import os
from typing import Optional, Dict
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


class Config:
    """Application configuration"""

    # Scraping back-ends
    FIRECRAWL_API_KEY: str = os.getenv('FIRECRAWL_API_KEY', '')
    APIFY_TOKEN: str = os.getenv('APIFY_TOKEN', '')
    APIFY_ACTOR_ID: str = os.getenv('APIFY_ACTOR_ID', 'apify/puppeteer-scraper')

    # Text-completion back-ends
    OPENROUTER_API_KEY: str = os.getenv('OPENROUTER_API_KEY', '')
    OPENROUTER_BASE_URL: str = 'https://openrouter.ai/api/v1'
    PERPLEXITY_API_KEY: str = os.getenv('PERPLEXITY_API_KEY', '')
    PERPLEXITY_BASE_URL: str = 'https://api.perplexity.ai'

    # Result cache
    CACHE_TTL_SECONDS: int = int(os.getenv('CACHE_TTL_SECONDS', '1800'))  # 30 minutes
    CACHE_MAX_ENTRIES: int = int(os.getenv('CACHE_MAX_ENTRIES', '100'))

    # Retry budget per back-end
    FAST_MAX_ATTEMPTS: int = int(os.getenv('FAST_MAX_ATTEMPTS', '3'))
    DEEP_MAX_ATTEMPTS: int = int(os.getenv('DEEP_MAX_ATTEMPTS', '2'))

    # Pacing and timeouts
    BATCH_DELAY_SECONDS: float = float(os.getenv('BATCH_DELAY_SECONDS', '1.0'))
    PROBE_TIMEOUT_SECONDS: float = float(os.getenv('PROBE_TIMEOUT_SECONDS', '5'))
    APIFY_POLL_INTERVAL_SECONDS: float = 3.0
    APIFY_POLL_MAX_ATTEMPTS: int = int(os.getenv('APIFY_POLL_MAX_ATTEMPTS', '20'))

    # LLM extraction
    LLM_CONTENT_CHAR_LIMIT: int = int(os.getenv('LLM_CONTENT_CHAR_LIMIT', '8000'))
    LLM_TEMPERATURE: float = 0.2
    LLM_MAX_TOKENS: int = 2000

    @classmethod
    def get(cls, key: str, default: Optional[str] = None) -> Optional[str]:
        """Get configuration value"""
        return getattr(cls, key, default)

    # ========================================================================
    # Model Configuration
    # ========================================================================

    OPENROUTER_MODEL = "openai/gpt-4o-mini"
    PERPLEXITY_MODEL = "sonar"
    PROBE_MODEL = "openai/gpt-3.5-turbo"

    @classmethod
    def get_model(cls, key: str) -> str:
        """
        Get the configured completion model for a back-end.

        Resolution Order:
        1. Environment Variable: {KEY}_MODEL (e.g. OPENROUTER_MODEL)
        2. Default mapping in this method
        3. Config.OPENROUTER_MODEL

        Args:
            key: back-end name (e.g., 'openrouter', 'perplexity'), case-insensitive.

        Returns:
            Model string identifier (e.g., 'openai/gpt-4o-mini', 'sonar')
        """
        key_upper = key.upper()

        env_model = os.getenv(f"{key_upper}_MODEL")
        if env_model:
            return env_model

        mappings: Dict[str, str] = {
            "OPENROUTER": cls.OPENROUTER_MODEL,
            "PERPLEXITY": cls.PERPLEXITY_MODEL,
            "PROBE": cls.PROBE_MODEL,
        }
        return mappings.get(key_upper, cls.OPENROUTER_MODEL)
