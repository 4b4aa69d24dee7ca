"""
Error taxonomy for the scraping and extraction pipeline.

Adapters and completion clients raise these; the orchestrator and the
content extractor turn them into tagged results so that network-class
failures never escape past their boundary.
"""

from typing import Optional


class OfferLensError(Exception):
    """Base class for all pipeline errors."""


class InvalidURL(OfferLensError):
    """URL is syntactically malformed. Never retried."""

    def __init__(self, url: str, reason: str = "Invalid URL format"):
        self.url = url
        self.reason = reason
        super().__init__(f"{reason}: {url!r}")


class CredentialMissing(OfferLensError):
    """No API credential configured for a back-end. Never retried."""

    def __init__(self, backend: str):
        self.backend = backend
        super().__init__(f"No API credential configured for '{backend}'")


class BackendError(OfferLensError):
    """Transient remote failure. Retried with backoff, then falls back."""

    code: str = "backend_error"

    def __init__(self, message: str, code: Optional[str] = None, backend: Optional[str] = None):
        if code:
            self.code = code
        self.message = message
        self.backend = backend
        super().__init__(message)

    def __str__(self) -> str:
        prefix = f"{self.backend}: " if self.backend else ""
        return f"{prefix}[{self.code}] {self.message}"


class BackendTimeout(BackendError):
    """Job polling exceeded its bounded attempt count."""

    code = "timeout"


class JobFailed(BackendError):
    """Remote job reported a FAILED status."""

    code = "job_failed"


class ExtractionStrategyFailed(OfferLensError):
    """A single extraction strategy could not produce a result.

    Always recovered by falling through to the next strategy.
    """

    def __init__(self, strategy: str, reason: str):
        self.strategy = strategy
        self.reason = reason
        super().__init__(f"{strategy} strategy failed: {reason}")
