"""
Data models for the scraping and extraction pipeline.

RawPage and the scrape bookkeeping types are plain dataclasses (they never
cross a serialization boundary). The canonical extraction record and the
scored result are Pydantic models so they can be validated and dumped as
JSON for the downstream copy pipeline.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


# Sentinels for absent values
MISSING = "MISSING"
UNKNOWN_PRODUCT = "Unknown Product"
DEFAULT_INDUSTRY = "General"
NO_CONTENT_PLACEHOLDER = "No content extracted"


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class Backend(str, Enum):
    """Scrape back-end kinds."""
    FAST = "fast"    # fast rendering (FireCrawl)
    DEEP = "deep"    # deep/headless browser (Apify)

    @property
    def alternate(self) -> "Backend":
        return Backend.DEEP if self is Backend.FAST else Backend.FAST


class Category(str, Enum):
    SOFTWARE = "software"
    PHYSICAL = "physical"
    SERVICE = "service"
    INFO = "info"
    HEALTH = "health"


class PricePoint(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    PREMIUM = "premium"


class Confidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ExtractionMethod(str, Enum):
    LLM = "llm"
    HEURISTIC = "heuristic"
    HYBRID = "hybrid"


class ErrorKind(str, Enum):
    """Failure category carried on an unsuccessful ScrapingOutcome."""
    INVALID_URL = "InvalidURL"
    CREDENTIAL_MISSING = "CredentialMissing"
    BACKEND_ERROR = "BackendError"
    TIMEOUT = "Timeout"


# Per-field length caps (bound prompt and payload size, not significance)
FIELD_CAPS: Dict[str, int] = {
    "headlines": 10,
    "testimonials": 10,
    "pricing": 8,
    "benefits": 20,
    "ctas": 8,
    "guarantees": 8,
    "timeframes": 5,
    "social_proof": 10,
}

LIST_FIELDS = tuple(FIELD_CAPS)


# ---------------------------------------------------------------------------
# Scrape layer
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PageMetadata:
    title: str = ""
    description: str = ""
    source_url: str = ""


@dataclass(frozen=True)
class RawPage:
    """Output of a single successful scrape attempt."""
    markdown: str = ""
    html: str = ""
    structured_json: Optional[Dict[str, Any]] = None
    # True when structured_json came from an LLM-backed step at the back-end
    structured_by_llm: bool = True
    metadata: PageMetadata = field(default_factory=PageMetadata)
    content_empty: bool = False

    @property
    def has_content(self) -> bool:
        return bool(self.markdown.strip() or self.html.strip())

    @classmethod
    def placeholder(cls, metadata: Optional[PageMetadata] = None) -> "RawPage":
        """Stand-in for a scrape that succeeded but returned no content."""
        return cls(
            markdown=NO_CONTENT_PLACEHOLDER,
            metadata=metadata or PageMetadata(),
            content_empty=True,
        )


@dataclass(frozen=True)
class ScrapeProfile:
    """Back-end neutral scrape settings, mapped onto each remote API."""
    timeout_ms: int = 15000
    wait_ms: int = 3000
    include_html: bool = True
    is_affiliate: bool = False


@dataclass
class URLAnalysis:
    """URL classifier output."""
    url: str
    domain: str
    is_affiliate: bool
    is_complex_platform: bool
    platform: str
    recommended_backend: Backend
    reasoning: str


@dataclass
class AttemptRecord:
    """One call against one back-end."""
    backend: Backend
    provider: str
    attempt: int
    success: bool
    error: Optional[str] = None
    is_fallback: bool = False


@dataclass
class ScrapingOutcome:
    """Result of Scrape Orchestrator.scrape_url. Never raised, always returned."""
    success: bool
    url: str
    page: Optional[RawPage] = None
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    backend_used: Optional[str] = None
    is_affiliate_page: bool = False
    attempts: List[AttemptRecord] = field(default_factory=list)
    processing_time_ms: int = 0
    cost_estimate: float = 0.0
    cached_result: Optional["ScoredResult"] = None

    @property
    def from_cache(self) -> bool:
        return self.cached_result is not None


# ---------------------------------------------------------------------------
# Extraction layer
# ---------------------------------------------------------------------------

class ExtractedMarketingData(BaseModel):
    """Canonical structured record of a page's persuasion elements.

    Every field has a default, so a record is never partially undefined.
    """
    product_name: str = Field(default=UNKNOWN_PRODUCT)
    headlines: List[str] = Field(default_factory=list)
    testimonials: List[str] = Field(default_factory=list)
    pricing: List[str] = Field(default_factory=list)
    benefits: List[str] = Field(default_factory=list)
    ctas: List[str] = Field(default_factory=list)
    guarantees: List[str] = Field(default_factory=list)
    timeframes: List[str] = Field(default_factory=list)
    social_proof: List[str] = Field(default_factory=list)
    main_benefit: str = Field(default=MISSING)
    target_audience: str = Field(default=MISSING)
    emotional_outcome: str = Field(default=MISSING)
    category: Category = Field(default=Category.INFO)
    industry: str = Field(default=DEFAULT_INDUSTRY)
    price_point: PricePoint = Field(default=PricePoint.MEDIUM)

    @property
    def has_product_name(self) -> bool:
        name = self.product_name.strip()
        return bool(name) and name not in (UNKNOWN_PRODUCT, MISSING)

    def is_incomplete(self) -> bool:
        """True when a core persuasion element is absent."""
        return (
            not self.headlines
            or not self.benefits
            or not self.ctas
            or not self.has_product_name
        )


class ScoredResult(BaseModel):
    """ExtractedMarketingData plus its quality assessment."""
    model_config = ConfigDict(frozen=True)

    data: ExtractedMarketingData
    quality_score: float = Field(ge=0.0, le=1.0)
    completeness_score: float = Field(ge=0.0, le=1.0)
    confidence: Confidence
    missing_fields: List[str] = Field(default_factory=list)
    extraction_method: ExtractionMethod

    @property
    def is_acceptable(self) -> bool:
        return self.quality_score > 0.6

    @property
    def is_complete(self) -> bool:
        return self.quality_score > 0.8

    def to_record(self) -> Dict[str, Any]:
        """Flat JSON-ready dict for the downstream copy pipeline."""
        record = self.data.model_dump(mode="json")
        record.update({
            "quality_score": self.quality_score,
            "completeness_score": self.completeness_score,
            "confidence": self.confidence.value,
            "missing_fields": list(self.missing_fields),
            "extraction_method": self.extraction_method.value,
        })
        return record
