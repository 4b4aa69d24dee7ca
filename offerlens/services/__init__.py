"""
Services layer for OfferLens.

URL classification, scrape orchestration across remote back-ends, content
extraction, quality scoring and the end-to-end pipeline service.
"""

from .models import (
    Backend,
    Category,
    PricePoint,
    Confidence,
    ExtractionMethod,
    ErrorKind,
    PageMetadata,
    RawPage,
    ScrapeProfile,
    URLAnalysis,
    AttemptRecord,
    ScrapingOutcome,
    ExtractedMarketingData,
    ScoredResult,
)
from .url_classifier import classify_url, validate_url
from .result_cache import ResultCache
from .scrape_orchestrator import ScrapeOrchestrator
from .content_extraction import ContentExtractor
from .quality_scorer import QualityScorer
from .page_intelligence_service import (
    AnalysisResult,
    PageIntelligenceService,
    build_default_service,
)

__all__ = [
    'Backend',
    'Category',
    'PricePoint',
    'Confidence',
    'ExtractionMethod',
    'ErrorKind',
    'PageMetadata',
    'RawPage',
    'ScrapeProfile',
    'URLAnalysis',
    'AttemptRecord',
    'ScrapingOutcome',
    'ExtractedMarketingData',
    'ScoredResult',
    'classify_url',
    'validate_url',
    'ResultCache',
    'ScrapeOrchestrator',
    'ContentExtractor',
    'QualityScorer',
    'AnalysisResult',
    'PageIntelligenceService',
    'build_default_service',
]
