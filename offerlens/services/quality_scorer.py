"""
Quality scoring for extracted marketing data.

quality_score: weighted sum over fields, each field contributing
    weight * min(count / target, 1). Affiliate pages shift weight toward
    testimonials, pricing and guarantees.
completeness_score: required fields weigh 2, optional fields 1,
    normalized by the total weight.
"""

import logging
from typing import Dict, List

from .models import (
    Confidence,
    ExtractedMarketingData,
    ExtractionMethod,
    ScoredResult,
)

logger = logging.getLogger(__name__)

# Weights per field (each table sums to 1.0)
STANDARD_WEIGHTS: Dict[str, float] = {
    "product_name": 0.10,
    "headlines": 0.20,
    "benefits": 0.20,
    "ctas": 0.15,
    "testimonials": 0.10,
    "pricing": 0.10,
    "guarantees": 0.05,
    "social_proof": 0.05,
    "timeframes": 0.05,
}

AFFILIATE_WEIGHTS: Dict[str, float] = {
    "product_name": 0.05,
    "headlines": 0.10,
    "benefits": 0.15,
    "ctas": 0.10,
    "testimonials": 0.20,
    "pricing": 0.15,
    "guarantees": 0.15,
    "social_proof": 0.05,
    "timeframes": 0.05,
}

# Item count at which a list field earns its full weight
TARGET_COUNTS: Dict[str, int] = {
    "headlines": 2,
    "benefits": 5,
    "ctas": 2,
    "testimonials": 2,
    "pricing": 1,
    "guarantees": 1,
    "social_proof": 2,
    "timeframes": 1,
}

REQUIRED_FIELDS = ("product_name", "headlines", "benefits", "ctas")
OPTIONAL_FIELDS = ("testimonials", "pricing", "guarantees", "social_proof", "timeframes")
REQUIRED_WEIGHT = 2
OPTIONAL_WEIGHT = 1

# Confidence thresholds
HIGH_CONFIDENCE_LLM = 0.8
HIGH_CONFIDENCE = 0.7
MEDIUM_CONFIDENCE = 0.5

FIELD_LABELS: Dict[str, str] = {
    "product_name": "Product Name",
    "headlines": "Headlines",
    "benefits": "Benefits",
    "ctas": "Call-to-Actions",
    "testimonials": "Testimonials",
    "pricing": "Pricing",
    "guarantees": "Guarantees",
}
AFFILIATE_CHECKED_FIELDS = ("testimonials", "pricing", "guarantees")


def _field_fraction(data: ExtractedMarketingData, name: str) -> float:
    """0..1 fill level of one field."""
    if name == "product_name":
        return 1.0 if data.has_product_name else 0.0
    count = len(getattr(data, name))
    return min(count / TARGET_COUNTS[name], 1.0)


def _is_present(data: ExtractedMarketingData, name: str) -> bool:
    return _field_fraction(data, name) > 0


def quality_score(data: ExtractedMarketingData, is_affiliate: bool = False) -> float:
    weights = AFFILIATE_WEIGHTS if is_affiliate else STANDARD_WEIGHTS
    total = sum(weight * _field_fraction(data, name) for name, weight in weights.items())
    return round(max(0.0, min(total, 1.0)), 4)


def completeness_score(data: ExtractedMarketingData) -> float:
    earned = sum(REQUIRED_WEIGHT for name in REQUIRED_FIELDS if _is_present(data, name))
    earned += sum(OPTIONAL_WEIGHT for name in OPTIONAL_FIELDS if _is_present(data, name))
    possible = REQUIRED_WEIGHT * len(REQUIRED_FIELDS) + OPTIONAL_WEIGHT * len(OPTIONAL_FIELDS)
    return round(earned / possible, 4)


def confidence_for(score: float, method: ExtractionMethod) -> Confidence:
    if (method == ExtractionMethod.LLM and score > HIGH_CONFIDENCE_LLM) or score > HIGH_CONFIDENCE:
        return Confidence.HIGH
    if score > MEDIUM_CONFIDENCE:
        return Confidence.MEDIUM
    return Confidence.LOW


def missing_fields(data: ExtractedMarketingData, is_affiliate: bool = False) -> List[str]:
    """Labels of absent core fields (plus affiliate-critical fields on affiliate pages)."""
    checked = list(REQUIRED_FIELDS)
    if is_affiliate:
        checked.extend(AFFILIATE_CHECKED_FIELDS)
    return [FIELD_LABELS[name] for name in checked if not _is_present(data, name)]


class QualityScorer:
    """
    Scores ExtractedMarketingData.

    Usage:
        scored = QualityScorer().score(data, is_affiliate=True, method=ExtractionMethod.LLM)
        if scored.is_acceptable:
            ...
    """

    def score(
        self,
        data: ExtractedMarketingData,
        is_affiliate: bool = False,
        method: ExtractionMethod = ExtractionMethod.HEURISTIC,
    ) -> ScoredResult:
        quality = quality_score(data, is_affiliate)
        result = ScoredResult(
            data=data,
            quality_score=quality,
            completeness_score=completeness_score(data),
            confidence=confidence_for(quality, method),
            missing_fields=missing_fields(data, is_affiliate),
            extraction_method=method,
        )
        logger.info(
            f"Scored '{data.product_name}': quality={result.quality_score:.2f} "
            f"completeness={result.completeness_score:.2f} confidence={result.confidence.value}"
        )
        return result
