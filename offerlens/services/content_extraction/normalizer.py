"""
Clean and coerce loosely-shaped extraction payloads into ExtractedMarketingData.

Used for every strategy's output (back-end structured JSON, LLM JSON, DOM
selector results): strings are trimmed, arrays capped and de-duplicated,
enum fields validated against their value sets. Any invalid or missing
value becomes the schema default.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Type, TypeVar

from ..models import (
    DEFAULT_INDUSTRY,
    FIELD_CAPS,
    LIST_FIELDS,
    MISSING,
    UNKNOWN_PRODUCT,
    Category,
    ExtractedMarketingData,
    PricePoint,
)
from .utils import collapse_whitespace, dedupe_capped

logger = logging.getLogger(__name__)

E = TypeVar("E", Category, PricePoint)

# Longest single array item kept; longer strings are page sections, not elements
MAX_ITEM_CHARS = 500
MAX_TEXT_CHARS = 300

# Accepted input keys per canonical field (camelCase from prompts/page functions)
FIELD_ALIASES: Dict[str, tuple] = {
    "product_name": ("productName", "product_name", "name"),
    "headlines": ("headlines", "headline"),
    "testimonials": ("testimonials",),
    "pricing": ("pricing", "prices", "price"),
    "benefits": ("benefits", "features"),
    "ctas": ("ctas", "callsToAction", "calls_to_action", "cta"),
    "guarantees": ("guarantees", "guarantee"),
    "timeframes": ("timeframes", "timeframe"),
    "social_proof": ("socialProof", "social_proof"),
    "main_benefit": ("mainBenefit", "main_benefit"),
    "target_audience": ("targetAudience", "target_audience"),
    "emotional_outcome": ("emotionalOutcome", "emotional_outcome"),
    "category": ("category",),
    "industry": ("industry",),
    "price_point": ("pricePoint", "price_point"),
}

CATEGORY_SYNONYMS: Dict[str, Category] = {
    "education": Category.INFO,
    "course": Category.INFO,
    "ebook": Category.INFO,
    "information": Category.INFO,
    "saas": Category.SOFTWARE,
    "app": Category.SOFTWARE,
    "product": Category.PHYSICAL,
    "supplement": Category.HEALTH,
    "consulting": Category.SERVICE,
}

PLACEHOLDER_NAMES = {"", "unknown", "unknown product", "untitled", "missing", "n/a", "none"}


def _lookup(payload: Dict[str, Any], field: str) -> Any:
    for key in FIELD_ALIASES[field]:
        if key in payload and payload[key] is not None:
            return payload[key]
    return None


def _item_text(item: Any) -> str:
    """Flatten one array element (string, number, or quote/author dict)."""
    if isinstance(item, str):
        return collapse_whitespace(item)
    if isinstance(item, (int, float)) and not isinstance(item, bool):
        return str(item)
    if isinstance(item, dict):
        text = item.get("quote") or item.get("text") or item.get("content") or item.get("value") or ""
        author = item.get("author") or item.get("name") or ""
        text = collapse_whitespace(str(text))
        if text and author:
            return f"{text} - {collapse_whitespace(str(author))}"
        return text
    return ""


def clean_list(value: Any, cap: int) -> List[str]:
    """Coerce a value into a capped, de-duplicated list of non-empty strings."""
    if value is None:
        return []
    if isinstance(value, (str, dict)):
        value = [value]
    if not isinstance(value, Iterable):
        return []

    texts = (_item_text(item) for item in value)
    return dedupe_capped((t for t in texts if t and len(t) <= MAX_ITEM_CHARS), cap)


def clean_text(value: Any, default: str = MISSING) -> str:
    if not isinstance(value, str):
        return default
    text = collapse_whitespace(value)
    if not text or text.upper() == MISSING:
        return default
    return text[:MAX_TEXT_CHARS]


def clean_product_name(value: Any) -> str:
    name = clean_text(value, default=UNKNOWN_PRODUCT)
    if name.lower() in PLACEHOLDER_NAMES:
        return UNKNOWN_PRODUCT
    return name


def clean_enum(value: Any, enum_cls: Type[E], default: E, synonyms: Optional[Dict[str, E]] = None) -> E:
    """Validate against the enum's values; unknown values fall back to the default."""
    if isinstance(value, enum_cls):
        return value
    if not isinstance(value, str):
        return default
    key = value.strip().lower()
    try:
        return enum_cls(key)
    except ValueError:
        pass
    if synonyms and key in synonyms:
        return synonyms[key]
    logger.debug(f"Rejected {enum_cls.__name__} value {value!r}, using {default.value}")
    return default


def normalize_extraction(payload: Optional[Dict[str, Any]]) -> ExtractedMarketingData:
    """
    Build a schema-complete ExtractedMarketingData from an arbitrary dict.

    Args:
        payload: Strategy output (may be None or contain junk)

    Returns:
        ExtractedMarketingData with every field defined
    """
    if not isinstance(payload, dict):
        return ExtractedMarketingData()

    fields: Dict[str, Any] = {
        name: clean_list(_lookup(payload, name), FIELD_CAPS[name]) for name in LIST_FIELDS
    }
    fields.update(
        product_name=clean_product_name(_lookup(payload, "product_name")),
        main_benefit=clean_text(_lookup(payload, "main_benefit")),
        target_audience=clean_text(_lookup(payload, "target_audience")),
        emotional_outcome=clean_text(_lookup(payload, "emotional_outcome")),
        industry=clean_text(_lookup(payload, "industry"), default=DEFAULT_INDUSTRY),
        category=clean_enum(_lookup(payload, "category"), Category, Category.INFO, CATEGORY_SYNONYMS),
        price_point=clean_enum(_lookup(payload, "price_point"), PricePoint, PricePoint.MEDIUM),
    )
    return ExtractedMarketingData(**fields)


def has_recognized_content(payload: Optional[Dict[str, Any]]) -> bool:
    """True if the payload carries at least one canonical field with a value."""
    if not isinstance(payload, dict):
        return False
    return any(_lookup(payload, field) not in (None, "", [], {}) for field in FIELD_ALIASES)


def merge_extractions(primary: ExtractedMarketingData, extra: ExtractedMarketingData) -> ExtractedMarketingData:
    """Union the arrays of ``extra`` into ``primary`` (primary items first) and
    fill primary's placeholder scalars from ``extra``."""
    updates: Dict[str, Any] = {}
    for name in LIST_FIELDS:
        merged = dedupe_capped(list(getattr(primary, name)) + list(getattr(extra, name)), FIELD_CAPS[name])
        if merged != getattr(primary, name):
            updates[name] = merged

    if not primary.has_product_name and extra.has_product_name:
        updates["product_name"] = extra.product_name
    for name in ("main_benefit", "target_audience", "emotional_outcome"):
        if getattr(primary, name) == MISSING and getattr(extra, name) != MISSING:
            updates[name] = getattr(extra, name)

    return primary.model_copy(update=updates) if updates else primary
