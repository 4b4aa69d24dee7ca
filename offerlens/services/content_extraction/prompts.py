"""
Extraction prompt and output schema for LLM-assisted extraction.

The model receives the page markdown (truncated) plus its title and
description, and must answer with one flat JSON object whose keys match
the normalizer's camelCase aliases.
"""

from typing import Optional

from ...core.config import Config
from ..models import FIELD_CAPS, RawPage

EXTRACTION_PROMPT_TEMPLATE = """Analyze this marketing page and extract its persuasion elements.

IMPORTANT: Return ONLY a JSON object matching the schema below. Use exact text from the page wherever possible. Use "MISSING" for text fields you cannot find and [] for lists with no entries.

## PAGE

Title: {title}
Description: {description}
Affiliate offer page: {is_affiliate}

Content:
{content}

## OUTPUT SCHEMA

```json
{{
  "productName": "string",
  "headlines": ["up to {headlines} headline strings"],
  "testimonials": ["up to {testimonials} quotes, with attribution when shown"],
  "pricing": ["up to {pricing} prices or price statements"],
  "benefits": ["up to {benefits} benefit statements"],
  "ctas": ["up to {ctas} call-to-action labels"],
  "guarantees": ["up to {guarantees} guarantee statements"],
  "timeframes": ["up to {timeframes} promised timeframes"],
  "socialProof": ["up to {social_proof} social proof statements"],
  "mainBenefit": "string",
  "targetAudience": "string",
  "emotionalOutcome": "string",
  "category": "software | physical | service | info | health",
  "industry": "string",
  "pricePoint": "low | medium | high | premium"
}}
```"""


def build_extraction_prompt(
    page: RawPage, content: str, is_affiliate: bool = False, char_limit: Optional[int] = None
) -> str:
    """Fill the template with page metadata and the first ``char_limit`` characters of ``content``."""
    limit = char_limit or Config.LLM_CONTENT_CHAR_LIMIT
    return EXTRACTION_PROMPT_TEMPLATE.format(
        title=page.metadata.title or "(none)",
        description=page.metadata.description or "(none)",
        is_affiliate="yes" if is_affiliate else "no",
        content=(content or "")[:limit],
        **FIELD_CAPS,
    )
