"""Deterministic marketing-element extraction from page markdown.

Regex and keyword heuristics, no LLM. Always produces a schema-complete
record, so it is the last strategy in the extraction chain. Each element
matcher is a plain function over the page lines so it can be tested and
reused on its own.
"""

import logging
import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Pattern, Sequence, Tuple

from ..models import (
    DEFAULT_INDUSTRY,
    FIELD_CAPS,
    MISSING,
    UNKNOWN_PRODUCT,
    Category,
    ExtractedMarketingData,
    PricePoint,
    RawPage,
)
from .dom_extractor import html_to_text
from .normalizer import clean_product_name
from .utils import collapse_whitespace, dedupe_capped

logger = logging.getLogger(__name__)

# Length bands for candidate strings
_MIN_ATTRIBUTED_QUOTE = 10
_MIN_QUOTE, _MAX_QUOTE = 30, 300
_MAX_SENTENCE = 200
_MAX_CTA_LINE = 80
_MAX_PRODUCT_NAME = 100
_MIN_CATEGORY_HITS = 2
_MIN_INDUSTRY_MATCHES = 2


# ---------------------------------------------------------------------------
# Markdown structure
# ---------------------------------------------------------------------------

_HEADING_RE = re.compile(r'^\s{0,3}(#{1,6})\s+(.+?)\s*#*\s*$')
_LIST_ITEM_RE = re.compile(r'^\s*(?:[-*+•✓✔]|\d+[.)])\s+(.+)$')
_BLOCKQUOTE_RE = re.compile(r'^\s*>\s?(.*)$')
_IMAGE_RE = re.compile(r'!\[([^\]]*)\]\(([^)]*)\)')
_LINK_RE = re.compile(r'\[([^\]]+)\]\(([^)]*)\)')
_EMPHASIS_RE = re.compile(r'(\*\*|__|\*)(.+?)\1')
_BOLD_SPAN_RE = re.compile(r'\*\*([^*\n]{3,80})\*\*')
_SENTENCE_SPLIT_RE = re.compile(r'(?<=[.!?])\s+')


@dataclass
class PageLine:
    """One non-blank markdown line with its markup stripped."""
    raw: str
    text: str
    kind: str   # "heading", "list", "quote", "text"


def _strip_inline(text: str) -> str:
    text = _IMAGE_RE.sub("", text)
    text = _LINK_RE.sub(r"\1", text)
    text = _EMPHASIS_RE.sub(r"\2", text)
    return collapse_whitespace(text)


def split_lines(markdown: str) -> List[PageLine]:
    lines: List[PageLine] = []
    for raw in (markdown or "").splitlines():
        if not raw.strip():
            continue
        heading = _HEADING_RE.match(raw)
        quote = _BLOCKQUOTE_RE.match(raw)
        item = _LIST_ITEM_RE.match(raw)
        if heading:
            kind, body = "heading", heading.group(2)
        elif quote:
            kind, body = "quote", quote.group(1)
        elif item:
            kind, body = "list", item.group(1)
        else:
            kind, body = "text", raw
        text = _strip_inline(body)
        if text:
            lines.append(PageLine(raw=raw, text=text, kind=kind))
    return lines


def _sentences(text: str) -> List[str]:
    return [s.strip() for s in _SENTENCE_SPLIT_RE.split(text) if s.strip()]


def _matching_sentences(lines: Sequence[PageLine], pattern: Pattern, cap: int) -> List[str]:
    """Sentences (not whole paragraphs) containing a pattern match, in page order."""
    found = []
    for line in lines:
        for sentence in _sentences(line.text):
            if pattern.search(sentence):
                found.append(sentence[:_MAX_SENTENCE])
    return dedupe_capped(found, cap)


# ---------------------------------------------------------------------------
# Element patterns
# ---------------------------------------------------------------------------

# Title separators: "Name | Site", "Name - Tagline", "Name—Tagline"
_TITLE_SUFFIX_RE = re.compile(r'\s*(?:\||\s[-–—]\s|[–—]).*$')

_MAIN_BENEFIT_PATTERNS = [
    re.compile(
        r'\b((?:get|achieve|learn|discover|unlock|master|increase|improve|boost|grow|build|create|'
        r'generate|earn|save|transform|eliminate)\s+[^.!?\n]{15,150})',
        re.IGNORECASE,
    ),
    re.compile(r'\b((?:helps? you|allows? you to|enables? you to)\s+[^.!?\n]{15,150})', re.IGNORECASE),
    re.compile(r'\b((?:guaranteed to|proven to|designed to)\s+[^.!?\n]{15,150})', re.IGNORECASE),
]
_BOILERPLATE_RE = re.compile(
    r'\b(?:cookies?|privacy|terms|policy|copyright|all rights reserved)\b', re.IGNORECASE
)

_ATTRIBUTED_QUOTE_RE = re.compile(
    r'["“]([^"“”\n]{%d,%d})["”]\s*[-–—~]\s*([A-Z][\w.\']*(?:\s[A-Z][\w.\']*){0,3})'
    % (_MIN_ATTRIBUTED_QUOTE, _MAX_QUOTE)
)
_QUOTED_RE = re.compile(r'["“]([^"“”\n]{%d,%d})["”]' % (_MIN_QUOTE, _MAX_QUOTE))

# Single quotes open after a non-word character and close before one, so
# apostrophes inside words ("don't", "it's") never delimit a span
_SINGLE_OPEN = r"(?<![\w'‘’])['‘]"
_SINGLE_CLOSE = r"['’](?!\w)"
_SINGLE_ATTRIBUTED_QUOTE_RE = re.compile(
    _SINGLE_OPEN + r"((?=\S)[^\n]{%d,%d}?(?<=\S))" % (_MIN_ATTRIBUTED_QUOTE, _MAX_QUOTE) + _SINGLE_CLOSE
    + r"\s*[-–—~]\s*([A-Z][\w.]*(?:\s[A-Z][\w.]*){0,3})"
)
_SINGLE_QUOTED_RE = re.compile(
    _SINGLE_OPEN + r"((?=\S)[^\n]{%d,%d}?(?<=\S))" % (_MIN_QUOTE, _MAX_QUOTE) + _SINGLE_CLOSE
)
_ATTRIBUTED_PATTERNS = (_ATTRIBUTED_QUOTE_RE, _SINGLE_ATTRIBUTED_QUOTE_RE)
_QUOTED_PATTERNS = (_QUOTED_RE, _SINGLE_QUOTED_RE)
_TRANSACTIONAL_RE = re.compile(r'\b(?:click|order|buy|checkout|add to cart)\b', re.IGNORECASE)

_CURRENCY_RE = re.compile(
    r'(?:[$€£¥]\s?\d[\d,]*(?:\.\d{1,2})?|\b\d[\d,]*(?:\.\d{1,2})?\s?(?:USD|EUR|GBP|dollars)\b)'
)
_PRICE_KEYWORD_RE = re.compile(
    r'\b(?:prices?|pricing|costs?|discount(?:ed)?|per month|one[- ]time payment|sale)\b'
    r'|\d+%\s*off\b|/mo(?:nth)?\b',
    re.IGNORECASE,
)

_BENEFIT_KEYWORD_RE = re.compile(
    r'\b(?:benefits?|features?|results?|improves?|boosts?|increases?|reduces?|supports?|helps?|'
    r'faster|easier|better|healthier|saves?|natural|proven|powerful|effortless(?:ly)?)\b',
    re.IGNORECASE,
)

_CTA_RE = re.compile(
    r'\b(?:buy now|order now|order today|get started|get instant access|add to cart|sign up|'
    r'start (?:my|your) (?:free )?trial|claim (?:my|your)\b[^.!?\n]{0,30}|'
    r'try (?:it )?(?:now|free|risk[- ]free)|download now|join now|subscribe(?: now)?|'
    r'get (?:my|your)\b[^.!?\n]{0,30}|yes[,!]? i want\b[^.!?\n]{0,40}|shop now|'
    r'book (?:a|your) (?:call|demo|consultation)|register now|checkout)\b',
    re.IGNORECASE,
)
_ACTION_LABEL_RE = re.compile(
    r'^\s*(?:buy|order|get|start|claim|try|download|join|subscribe|shop|sign up|register|'
    r'add to cart|checkout|grab|book|yes)\b',
    re.IGNORECASE,
)
_BUTTON_LINK_RE = re.compile(r'\[([^\]]{2,60})\]\([^)]*\)')

_GUARANTEE_RE = re.compile(
    r'\b\d{1,3}[- ]day\b[^.!?\n]{0,40}?\bguarantee|\bmoney[- ]back\b|\bfull refund\b|\brefunds?\b|'
    r'\brisk[- ]free\b|\bsatisfaction guarantee|\b100% guarantee',
    re.IGNORECASE,
)

_TIMEFRAME_RE = re.compile(
    r'\b(?:(?:in|within|under|just|only|after|over)\s+)?\d{1,3}(?:\s*-\s*|\s+)'
    r'(?:minutes?|hours?|days?|weeks?|months?|years?)\b',
    re.IGNORECASE,
)

_SOCIAL_PROOF_RE = re.compile(
    r'\b\d[\d,.]*\s*[kKmM]?\+?\s+(?:happy |satisfied |verified )?'
    r'(?:customers|users|clients|members|students|people|buyers|subscribers|downloads|sold)\b'
    r'|\b\d{1,3}(?:\.\d)?%\s+(?:of\s+)?(?:customers|users|clients|people|satisfaction|satisfied|recommend)'
    r'|\b[\d,.]+\+?\s+(?:5-star\s+|five-star\s+)?(?:reviews|ratings)\b'
    r'|\b\d(?:\.\d)?\s*(?:/\s*5|out of 5)\s*stars?\b'
    r'|\b(?:rated|trusted by|as seen on|featured in)\b',
    re.IGNORECASE,
)

_AUDIENCE_PATTERNS = [
    re.compile(r'\b(?:designed for|perfect for|ideal for|made for|built for|created for)\s+([^.!?\n]{10,80})', re.IGNORECASE),
    re.compile(
        r'\bfor\s+((?:busy |aspiring |new |first-time |all )?(?:men|women|parents|moms|dads|seniors|adults|'
        r'kids|teens|entrepreneurs|business owners|marketers|professionals|students|beginners|coaches|'
        r'consultants|freelancers|creators|anyone)\b[^.!?\n]{0,60})',
        re.IGNORECASE,
    ),
    re.compile(r'\b(?:if you\'re|if you are|are you)\s+([^.!?\n]{10,80})', re.IGNORECASE),
    re.compile(r'\b((?:men|women|adults|people)\s+(?:over|aged|between)\s+\d{2}[^.!?\n]{0,40})', re.IGNORECASE),
]

# Domain keyword -> default audience, checked in order when no pattern matches
AUDIENCE_DEFAULTS: List[Tuple[Tuple[str, ...], str]] = [
    (("dental", "teeth", "gum", "oral"), "adults concerned about oral and dental health"),
    (("weight loss", "fat burn", "metabolism", "diet"), "adults looking to lose weight"),
    (("blood sugar", "diabetes", "glucose"), "adults managing blood sugar levels"),
    (("prostate",), "men over 40 concerned about prostate health"),
    (("joint pain", "arthritis"), "adults with joint pain"),
    (("hair loss", "hair growth"), "adults experiencing hair loss"),
    (("memory", "brain", "focus"), "adults seeking better memory and focus"),
    (("make money", "online business", "affiliate marketing", "passive income"), "aspiring online entrepreneurs"),
]

_EMOTION_RE = re.compile(r'\b(?:feel|become|achieve|experience)\s+[^.!?\n]{10,60}', re.IGNORECASE)
_OUTCOME_NOUN_RE = re.compile(
    r'\b(financial freedom|peace of mind|confidence|freedom|happiness|security|success|fulfillment|vitality)\b',
    re.IGNORECASE,
)


def _keyword_re(words: Sequence[str]) -> Pattern:
    return re.compile(r'\b(?:' + '|'.join(re.escape(w) for w in words) + r')\b', re.IGNORECASE)


CATEGORY_KEYWORDS: Dict[Category, Tuple[str, ...]] = {
    Category.SOFTWARE: ("software", "app", "saas", "platform", "dashboard", "plugin", "cloud", "integration"),
    Category.PHYSICAL: ("shipping", "bottle", "ships", "package", "device", "gadget", "kit", "in stock", "delivered"),
    Category.SERVICE: ("service", "consulting", "agency", "done-for-you", "coaching", "appointment", "consultation"),
    Category.INFO: ("course", "ebook", "training", "guide", "program", "module", "lesson", "masterclass", "blueprint"),
    Category.HEALTH: ("health", "supplement", "capsules", "formula", "ingredients", "weight loss", "blood sugar",
                      "dental", "teeth", "immune"),
}
_CATEGORY_RES = {category: _keyword_re(words) for category, words in CATEGORY_KEYWORDS.items()}

INDUSTRY_KEYWORDS: Dict[str, Tuple[str, ...]] = {
    "Digital Marketing": ("marketing", "seo", "advertising", "social media", "email marketing"),
    "Business": ("business", "entrepreneur", "startup", "revenue", "profit"),
    "Education": ("course", "training", "learn", "education", "certification"),
    "Health & Fitness": ("health", "fitness", "weight loss", "nutrition", "workout"),
    "Health & Wellness": ("supplement", "dental", "teeth", "blood sugar", "immune", "capsules"),
    "Technology": ("software", "app", "tech", "programming", "code"),
    "Finance": ("investing", "money", "financial", "trading", "cryptocurrency"),
}


# ---------------------------------------------------------------------------
# Element matchers
# ---------------------------------------------------------------------------

def extract_product_name(lines: Sequence[PageLine], markdown: str, title: str = "") -> str:
    """Title (site suffix stripped) -> first heading -> first bold span -> first long line."""
    candidates = [_TITLE_SUFFIX_RE.sub("", title or "").strip()]
    candidates.append(next((l.text for l in lines if l.kind == "heading"), ""))
    bold = _BOLD_SPAN_RE.search(markdown or "")
    candidates.append(bold.group(1).strip() if bold else "")
    candidates.append(next((l.text for l in lines if len(l.text) > 10), ""))

    for candidate in candidates:
        name = clean_product_name(candidate[:_MAX_PRODUCT_NAME])
        if len(name) >= 3 and name != UNKNOWN_PRODUCT:
            return name
    return UNKNOWN_PRODUCT


def extract_main_benefit(lines: Sequence[PageLine]) -> str:
    text = "\n".join(l.text for l in lines)
    for pattern in _MAIN_BENEFIT_PATTERNS:
        for match in pattern.finditer(text):
            candidate = match.group(1).strip()
            if not _BOILERPLATE_RE.search(candidate) and not _CTA_RE.fullmatch(candidate):
                return candidate

    for line in lines:
        if line.kind == "heading" and len(line.text) >= 20:
            return line.text[:_MAX_SENTENCE]
    for line in lines:
        for sentence in _sentences(line.text):
            if 40 <= len(sentence) <= _MAX_SENTENCE and not _BOILERPLATE_RE.search(sentence):
                return sentence
    return MISSING


def extract_headlines(lines: Sequence[PageLine], main_benefit: str = MISSING) -> List[str]:
    headlines = [l.text[:_MAX_SENTENCE] for l in lines if l.kind == "heading" and len(l.text) >= 3]
    if main_benefit != MISSING:
        headlines.append(main_benefit)
    return dedupe_capped(headlines, FIELD_CAPS["headlines"])


def extract_testimonials(lines: Sequence[PageLine]) -> List[str]:
    """Attributed quotes ("..." or '...' - Name), longer quoted spans, then blockquotes."""
    found = []
    for line in lines:
        attributed = [
            f"{m.group(1).strip()} - {m.group(2).strip()}"
            for pattern in _ATTRIBUTED_PATTERNS for m in pattern.finditer(line.text)
        ]
        quoted = attributed or [
            m.group(1).strip() for pattern in _QUOTED_PATTERNS for m in pattern.finditer(line.text)
        ]
        if not quoted and line.kind == "quote" and _MIN_QUOTE <= len(line.text) <= _MAX_QUOTE:
            quoted = [line.text]
        found.extend(q for q in quoted if not _TRANSACTIONAL_RE.search(q))
    return dedupe_capped(found, FIELD_CAPS["testimonials"])


def extract_pricing(lines: Sequence[PageLine]) -> List[str]:
    """Currency amounts where present, otherwise short lines naming a price."""
    found = []
    for line in lines:
        amounts = [collapse_whitespace(m.group(0)) for m in _CURRENCY_RE.finditer(line.text)]
        if amounts:
            found.extend(amounts)
        elif _PRICE_KEYWORD_RE.search(line.text) and 5 <= len(line.text) <= 150:
            found.append(line.text)
    return dedupe_capped(found, FIELD_CAPS["pricing"])


def extract_benefits(lines: Sequence[PageLine]) -> List[str]:
    found = []
    for line in lines:
        if line.kind in ("heading", "quote") or line.text[0] in '"“\'':
            continue
        if _CTA_RE.search(line.text) or not (10 <= len(line.text) <= _MAX_SENTENCE):
            continue
        if line.kind == "list" or (len(line.text) >= 15 and _BENEFIT_KEYWORD_RE.search(line.text)):
            found.append(line.text)
    return dedupe_capped(found, FIELD_CAPS["benefits"])


def extract_ctas(lines: Sequence[PageLine]) -> List[str]:
    """Action-labelled links/buttons first, then lines carrying a CTA phrase."""
    found = []
    for line in lines:
        labels = [_strip_inline(label) for label in _BUTTON_LINK_RE.findall(line.raw)]
        labels = [label for label in labels if _ACTION_LABEL_RE.match(label)]
        if labels:
            found.extend(labels)
            continue
        match = _CTA_RE.search(line.text)
        if match:
            found.append(line.text if len(line.text) <= _MAX_CTA_LINE else match.group(0).strip())
    return dedupe_capped(found, FIELD_CAPS["ctas"])


def extract_guarantees(lines: Sequence[PageLine]) -> List[str]:
    return _matching_sentences(lines, _GUARANTEE_RE, FIELD_CAPS["guarantees"])


def extract_social_proof(lines: Sequence[PageLine]) -> List[str]:
    return _matching_sentences(lines, _SOCIAL_PROOF_RE, FIELD_CAPS["social_proof"])


def extract_timeframes(lines: Sequence[PageLine]) -> List[str]:
    found = [collapse_whitespace(m.group(0)) for l in lines for m in _TIMEFRAME_RE.finditer(l.text)]
    return dedupe_capped(found, FIELD_CAPS["timeframes"])


def extract_target_audience(text: str) -> str:
    for pattern in _AUDIENCE_PATTERNS:
        match = pattern.search(text)
        if match:
            return match.group(1).strip()

    lowered = text.lower()
    for keywords, audience in AUDIENCE_DEFAULTS:
        if any(k in lowered for k in keywords):
            return audience
    return MISSING


def extract_emotional_outcome(text: str) -> str:
    match = _EMOTION_RE.search(text)
    if match:
        return match.group(0).strip()
    match = _OUTCOME_NOUN_RE.search(text)
    if match:
        return match.group(1).lower()
    return MISSING


def classify_category(text: str) -> Category:
    """Keyword-frequency vote; a category needs at least two hits to win."""
    hits = {category: len(regex.findall(text)) for category, regex in _CATEGORY_RES.items()}
    best = max(hits, key=lambda c: hits[c])
    if hits[best] >= _MIN_CATEGORY_HITS:
        return best
    return Category.INFO


def classify_industry(text: str) -> str:
    """First industry (table order) with at least two distinct keywords present."""
    lowered = text.lower()
    for industry, keywords in INDUSTRY_KEYWORDS.items():
        if sum(1 for k in keywords if k in lowered) >= _MIN_INDUSTRY_MATCHES:
            return industry
    return DEFAULT_INDUSTRY


def _parse_amount(raw: str) -> Optional[float]:
    digits = re.sub(r'[^\d.]', '', raw.replace(",", ""))
    try:
        return float(digits)
    except ValueError:
        return None


def determine_price_point(text: str) -> PricePoint:
    amounts = [a for a in (_parse_amount(m.group(0)) for m in _CURRENCY_RE.finditer(text)) if a is not None]
    if amounts:
        top = max(amounts)
        if top > 1000:
            return PricePoint.PREMIUM
        if top > 200:
            return PricePoint.HIGH
        if top > 50:
            return PricePoint.MEDIUM
        return PricePoint.LOW

    lowered = text.lower()
    if "premium" in lowered or "exclusive" in lowered:
        return PricePoint.PREMIUM
    if "professional" in lowered or "advanced" in lowered:
        return PricePoint.HIGH
    return PricePoint.MEDIUM


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def page_markdown(page: Optional[RawPage]) -> str:
    """Text the heuristics run over: markdown, else text recovered from HTML.

    Placeholder pages have no usable text.
    """
    if page is None or page.content_empty:
        return ""
    if page.markdown.strip():
        return page.markdown
    return html_to_text(page.html)


def extract_with_heuristics(page: Optional[RawPage]) -> ExtractedMarketingData:
    """Run every matcher over the page. Never fails."""
    markdown = page_markdown(page)
    title = page.metadata.title if page is not None and not page.content_empty else ""
    lines = split_lines(markdown)
    text = "\n".join(l.text for l in lines)

    main_benefit = extract_main_benefit(lines)
    data = ExtractedMarketingData(
        product_name=extract_product_name(lines, markdown, title),
        headlines=extract_headlines(lines, main_benefit),
        testimonials=extract_testimonials(lines),
        pricing=extract_pricing(lines),
        benefits=extract_benefits(lines),
        ctas=extract_ctas(lines),
        guarantees=extract_guarantees(lines),
        timeframes=extract_timeframes(lines),
        social_proof=extract_social_proof(lines),
        main_benefit=main_benefit,
        target_audience=extract_target_audience(text),
        emotional_outcome=extract_emotional_outcome(text),
        category=classify_category(text),
        industry=classify_industry(text),
        price_point=determine_price_point(text),
    )
    logger.debug(
        f"Heuristic extraction: {len(data.headlines)} headlines, {len(data.benefits)} benefits, "
        f"{len(data.ctas)} CTAs, {len(data.testimonials)} testimonials"
    )
    return data
