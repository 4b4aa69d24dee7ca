"""
Tests for the regex/keyword extraction heuristics.

Run with: pytest tests/services/test_heuristics.py -v
"""

import pytest

from offerlens.services.content_extraction.heuristics import (
    classify_category,
    classify_industry,
    determine_price_point,
    extract_ctas,
    extract_emotional_outcome,
    extract_main_benefit,
    extract_product_name,
    extract_social_proof,
    extract_target_audience,
    extract_testimonials,
    extract_with_heuristics,
    split_lines,
)
from offerlens.services.models import (
    MISSING,
    UNKNOWN_PRODUCT,
    Category,
    PageMetadata,
    PricePoint,
    RawPage,
)


class TestSalesPageHeuristics:
    """A minimal sales page with one of each core element."""

    def test_extracts_each_element(self, sales_markdown):
        data = extract_with_heuristics(RawPage(markdown=sales_markdown))

        assert data.product_name == "Acme Widget"
        assert "Get amazing results in 30 days" in data.headlines
        assert data.main_benefit == "Get amazing results in 30 days"
        assert data.testimonials == ["This changed my life! - Jane"]
        assert data.pricing == ["$49"]
        assert data.guarantees == ["60-day money-back guarantee"]
        assert data.ctas == []
        assert data.price_point == PricePoint.LOW

    def test_timeframes(self, sales_markdown):
        data = extract_with_heuristics(RawPage(markdown=sales_markdown))
        assert "in 30 days" in data.timeframes
        assert "60-day" in data.timeframes


class TestEmptyPages:

    def test_none_page(self):
        data = extract_with_heuristics(None)
        assert data.product_name == UNKNOWN_PRODUCT
        assert data.headlines == [] and data.benefits == [] and data.ctas == []

    def test_placeholder_page_is_treated_as_empty(self):
        data = extract_with_heuristics(RawPage.placeholder())
        assert data.product_name == UNKNOWN_PRODUCT
        assert data.benefits == []
        assert data.main_benefit == MISSING

    def test_placeholder_page_ignores_metadata_title(self):
        data = extract_with_heuristics(RawPage.placeholder(PageMetadata(title="Acme Store | Home")))
        assert data.product_name == UNKNOWN_PRODUCT
        assert data.headlines == []

    def test_html_only_page(self):
        html = "<html><body><h1>Zen Sleep Formula</h1><p>Fall asleep faster every night with natural ingredients.</p></body></html>"
        data = extract_with_heuristics(RawPage(html=html))
        assert data.product_name == "Zen Sleep Formula"
        assert data.benefits


class TestProductName:

    def test_title_suffix_is_stripped(self):
        assert extract_product_name([], "", "Acme Widget | Official Site") == "Acme Widget"
        assert extract_product_name([], "", "Acme Widget - Best Widgets Online") == "Acme Widget"

    def test_hyphenated_title_is_kept(self):
        assert extract_product_name([], "", "Anti-Aging Serum") == "Anti-Aging Serum"

    def test_bold_span_fallback(self):
        markdown = "Welcome\n**SuperSlim Pro** is here"
        assert extract_product_name(split_lines(markdown), markdown, "") == "SuperSlim Pro"


class TestTestimonials:

    def test_unattributed_quote_needs_thirty_chars(self):
        lines = split_lines('"Too short to count"\n"I lost twelve pounds in the first month and kept it off."')
        assert extract_testimonials(lines) == ["I lost twelve pounds in the first month and kept it off."]

    def test_blockquote(self):
        lines = split_lines("> My energy levels have never been better since I started this program.")
        assert len(extract_testimonials(lines)) == 1

    def test_transactional_quotes_are_dropped(self):
        lines = split_lines('"Click here to order your bottle before the sale ends tonight" - Team')
        assert extract_testimonials(lines) == []

    def test_single_quoted_attributed_quote(self):
        lines = split_lines("'This product completely changed the way I sleep at night' - Sam")
        assert extract_testimonials(lines) == ["This product completely changed the way I sleep at night - Sam"]

    def test_single_quoted_span_inside_a_sentence(self):
        lines = split_lines("Customers say 'I have never felt this rested in my entire adult life' every week")
        assert extract_testimonials(lines) == ["I have never felt this rested in my entire adult life"]

    def test_curly_single_quotes(self):
        lines = split_lines("‘Honestly the best purchase I have made all year long’ – Priya")
        assert extract_testimonials(lines) == ["Honestly the best purchase I have made all year long - Priya"]

    def test_apostrophes_do_not_open_a_quote(self):
        lines = split_lines("Don't wait: it's the formula we've refined for years and you'll love the taste")
        assert extract_testimonials(lines) == []


class TestCtas:

    def test_action_link_labels(self):
        lines = split_lines("[Order Now](https://example.com/checkout) | [About us](/about)")
        assert extract_ctas(lines) == ["Order Now"]

    def test_cta_phrase_line(self):
        lines = split_lines("Yes! I want my bottles today")
        assert extract_ctas(lines) == ["Yes! I want my bottles today"]

    def test_plain_benefit_is_not_cta(self):
        assert extract_ctas(split_lines("Get amazing results in 30 days.")) == []


class TestSocialProof:

    def test_counts_and_ratings(self):
        lines = split_lines("Join 10,000+ happy customers. Rated 4.8 out of 5 stars.\nWe ship fast.")
        found = extract_social_proof(lines)
        assert "Join 10,000+ happy customers." in found
        assert "Rated 4.8 out of 5 stars." in found
        assert len(found) == 2


class TestFreeTextFields:

    def test_main_benefit_skips_boilerplate(self):
        lines = split_lines("Learn more about our cookie policy and privacy settings.\nDiscover the secret to effortless weight loss")
        assert extract_main_benefit(lines) == "Discover the secret to effortless weight loss"

    def test_target_audience_pattern(self):
        assert extract_target_audience("This program is designed for busy working moms.") == "busy working moms"

    def test_target_audience_domain_default(self):
        text = "Support healthy teeth and gums with our probiotic blend."
        assert extract_target_audience(text) == "adults concerned about oral and dental health"

    def test_target_audience_missing(self):
        assert extract_target_audience("A widget.") == MISSING

    def test_emotional_outcome(self):
        assert extract_emotional_outcome("You will feel confident in your skin again.") == "feel confident in your skin again"
        assert extract_emotional_outcome("Finally enjoy true peace of mind.") == "peace of mind"


class TestClassification:

    def test_category_needs_two_hits(self):
        assert classify_category("Our app is great") == Category.INFO
        assert classify_category("Our app and cloud dashboard") == Category.SOFTWARE

    def test_health_category(self):
        text = "This supplement uses natural ingredients to support immune health"
        assert classify_category(text) == Category.HEALTH

    def test_industry(self):
        assert classify_industry("Grow your business and profit") == "Business"
        assert classify_industry("A lovely widget") == "General"

    @pytest.mark.parametrize("text,expected", [
        ("Only $19.99", PricePoint.LOW),
        ("Just $97 today", PricePoint.MEDIUM),
        ("Was $497, now $297", PricePoint.HIGH),
        ("Enroll for $1,997", PricePoint.PREMIUM),
        ("An exclusive membership", PricePoint.PREMIUM),
        ("Advanced training", PricePoint.HIGH),
        ("No price listed", PricePoint.MEDIUM),
    ])
    def test_price_point(self, text, expected):
        assert determine_price_point(text) == expected
