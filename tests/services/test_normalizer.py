"""
Tests for extraction payload normalization and merging.

Run with: pytest tests/services/test_normalizer.py -v
"""

import pytest

from offerlens.services.content_extraction.normalizer import (
    clean_list,
    has_recognized_content,
    merge_extractions,
    normalize_extraction,
)
from offerlens.services.content_extraction.utils import parse_llm_json
from offerlens.services.models import (
    DEFAULT_INDUSTRY,
    FIELD_CAPS,
    MISSING,
    UNKNOWN_PRODUCT,
    Category,
    ExtractedMarketingData,
    PricePoint,
)


class TestNormalizeExtraction:

    def test_none_gives_defaults(self):
        data = normalize_extraction(None)
        assert data.product_name == UNKNOWN_PRODUCT
        assert data.headlines == []
        assert data.main_benefit == MISSING
        assert data.category == Category.INFO
        assert data.industry == DEFAULT_INDUSTRY
        assert data.price_point == PricePoint.MEDIUM

    def test_camel_case_keys(self):
        data = normalize_extraction({
            "productName": "  Acme Widget ",
            "socialProof": ["10,000 happy customers"],
            "mainBenefit": "Sleep better",
            "targetAudience": "busy parents",
            "pricePoint": "HIGH",
        })
        assert data.product_name == "Acme Widget"
        assert data.social_proof == ["10,000 happy customers"]
        assert data.main_benefit == "Sleep better"
        assert data.target_audience == "busy parents"
        assert data.price_point == PricePoint.HIGH

    def test_snake_case_keys(self):
        data = normalize_extraction({"product_name": "Acme", "social_proof": ["4.9/5 stars"]})
        assert data.product_name == "Acme"
        assert data.social_proof == ["4.9/5 stars"]

    def test_unknown_category_defaults_to_info(self):
        assert normalize_extraction({"category": "gadget"}).category == Category.INFO

    def test_category_synonym(self):
        assert normalize_extraction({"category": "SaaS"}).category == Category.SOFTWARE

    def test_invalid_price_point_defaults(self):
        assert normalize_extraction({"pricePoint": 49}).price_point == PricePoint.MEDIUM

    def test_placeholder_product_names(self):
        assert normalize_extraction({"productName": "unknown"}).product_name == UNKNOWN_PRODUCT
        assert normalize_extraction({"productName": ""}).product_name == UNKNOWN_PRODUCT

    def test_missing_text_stays_missing(self):
        data = normalize_extraction({"mainBenefit": "MISSING", "emotionalOutcome": "   "})
        assert data.main_benefit == MISSING
        assert data.emotional_outcome == MISSING

    def test_arrays_are_capped(self):
        data = normalize_extraction({"ctas": [f"Buy option {i}" for i in range(30)]})
        assert len(data.ctas) == FIELD_CAPS["ctas"]
        assert data.ctas[0] == "Buy option 0"


class TestCleanList:

    def test_scalar_string_becomes_list(self):
        assert clean_list("Order now", 5) == ["Order now"]

    def test_drops_empty_and_duplicates(self):
        assert clean_list(["A  b", "", None, "a b", "C"], 5) == ["A b", "C"]

    def test_quote_dicts_are_flattened(self):
        assert clean_list([{"quote": "Loved it", "author": "Sam"}], 5) == ["Loved it - Sam"]

    def test_non_iterable(self):
        assert clean_list(42, 5) == []


class TestRecognizedContent:

    @pytest.mark.parametrize("payload,expected", [
        (None, False),
        ({}, False),
        ({"foo": "bar"}, False),
        ({"headlines": []}, False),
        ({"headlines": ["Big headline"]}, True),
        ({"productName": "Acme"}, True),
    ])
    def test_has_recognized_content(self, payload, expected):
        assert has_recognized_content(payload) is expected


class TestMergeExtractions:

    def test_union_keeps_primary_order(self):
        primary = ExtractedMarketingData(headlines=["One"], ctas=[])
        extra = ExtractedMarketingData(headlines=["one", "Two"], ctas=["Buy now"])
        merged = merge_extractions(primary, extra)
        assert merged.headlines == ["One", "Two"]
        assert merged.ctas == ["Buy now"]

    def test_fills_placeholder_name_only(self):
        named = ExtractedMarketingData(product_name="Acme")
        other = ExtractedMarketingData(product_name="Other")
        assert merge_extractions(named, other).product_name == "Acme"
        assert merge_extractions(ExtractedMarketingData(), other).product_name == "Other"

    def test_no_change_returns_same_object(self):
        primary = ExtractedMarketingData(headlines=["One"])
        assert merge_extractions(primary, ExtractedMarketingData()) is primary


class TestParseLlmJson:

    def test_plain_json(self):
        assert parse_llm_json('{"productName": "Acme"}') == {"productName": "Acme"}

    def test_code_fenced_json(self):
        assert parse_llm_json('```json\n{"a": 1}\n```') == {"a": 1}

    def test_json_inside_prose(self):
        assert parse_llm_json('Here you go: {"a": [1, 2]} Hope it helps') == {"a": [1, 2]}

    def test_garbage_raises(self):
        with pytest.raises(ValueError):
            parse_llm_json("I could not analyze this page.")

    def test_json_array_is_rejected(self):
        with pytest.raises(ValueError):
            parse_llm_json('["a", "b"]')

    def test_untagged_fence(self):
        assert parse_llm_json('```\n{"a": 1}\n```') == {"a": 1}

    def test_fenced_array_is_rejected(self):
        with pytest.raises(ValueError, match="No JSON object"):
            parse_llm_json('```json\n[{"a": 1}]\n```')

    def test_scalar_is_rejected(self):
        with pytest.raises(ValueError):
            parse_llm_json("42")
