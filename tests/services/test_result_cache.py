"""
Tests for ResultCache: TTL expiry, insertion-order eviction, key normalization.

Run with: pytest tests/services/test_result_cache.py -v
"""

from offerlens.services.content_extraction import extract_with_heuristics
from offerlens.services.models import RawPage
from offerlens.services.quality_scorer import QualityScorer
from offerlens.services.result_cache import ResultCache, normalize_cache_key


class TestCacheKeys:

    def test_keys_are_trimmed_and_lowercased(self):
        assert normalize_cache_key("  HTTPS://Example.com/Offer ") == "https://example.com/offer"

    def test_lookup_ignores_case(self, clock):
        cache = ResultCache(ttl_seconds=60, max_entries=10, clock=clock)
        cache.put("https://Example.com/Offer", "scored")
        assert cache.get("https://example.com/offer") == "scored"
        assert "HTTPS://EXAMPLE.COM/OFFER" in cache


class TestCacheExpiry:

    def test_hit_before_ttl(self, clock):
        cache = ResultCache(ttl_seconds=1800, max_entries=10, clock=clock)
        cache.put("https://a.com", "A")
        clock.advance(1799)
        assert cache.get("https://a.com") == "A"

    def test_miss_at_ttl(self, clock):
        cache = ResultCache(ttl_seconds=1800, max_entries=10, clock=clock)
        cache.put("https://a.com", "A")
        clock.advance(1800)
        assert cache.get("https://a.com") is None
        assert len(cache) == 0

    def test_replace_resets_timestamp(self, clock):
        cache = ResultCache(ttl_seconds=100, max_entries=10, clock=clock)
        cache.put("https://a.com", "old")
        clock.advance(90)
        cache.put("https://a.com", "new")
        clock.advance(50)
        assert cache.get("https://a.com") == "new"


class TestCacheEviction:

    def test_oldest_inserted_evicted_when_full(self, clock):
        cache = ResultCache(ttl_seconds=1800, max_entries=100, clock=clock)
        for i in range(100):
            cache.put(f"https://site{i}.com", i)
            clock.advance(1)

        cache.put("https://site100.com", 100)

        assert len(cache) == 100
        assert cache.get("https://site0.com") is None
        assert cache.get("https://site1.com") == 1
        assert cache.get("https://site100.com") == 100

    def test_reads_do_not_refresh_order(self, clock):
        cache = ResultCache(ttl_seconds=1800, max_entries=2, clock=clock)
        cache.put("https://a.com", "A")
        cache.put("https://b.com", "B")
        cache.get("https://a.com")
        cache.put("https://c.com", "C")
        assert cache.get("https://a.com") is None
        assert cache.get("https://b.com") == "B"

    def test_replacing_existing_key_does_not_evict(self, clock):
        cache = ResultCache(ttl_seconds=1800, max_entries=2, clock=clock)
        cache.put("https://a.com", "A")
        cache.put("https://b.com", "B")
        cache.put("https://a.com", "A2")
        assert len(cache) == 2
        assert cache.get("https://b.com") == "B"
        assert cache.get("https://a.com") == "A2"

    def test_clear(self, clock):
        cache = ResultCache(ttl_seconds=60, max_entries=5, clock=clock)
        cache.put("https://a.com", "A")
        cache.clear()
        assert len(cache) == 0


class TestSnapshots:

    def test_mutating_a_read_does_not_change_the_entry(self, clock, sales_markdown):
        scored = QualityScorer().score(extract_with_heuristics(RawPage(markdown=sales_markdown)))
        cache = ResultCache(ttl_seconds=60, max_entries=5, clock=clock)
        cache.put("https://a.com", scored)

        cache.get("https://a.com").data.headlines.append("Injected headline")

        assert cache.get("https://a.com").data.headlines == scored.data.headlines
        assert "Injected headline" not in cache.get("https://a.com").data.headlines

    def test_mutating_the_stored_object_does_not_change_the_entry(self, clock, sales_markdown):
        scored = QualityScorer().score(extract_with_heuristics(RawPage(markdown=sales_markdown)))
        headlines = list(scored.data.headlines)
        cache = ResultCache(ttl_seconds=60, max_entries=5, clock=clock)
        cache.put("https://a.com", scored)

        scored.data.testimonials.clear()
        scored.data.headlines.append("Changed after put")

        cached = cache.get("https://a.com")
        assert cached.data.headlines == headlines
        assert cached.data.testimonials == ["This changed my life! - Jane"]
        assert cached == cache.get("https://a.com")
