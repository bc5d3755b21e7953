"""Tests for feedaudit/pipeline/search_terms.py and keyword_volume.py.

Covers:
  - Attribute cleaning and the logical-combination filters
  - Term construction order and match thresholds
  - Keyword-volume enrichment, including a failing provider
  - Progress events of the search-term pass, cancellation
  - HTTP keyword client: parsing, failures, circuit breaker
"""

import asyncio
import threading

import httpx
import pytest

from feedaudit.pipeline import keyword_volume
from feedaudit.pipeline.schemas import KeywordMetrics
from feedaudit.pipeline.feed_reader import FeedReadError
from feedaudit.pipeline.keyword_volume import HttpKeywordVolumeClient
from feedaudit.pipeline.search_terms import (
    SearchTermsAnalyzer,
    build_term,
    clean_value,
    is_logical_combination,
    item_attributes,
    stream_search_terms,
)


class FakeProvider:
    def __init__(self, volumes):
        self.volumes = volumes
        self.calls = []

    def lookup(self, term):
        self.calls.append(term)
        volume = self.volumes.get(term)
        if volume is None:
            return None
        return KeywordMetrics(avg_monthly_searches=volume, competition="LOW", competition_index=12)


class BrokenProvider:
    def lookup(self, term):
        raise ConnectionError("keyword service down")


class BlockingProvider:
    """Holds every lookup until ``release`` is set."""

    def __init__(self):
        self.release = threading.Event()

    def lookup(self, term):
        self.release.wait(timeout=5)
        return None


class RecordingAnalyzer(SearchTermsAnalyzer):
    """Keeps the result of the last :meth:`run` and signals when it ends."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.finished = threading.Event()
        self.result = None

    def run(self, *args, **kwargs):
        try:
            self.result = super().run(*args, **kwargs)
            return self.result
        finally:
            self.finished.set()


@pytest.fixture
def catalog(make_item):
    """Five shirts sharing brand, color and product type; two odd ones out."""
    shirts = [make_item(id=f"SKU-{i}", title=f"Acme Shirt {i}", size=None, pattern=None) for i in range(5)]
    others = [
        make_item(id="SKU-90", brand="Globex", color="Red", size=None),
        make_item(id="SKU-91", brand="Initech", color="Green", size=None),
    ]
    return shirts + others


# ═══════════════════════════════════════════════════
# 1. Attribute handling
# ═══════════════════════════════════════════════════

class TestAttributes:

    def test_clean_value(self):
        assert clean_value("Navy/Blue \\ Stripe") == "navy blue stripe"
        assert clean_value("  ") is None
        assert clean_value(None) is None

    def test_item_attributes_use_last_tiers(self, make_item):
        attrs = dict(item_attributes(make_item(size=None)))
        assert attrs["Product Type"] == "shirts"
        assert attrs["Category"] == "shirts & tops"
        assert attrs["Brand"] == "acme"

    def test_single_character_values_dropped(self, make_item):
        attrs = dict(item_attributes(make_item(size="M")))
        assert "Size" not in attrs


class TestLogicalCombination:

    @pytest.mark.parametrize("types", [
        ("Color", "Size"),
        ("Condition", "Color"),
        ("Condition", "Size"),
        ("Product Type", "Category"),
    ])
    def test_invalid_pairs(self, types):
        assert is_logical_combination([(t, "x") for t in types]) is False

    def test_two_low_value_attributes_pass(self):
        assert is_logical_combination([("Color", "red"), ("Gender", "male")]) is True

    def test_three_need_high_value(self):
        assert is_logical_combination([("Color", "red"), ("Gender", "male"), ("Material", "silk")]) is False
        assert is_logical_combination([("Brand", "acme"), ("Color", "red"), ("Gender", "male")]) is True

    def test_four_attribute_score(self):
        combo = [("Brand", "acme"), ("Color", "red"), ("Gender", "male"), ("Age Group", "adult")]
        assert is_logical_combination(combo) is True

    def test_invalid_pair_inside_larger_combo(self):
        combo = [("Brand", "acme"), ("Color", "red"), ("Size", "xl")]
        assert is_logical_combination(combo) is False

    def test_term_follows_priority(self):
        assert build_term([("Brand", "acme"), ("Color", "blue"), ("Condition", "new")]) == "new blue acme"


# ═══════════════════════════════════════════════════
# 2. Analysis
# ═══════════════════════════════════════════════════

class TestAnalyze:

    def test_terms_need_min_matches(self, catalog):
        terms = SearchTermsAnalyzer(min_matches=5).analyze(catalog)
        by_text = {t.search_term: t for t in terms}
        assert "blue acme" in by_text
        assert "red globex" not in by_text
        assert all(len(t.matching_products) >= 5 for t in terms)

    def test_term_fields(self, catalog):
        terms = SearchTermsAnalyzer(min_matches=5).analyze(catalog)
        term = next(t for t in terms if t.search_term == "blue acme")
        assert term.pattern == "Attribute-based: Brand + Color"
        assert term.id == "SKU-0"
        assert term.product_name == "Acme Shirt 0"
        assert [p["id"] for p in term.matching_products] == [f"SKU-{i}" for i in range(5)]
        assert term.estimated_volume == 1
        assert term.keyword_metrics is None

    def test_shared_attributes_across_brands(self, catalog):
        terms = SearchTermsAnalyzer(min_matches=7).analyze(catalog)
        assert "cotton shirts" in {t.search_term for t in terms}

    def test_no_terms_below_threshold(self, catalog):
        assert SearchTermsAnalyzer(min_matches=50).analyze(catalog) == []

    def test_keyword_metrics_attached(self, catalog):
        provider = FakeProvider({"blue acme": 1200})
        terms = SearchTermsAnalyzer(min_matches=5, keyword_provider=provider).analyze(catalog)
        term = next(t for t in terms if t.search_term == "blue acme")
        assert term.estimated_volume == 1200
        assert term.to_dict()["keywordMetrics"]["competition"] == "LOW"
        assert "blue acme" in provider.calls

    def test_failing_provider_leaves_metrics_null(self, catalog):
        terms = SearchTermsAnalyzer(min_matches=5, keyword_provider=BrokenProvider()).analyze(catalog)
        assert terms
        assert all(t.keyword_metrics is None and t.estimated_volume == 1 for t in terms)


# ═══════════════════════════════════════════════════
# 3. Progress events
# ═══════════════════════════════════════════════════

class TestSearchTermPass:

    def test_event_sequence(self, catalog):
        events = []
        terms = SearchTermsAnalyzer(min_matches=5).run(catalog, 4, events.append)
        statuses = [e.status for e in events]
        assert statuses[0] == "analyzing"
        first_chunking = statuses.index("chunking")
        assert set(statuses[:first_chunking]) == {"analyzing"}
        expected_chunks = -(-len(terms) // 4)
        assert statuses[first_chunking + 1:] == ["chunk"] * expected_chunks + ["complete"]
        assert events[first_chunking].total_chunks == expected_chunks

    def test_chunks_cover_all_terms(self, catalog):
        events = []
        terms = SearchTermsAnalyzer(min_matches=5).run(catalog, 3, events.append)
        chunked = [d["searchTerm"] for e in events if e.status == "chunk" for d in e.chunk]
        assert chunked == [t.search_term for t in terms]
        assert [e.chunk_index for e in events if e.status == "chunk"] == list(range(len(events) - 3))

    def test_missing_records_fatal(self):
        events = []
        with pytest.raises(FeedReadError):
            SearchTermsAnalyzer().run(None, 10, events.append)
        assert events == []

    def test_chunk_events_carry_cumulative_count(self, catalog):
        events = []
        terms = SearchTermsAnalyzer(min_matches=5).run(catalog, 3, events.append)
        chunks = [e for e in events if e.status == "chunk"]
        expected = [min((i + 1) * 3, len(terms)) for i in range(len(chunks))]
        assert [e.processed for e in chunks] == expected
        assert all(e.total == len(terms) for e in chunks)

    def test_invalid_chunk_size_rejected_before_analysis(self, catalog):
        provider = FakeProvider({})
        events = []
        with pytest.raises(ValueError):
            SearchTermsAnalyzer(min_matches=5, keyword_provider=provider).run(catalog, 0, events.append)
        assert events == []
        assert provider.calls == []

    def test_cancel_before_start(self, catalog):
        analyzer = SearchTermsAnalyzer(min_matches=5)
        analyzer.cancel()
        events = []
        assert analyzer.run(catalog, 3, events.append) == []
        assert [e.status for e in events] == ["chunking", "complete"]
        assert "cancelled" in events[-1].message

    def test_cancel_mid_pass_stops_slices(self, catalog):
        all_terms = SearchTermsAnalyzer(min_matches=5).run(catalog, 1)
        assert len(all_terms) > 1

        analyzer = SearchTermsAnalyzer(min_matches=5)
        events = []

        def on_progress(event):
            events.append(event)
            if event.status == "chunk":
                analyzer.cancel()

        sent = analyzer.run(catalog, 1, on_progress)
        assert [t.search_term for t in sent] == [all_terms[0].search_term]
        assert [e.status for e in events].count("chunk") == 1
        assert events[-1].status == "complete"
        assert events[-1].progress is None

    @pytest.mark.asyncio
    async def test_stream(self, catalog):
        events = [e async for e in stream_search_terms(catalog, 1000, SearchTermsAnalyzer(min_matches=5))]
        assert events[-1].status == "complete"
        assert events[-1].message.startswith("Found")

    @pytest.mark.asyncio
    async def test_closing_stream_cancels_worker(self, catalog):
        provider = BlockingProvider()
        analyzer = RecordingAnalyzer(min_matches=5, keyword_provider=provider)
        events = analyzer.stream(catalog, 1)
        first = await events.__anext__()
        assert first.status == "analyzing"
        await events.aclose()
        assert analyzer.cancelled is True

        provider.release.set()
        assert await asyncio.to_thread(analyzer.finished.wait, 5)
        assert analyzer.result == []


# ═══════════════════════════════════════════════════
# 4. HTTP keyword-volume client
# ═══════════════════════════════════════════════════

class TestHttpKeywordVolumeClient:

    def _client(self, handler):
        return HttpKeywordVolumeClient("http://kw.test/", transport=httpx.MockTransport(handler))

    def test_lookup_parses_metrics(self):
        def handler(request):
            assert request.url.path == "/keywords"
            assert request.url.params["term"] == "blue acme"
            return httpx.Response(200, json={
                "avgMonthlySearches": 880, "competition": "medium",
                "competitionIndex": 41, "lowTopPageBid": 0.35,
            })

        metrics = self._client(handler).lookup("blue acme")
        assert metrics.avg_monthly_searches == 880
        assert metrics.competition == "MEDIUM"
        assert metrics.low_top_page_bid == 0.35
        assert metrics.high_top_page_bid is None

    def test_empty_body_means_no_data(self):
        assert self._client(lambda r: httpx.Response(200, json={})).lookup("x") is None

    def test_server_error_returns_none(self):
        assert self._client(lambda r: httpx.Response(503)).lookup("x") is None

    def test_circuit_opens_after_repeated_failures(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(500)

        client = self._client(handler)
        for _ in range(5):
            assert client.lookup("x") is None
        assert len(calls) == 3

    def test_default_provider_disabled_without_url(self, monkeypatch):
        monkeypatch.setattr(keyword_volume, "KEYWORD_VOLUME_URL", "")
        assert keyword_volume.default_provider() is None

    def test_default_provider_with_url(self, monkeypatch):
        monkeypatch.setattr(keyword_volume, "KEYWORD_VOLUME_URL", "http://kw.test")
        provider = keyword_volume.default_provider()
        assert isinstance(provider, HttpKeywordVolumeClient)
        provider.close()
