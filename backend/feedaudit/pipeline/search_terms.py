"""Search-term generation from catalog attributes.

For every product, the cleaned values of up to ten attributes (brand,
last product-type tier, last category tier, material, pattern, color,
size, gender, age group, condition) are combined 2-4 at a time.  A
combination becomes a candidate term when it passes the logical filters
below and at least ``SEARCH_TERM_MIN_MATCHES`` products share it.

Logical filters:
  - Never pair Color+Size, Condition+Color, Condition+Size, Product Type+Category
  - Three or more attributes need a high-value one (brand, product type, category)
  - Value score (high-value 3, material/pattern 2, other 1) must reach
    2 / 4 / 6 for combinations of 2 / 3 / 4 attributes

The pass reports progress with the same event contract as the feed
pass, then streams the finished terms in chunks tagged with
``chunk_index`` / ``total_chunks``.
"""

from __future__ import annotations

import asyncio
import logging
import math
import re
import threading
from itertools import combinations
from typing import AsyncGenerator, Callable, Iterable, Sequence

from feedaudit.config import SEARCH_TERM_MIN_MATCHES, SEARCH_TERMS_CHUNK_SIZE
from feedaudit.pipeline.schemas import FeedItem, ProgressEvent, SearchTerm
from feedaudit.pipeline.keyword_volume import KeywordVolumeProvider
from feedaudit.pipeline.orchestrator import RecordSource, obtain_records

logger = logging.getLogger(__name__)

# Lower priority value = earlier in the generated term
ATTRIBUTE_PRIORITY = {
    "Condition": 1,
    "Color": 2,
    "Size": 3,
    "Material": 4,
    "Pattern": 5,
    "Gender": 6,
    "Age Group": 7,
    "Brand": 8,
    "Product Type": 9,
    "Category": 10,
}

HIGH_VALUE_ATTRIBUTES = {"Brand", "Product Type", "Category"}
MID_VALUE_ATTRIBUTES = {"Material", "Pattern"}
INVALID_PAIRS = {
    frozenset({"Color", "Size"}),
    frozenset({"Condition", "Color"}),
    frozenset({"Condition", "Size"}),
    frozenset({"Product Type", "Category"}),
}
MIN_VALUE_SCORE = {2: 2, 3: 4, 4: 6}

_SLASH_RE = re.compile(r"[/\\]")
_SPACE_RE = re.compile(r"\s+")


def clean_value(value: str | None) -> str | None:
    if not value:
        return None
    cleaned = _SPACE_RE.sub(" ", _SLASH_RE.sub(" ", value.lower())).strip()
    return cleaned or None


def _last_tier(path: str | None) -> str | None:
    if not path:
        return None
    return path.split(">")[-1]


def item_attributes(item: FeedItem) -> list[tuple[str, str]]:
    """(type, cleaned value) pairs worth combining; single characters are dropped."""
    raw = [
        ("Brand", item.brand),
        ("Product Type", _last_tier(item.product_type)),
        ("Category", _last_tier(item.google_product_category)),
        ("Material", item.material),
        ("Pattern", item.pattern),
        ("Color", item.color),
        ("Size", item.size),
        ("Gender", item.gender),
        ("Age Group", item.age_group),
        ("Condition", item.condition),
    ]
    out = []
    for attr_type, value in raw:
        cleaned = clean_value(value)
        if cleaned and len(cleaned) > 1:
            out.append((attr_type, cleaned))
    return out


def _value_score(types: Sequence[str]) -> int:
    score = 0
    for t in types:
        if t in HIGH_VALUE_ATTRIBUTES:
            score += 3
        elif t in MID_VALUE_ATTRIBUTES:
            score += 2
        else:
            score += 1
    return score


def is_logical_combination(combo: Sequence[tuple[str, str]]) -> bool:
    types = [t for t, _ in combo]
    for a, b in combinations(types, 2):
        if frozenset({a, b}) in INVALID_PAIRS:
            return False
    if len(types) >= 3 and not HIGH_VALUE_ATTRIBUTES.intersection(types):
        return False
    return _value_score(types) >= MIN_VALUE_SCORE.get(len(types), 0)


def build_term(combo: Sequence[tuple[str, str]]) -> str:
    ordered = sorted(combo, key=lambda pair: ATTRIBUTE_PRIORITY.get(pair[0], 999))
    return " ".join(value for _, value in ordered)


class SearchTermsAnalyzer:
    """Derive attribute-combination search terms from a catalog.

    Args:
        min_matches: products that must share a term for it to be kept
        keyword_provider: optional volume lookup; failures leave metrics null
        cancel_event: set it (or call :meth:`cancel`) to stop between
            products and between result slices
    """

    def __init__(
        self,
        min_matches: int = SEARCH_TERM_MIN_MATCHES,
        keyword_provider: KeywordVolumeProvider | None = None,
        cancel_event: threading.Event | None = None,
    ):
        self.min_matches = min_matches
        self.keyword_provider = keyword_provider
        self.cancel_event = cancel_event or threading.Event()

    def cancel(self) -> None:
        self.cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def attribute_combinations(
        self,
        items: Iterable[FeedItem],
        on_item: Callable[[int], None] | None = None,
    ) -> dict[str, dict]:
        """Map term → {"pattern", "items"} for terms shared by enough products."""
        found: dict[str, dict] = {}
        for count, item in enumerate(items, start=1):
            if self.cancelled:
                break
            attrs = item_attributes(item)
            for size in range(2, 5):
                for combo in combinations(attrs, size):
                    if not is_logical_combination(combo):
                        continue
                    term = build_term(combo)
                    entry = found.setdefault(term, {
                        "pattern": " + ".join(t for t, _ in combo),
                        "items": [],
                    })
                    entry["items"].append(item)
            if on_item is not None:
                on_item(count)
        return {
            term: data for term, data in found.items()
            if len(data["items"]) >= self.min_matches
        }

    def _metrics_for(self, term: str):
        if self.keyword_provider is None:
            return None
        try:
            return self.keyword_provider.lookup(term)
        except Exception as e:
            logger.warning(f"Keyword volume provider failed for {term!r}: {e}")
            return None

    def analyze(
        self,
        items: Iterable[FeedItem],
        on_item: Callable[[int], None] | None = None,
    ) -> list[SearchTerm]:
        """Terms in discovery order, de-duplicated case-insensitively."""
        unique: dict[str, SearchTerm] = {}
        for term, data in self.attribute_combinations(items, on_item).items():
            matching = [
                {"id": item.id or "", "productName": item.title or ""}
                for item in data["items"]
            ]
            metrics = self._metrics_for(term)
            candidate = SearchTerm(
                id=matching[0]["id"],
                product_name=matching[0]["productName"],
                search_term=term,
                pattern=f"Attribute-based: {data['pattern']}",
                estimated_volume=metrics.avg_monthly_searches if metrics else 1,
                keyword_metrics=metrics,
                matching_products=matching,
            )
            key = term.lower()
            existing = unique.get(key)
            if existing is None or len(existing.matching_products) < len(matching):
                unique[key] = candidate
        logger.info(f"Search terms: {len(unique)} term(s) with ≥{self.min_matches} matching product(s)")
        return list(unique.values())

    def run(
        self,
        records: RecordSource | None,
        chunk_size: int = SEARCH_TERMS_CHUNK_SIZE,
        on_progress: Callable[[ProgressEvent], None] | None = None,
    ) -> list[SearchTerm]:
        """Full search-term pass with progress events.

        Emits ``analyzing`` (every 1000 products and at the end),
        ``chunking``, one ``chunk`` per result slice, then ``complete``.
        A cancelled pass skips the remaining slices and still ends with
        ``complete``.

        Raises:
            ValueError: ``chunk_size`` is not positive
            FeedReadError: no records could be obtained (before any event)
        """
        if chunk_size < 1:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        items = obtain_records(records)
        total = len(items)
        emit = on_progress or (lambda _e: None)
        analyzed = 0

        def _on_item(count: int):
            nonlocal analyzed
            analyzed = count
            if count % 1000 == 0 or count == total:
                emit(ProgressEvent(
                    status="analyzing",
                    stage="attribute",
                    processed=count,
                    total=total,
                    progress=round(count / total * 100) if total else 100,
                    message=f"Analyzing attributes: {count} of {total} products",
                ))

        terms = self.analyze(items, _on_item)

        total_chunks = math.ceil(len(terms) / chunk_size) if terms else 0
        emit(ProgressEvent(status="chunking", total_chunks=total_chunks, total=len(terms)))
        sent = 0
        for index in range(total_chunks):
            if self.cancelled:
                break
            chunk = terms[index * chunk_size:(index + 1) * chunk_size]
            sent += len(chunk)
            emit(ProgressEvent(
                status="chunk",
                chunk_index=index,
                total_chunks=total_chunks,
                processed=sent,
                total=len(terms),
                chunk=[t.to_dict() for t in chunk],
                progress=round((index + 1) / total_chunks * 100),
            ))

        if self.cancelled:
            message = (
                f"Search-term analysis cancelled: {analyzed} of {total} product(s) analyzed, "
                f"{sent} of {len(terms)} term(s) sent"
            )
            logger.info(message)
            emit(ProgressEvent(
                status="complete",
                processed=analyzed,
                total=total,
                total_chunks=total_chunks,
                message=message,
            ))
            return terms[:sent]

        emit(ProgressEvent(
            status="complete",
            processed=total,
            total=total,
            total_chunks=total_chunks,
            progress=100,
            message=f"Found {len(terms)} search term(s)",
        ))
        return terms

    async def stream(
        self,
        records: RecordSource | None,
        chunk_size: int = SEARCH_TERMS_CHUNK_SIZE,
    ) -> AsyncGenerator[ProgressEvent, None]:
        """Async view of :meth:`run`; see ``FeedQualityPipeline.stream``.

        Closing the generator early cancels the pass on its worker thread.
        """
        loop = asyncio.get_running_loop()
        queue: asyncio.Queue = asyncio.Queue()
        done = object()

        def _run():
            try:
                return self.run(
                    records, chunk_size,
                    lambda e: loop.call_soon_threadsafe(queue.put_nowait, e),
                )
            finally:
                loop.call_soon_threadsafe(queue.put_nowait, done)

        task = loop.run_in_executor(None, _run)
        try:
            while True:
                event = await queue.get()
                if event is done:
                    break
                yield event
            await task
        finally:
            if not task.done():
                self.cancel()


def stream_search_terms(
    records: RecordSource | None,
    chunk_size: int = SEARCH_TERMS_CHUNK_SIZE,
    analyzer: SearchTermsAnalyzer | None = None,
) -> AsyncGenerator[ProgressEvent, None]:
    """Stream a search-term pass with a default analyzer when none is given."""
    analyzer = analyzer or SearchTermsAnalyzer()
    return analyzer.stream(records, chunk_size)
