"""Typed records shared by the checkers, the pipeline and the HTTP layer.

Everything that crosses a module boundary lives here:

  - ``FeedItem``        one catalog record, immutable once built
  - ``ErrorResult``     one finding produced by one checker invocation
  - ``AnalysisResult``  the aggregated report of a feed-quality pass
  - ``ProgressEvent``   transient status notification for the caller
  - ``SearchTerm`` / ``KeywordMetrics``  search-term pass artifacts

``to_dict()`` on each type emits the camelCase wire shape the front end
consumes over SSE and that ``run_checks.py --json`` prints.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from types import MappingProxyType
from typing import Any, Mapping

UNKNOWN_ID = "UNKNOWN"

PROGRESS_STATUSES = ("analyzing", "chunking", "chunk", "complete", "error")


class FeedAuditError(Exception):
    """Base class for faults raised by the engine itself (never for findings)."""


# ═══════════════════════════════════════════════════
# FEED RECORDS
# ═══════════════════════════════════════════════════

@dataclass(frozen=True)
class FeedItem:
    """One catalog entry with explicit members for every field a checker reads.

    Attributes the engine does not know about are kept in ``extra`` so that
    round-tripping a feed never loses data, but no checker looks at them.
    """
    id: str | None = None
    title: str | None = None
    description: str | None = None
    link: str | None = None
    image_link: str | None = None
    availability: str | None = None
    price: str | None = None
    brand: str | None = None
    gtin: str | None = None
    mpn: str | None = None
    condition: str | None = None
    google_product_category: str | None = None
    product_type: str | None = None
    color: str | None = None
    size: str | None = None
    material: str | None = None
    pattern: str | None = None
    gender: str | None = None
    age_group: str | None = None
    shipping_weight: str | None = None
    extra: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def known_fields(cls) -> tuple[str, ...]:
        return tuple(f.name for f in fields(cls) if f.name != "extra")

    @classmethod
    def from_mapping(cls, row: Mapping[str, Any]) -> "FeedItem":
        """Build an item from a parsed feed row; unrecognized keys go to ``extra``."""
        known = set(cls.known_fields())
        kwargs: dict[str, Any] = {}
        extra: dict[str, str] = {}
        for key, value in row.items():
            if key is None:
                continue
            if value is not None and not isinstance(value, str):
                value = str(value)
            if key in known:
                kwargs[key] = value
            else:
                extra[key] = value if value is not None else ""
        return cls(**kwargs, extra=MappingProxyType(extra))

    @property
    def report_id(self) -> str:
        """Identifier used in findings: the raw id, or UNKNOWN when blank."""
        if self.id is None or not self.id.strip():
            return UNKNOWN_ID
        return self.id

    def to_dict(self) -> dict:
        data = {name: getattr(self, name) for name in self.known_fields()}
        data = {k: v for k, v in data.items() if v is not None}
        data.update(self.extra)
        return data


# ═══════════════════════════════════════════════════
# FINDINGS & REPORT
# ═══════════════════════════════════════════════════

@dataclass(frozen=True)
class ErrorResult:
    """A single validation finding."""
    id: str                 # offending record id, or UNKNOWN
    error_type: str         # closed-vocabulary label, e.g. "Missing Price"
    details: str            # human-readable explanation
    affected_field: str     # attribute the checker inspected
    value: str              # raw or cleaned value that triggered the finding

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "errorType": self.error_type,
            "details": self.details,
            "affectedField": self.affected_field,
            "value": self.value,
        }


@dataclass
class AnalysisResult:
    """Aggregated outcome of a feed-quality pass.

    ``errors`` keeps record order, and within one record the checker
    registration order. ``error_counts`` is maintained alongside so that
    the two can never disagree.
    """
    total_products: int = 0
    expected_products: int = 0
    error_counts: dict[str, int] = field(default_factory=dict)
    errors: list[ErrorResult] = field(default_factory=list)
    truncated: bool = False

    def add(self, error: ErrorResult) -> None:
        self.errors.append(error)
        self.error_counts[error.error_type] = self.error_counts.get(error.error_type, 0) + 1

    def merge(self, other: "AnalysisResult") -> None:
        """Fold a chunk-local report into this one (single-writer only)."""
        for error in other.errors:
            self.add(error)
        self.total_products += other.total_products

    def to_dict(self) -> dict:
        return {
            "totalProducts": self.total_products,
            "expectedProducts": self.expected_products,
            "errorCounts": dict(self.error_counts),
            "errors": [e.to_dict() for e in self.errors],
            "truncated": self.truncated,
        }


# ═══════════════════════════════════════════════════
# PROGRESS
# ═══════════════════════════════════════════════════

_PROGRESS_WIRE_NAMES = {
    "chunk_index": "chunkIndex",
    "total_chunks": "totalChunks",
}


@dataclass(frozen=True)
class ProgressEvent:
    """Transient notification describing how far a pass has advanced."""
    status: str
    stage: str | None = None
    processed: int | None = None
    total: int | None = None
    chunk_index: int | None = None
    total_chunks: int | None = None
    chunk: list[dict] | None = None
    progress: int | None = None
    message: str | None = None
    result: dict | None = None

    def __post_init__(self):
        if self.status not in PROGRESS_STATUSES:
            raise ValueError(f"Unknown progress status: {self.status!r}")

    def to_dict(self) -> dict:
        out = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is not None:
                out[_PROGRESS_WIRE_NAMES.get(f.name, f.name)] = value
        return out


# ═══════════════════════════════════════════════════
# SEARCH TERMS
# ═══════════════════════════════════════════════════

@dataclass(frozen=True)
class KeywordMetrics:
    """Search-volume data supplied by the keyword-volume collaborator."""
    avg_monthly_searches: int
    competition: str            # HIGH | MEDIUM | LOW
    competition_index: int
    low_top_page_bid: float | None = None
    high_top_page_bid: float | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "KeywordMetrics":
        def _opt_float(key: str) -> float | None:
            value = data.get(key)
            return float(value) if value is not None else None

        return cls(
            avg_monthly_searches=int(data.get("avgMonthlySearches", 0) or 0),
            competition=str(data.get("competition", "LOW")).upper(),
            competition_index=int(data.get("competitionIndex", 0) or 0),
            low_top_page_bid=_opt_float("lowTopPageBid"),
            high_top_page_bid=_opt_float("highTopPageBid"),
        )

    def to_dict(self) -> dict:
        out = {
            "avgMonthlySearches": self.avg_monthly_searches,
            "competition": self.competition,
            "competitionIndex": self.competition_index,
        }
        if self.low_top_page_bid is not None:
            out["lowTopPageBid"] = self.low_top_page_bid
        if self.high_top_page_bid is not None:
            out["highTopPageBid"] = self.high_top_page_bid
        return out


@dataclass
class SearchTerm:
    """A candidate search query shared by enough catalog products."""
    id: str
    product_name: str
    search_term: str
    pattern: str
    estimated_volume: int = 1
    keyword_metrics: KeywordMetrics | None = None
    matching_products: list[dict] = field(default_factory=list)  # [{"id", "productName"}]

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "productName": self.product_name,
            "searchTerm": self.search_term,
            "pattern": self.pattern,
            "estimatedVolume": self.estimated_volume,
            "keywordMetrics": self.keyword_metrics.to_dict() if self.keyword_metrics else None,
            "matchingProducts": list(self.matching_products),
        }
