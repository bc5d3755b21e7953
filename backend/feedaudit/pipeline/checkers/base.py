"""Checker interface shared by every rule family."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from feedaudit.pipeline.schemas import ErrorResult, FeedItem

CheckFn = Callable[[FeedItem], Optional[ErrorResult]]


@dataclass(frozen=True)
class Checker:
    """One data-quality rule.

    ``fn`` must be total over well-formed items and return at most one
    finding; a rule that can flag several distinct problems is split into
    narrower checkers instead.
    """
    name: str          # stable key used for enabling checks, e.g. "check_gtin"
    family: str        # identity | attribute_mismatch | category | ...
    label: str         # human-readable name for logs and the checks listing
    fn: CheckFn

    def __call__(self, item: FeedItem) -> ErrorResult | None:
        return self.fn(item)

    def describe(self) -> dict:
        return {"name": self.name, "family": self.family, "label": self.label}


def finding(item: FeedItem, error_type: str, details: str, affected_field: str, value: str | None) -> ErrorResult:
    """Build an ErrorResult for ``item`` with the UNKNOWN-id fallback applied."""
    return ErrorResult(
        id=item.report_id,
        error_type=error_type,
        details=details,
        affected_field=affected_field,
        value=value if value is not None else "",
    )
