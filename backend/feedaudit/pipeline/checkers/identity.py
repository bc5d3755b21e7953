"""Identity checks: is the record id present and within length limits."""

from feedaudit.config import MAX_ID_LENGTH
from feedaudit.pipeline.schemas import ErrorResult, FeedItem, UNKNOWN_ID
from feedaudit.pipeline.checkers.base import finding
from feedaudit.pipeline.text_normalizer import is_blank


def check_id_is_set(item: FeedItem) -> ErrorResult | None:
    # Whitespace-only ids count as absent
    if is_blank(item.id):
        return finding(item, "Id Not Set", "Id is blank or not set", "id", "")
    return None


def check_id_length(item: FeedItem) -> ErrorResult | None:
    if item.id and len(item.id) > MAX_ID_LENGTH:
        return finding(
            item, "Id Too Long",
            f"Id exceeds {MAX_ID_LENGTH} characters",
            "id", item.id,
        )
    return None


def find_duplicate_ids(items) -> list[ErrorResult]:
    """Feed-level duplicate scan: one finding per id seen more than once.

    Runs over the whole input (not per record), so the pipeline calls it
    once at the aggregation point. Findings follow first-appearance order.
    """
    counts: dict[str, int] = {}
    for item in items:
        if is_blank(item.id):
            continue
        counts[item.id] = counts.get(item.id, 0) + 1
    return [
        ErrorResult(
            id=item_id if item_id else UNKNOWN_ID,
            error_type="Duplicate Id",
            details=f"This id appears {count} times in the feed",
            affected_field="id",
            value=item_id,
        )
        for item_id, count in counts.items()
        if count > 1
    ]
