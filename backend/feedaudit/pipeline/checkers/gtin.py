"""Identifier-format checks for GTIN codes."""

import re

from feedaudit.pipeline.schemas import ErrorResult, FeedItem
from feedaudit.pipeline.checkers.base import finding
from feedaudit.pipeline.text_normalizer import clean_identifier, is_blank

VALID_GTIN_LENGTHS = (8, 12, 13, 14)
# Digits, separators and scientific-notation syntax only
_GTIN_LIKE_RE = re.compile(r"^[\d\s.\-+eE]+$")


def check_gtin(item: FeedItem) -> ErrorResult | None:
    """Validate GTIN length after repairing scientific-notation exports.

    Blank codes are skipped, and so are values that are not GTIN-like at
    all ("N/A", "none", "ABC123").
    """
    if is_blank(item.gtin):
        return None
    if not _GTIN_LIKE_RE.match(item.gtin.strip()):
        return None
    cleaned = clean_identifier(item.gtin)
    if not cleaned.isdigit():
        return None
    if len(cleaned) not in VALID_GTIN_LENGTHS:
        return finding(
            item, "Incorrect GTIN Length",
            f"GTIN length is {len(cleaned)}, expected 8, 12, 13, or 14 digits",
            "gtin", cleaned,
        )
    return None
