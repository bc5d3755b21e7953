"""Google product category checks."""

from feedaudit.pipeline.schemas import ErrorResult, FeedItem
from feedaudit.pipeline.checkers.base import finding
from feedaudit.pipeline.text_normalizer import is_blank

MIN_CATEGORY_LEVELS = 3
APPAREL_ATTRIBUTES = ("color", "size", "gender", "age_group")


def category_levels(category: str | None) -> list[str]:
    """Non-blank, trimmed ``>``-separated segments of a category path."""
    if not category:
        return []
    return [level.strip() for level in category.split(">") if level.strip()]


def check_google_product_category(item: FeedItem) -> ErrorResult | None:
    """Missing, numeric-only, or too shallow: one outcome per item at most."""
    category = (item.google_product_category or "").strip()
    if not category:
        return finding(
            item, "Google Product Category is not set",
            "Google Product Category is not set",
            "google_product_category", "",
        )
    if category.isdigit():
        return finding(
            item, "Invalid Google Product Category",
            "Google Product Category is invalid (numbered category is not allowed)",
            "google_product_category", item.google_product_category,
        )
    if len(category_levels(category)) < MIN_CATEGORY_LEVELS:
        return finding(
            item, "Google Product Category is Incomplete",
            f"Google Product Category is incomplete (less than {MIN_CATEGORY_LEVELS} levels)",
            "google_product_category", item.google_product_category,
        )
    return None


def check_apparel_attributes(item: FeedItem) -> ErrorResult | None:
    category = item.google_product_category or ""
    if "apparel" not in category.lower():
        return None
    missing = [name for name in APPAREL_ATTRIBUTES if is_blank(getattr(item, name))]
    if not missing:
        return None
    return finding(
        item, "Missing Apparel Attributes",
        f"Apparel item is missing: {', '.join(missing)}",
        ", ".join(missing),
        f"Missing required fields for Google Product Category: {category}",
    )
