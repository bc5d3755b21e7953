"""Product type formatting checks, plus the image-link comma rule."""

from feedaudit.pipeline.schemas import ErrorResult, FeedItem
from feedaudit.pipeline.checkers.base import finding
from feedaudit.pipeline.text_normalizer import REPEATED_WHITESPACE_RE, promotional_matches, unique_in_order


def check_image_link_commas(item: FeedItem) -> ErrorResult | None:
    if item.image_link and "," in item.image_link:
        return finding(item, "Commas in Image Link", "Image link contains commas", "image_link", item.image_link)
    return None


def check_product_type_promotional_words(item: FeedItem) -> ErrorResult | None:
    hits = promotional_matches(item.product_type)
    if not hits:
        return None
    words = unique_in_order(word for word, _ in hits)
    return finding(
        item, "Promotional Words in Product Type",
        f"Found promotional word(s): {', '.join(words)}",
        "product_type", item.product_type,
    )


def check_product_type_commas(item: FeedItem) -> ErrorResult | None:
    if item.product_type and "," in item.product_type:
        return finding(item, "Commas in Product Type", "Product type contains commas", "product_type", item.product_type)
    return None


def check_product_type_repeated_tiers(item: FeedItem) -> ErrorResult | None:
    if not item.product_type:
        return None
    tiers = [t.strip() for t in item.product_type.split(">")]
    if len(tiers) == len(set(tiers)):
        return None
    return finding(
        item, "Repeated Tiers in Product Type", "Product type contains repeated tiers",
        "product_type", item.product_type,
    )


def check_product_type_whitespace(item: FeedItem) -> ErrorResult | None:
    value = item.product_type
    if value and (value[:1].isspace() or value[-1:].isspace()):
        return finding(
            item, "Whitespace at Product Type Start/End",
            "Product type contains whitespace at start or end",
            "product_type", value,
        )
    return None


def check_product_type_repeated_whitespace(item: FeedItem) -> ErrorResult | None:
    if item.product_type and REPEATED_WHITESPACE_RE.search(item.product_type):
        return finding(
            item, "Repeated Whitespace in Product Type",
            "Product type contains repeated whitespace",
            "product_type", item.product_type,
        )
    return None


def check_product_type_angle_brackets(item: FeedItem) -> ErrorResult | None:
    # Google expects "A > B > C"; flag leading/trailing separators only
    value = item.product_type
    if not value:
        return None
    stripped = value.strip()
    if stripped.startswith(">") or stripped.endswith(">"):
        return finding(
            item, "Angle Brackets at Product Type Start/End",
            "Product type contains angle brackets at start or end",
            "product_type", value,
        )
    return None
