"""Required-field checks.

Every "is this attribute set" rule has the same shape, so they are
generated from one table.  Shipping weight additionally validates its
"<number> <unit>" format.
"""

import re

from feedaudit.pipeline.schemas import ErrorResult, FeedItem
from feedaudit.pipeline.checkers.base import CheckFn, finding
from feedaudit.pipeline.text_normalizer import is_blank


def make_required_field_check(field_name: str, error_type: str, details: str) -> CheckFn:
    """Build a checker that flags ``field_name`` when absent or blank."""
    def _check(item: FeedItem) -> ErrorResult | None:
        value = getattr(item, field_name)
        if is_blank(value):
            return finding(item, error_type, details, field_name, value or "")
        return None

    _check.__name__ = f"check_{field_name}_is_set"
    return _check


# (checker name, field, error type, details)
REQUIRED_FIELDS: list[tuple[str, str, str, str]] = [
    ("check_product_type_is_set", "product_type", "Missing Product Type", "Product Type is not set"),
    ("check_image_link_is_set", "image_link", "Missing Image Link", "Image link is not set"),
    ("check_availability_is_set", "availability", "Missing Availability", "Availability is not set"),
    ("check_price_is_set", "price", "Missing Price", "Price is not set"),
    ("check_link_is_set", "link", "Link Not Set", "Link is blank or not set"),
    ("check_brand_is_set", "brand", "Missing Brand", "Brand is not set"),
    ("check_condition_is_set", "condition", "Missing Condition", "Condition is not set"),
    ("check_mpn_is_set", "mpn", "Missing MPN", "Manufacturer Part Number (MPN) is not set"),
]

REQUIRED_FIELD_CHECKS: dict[str, CheckFn] = {
    name: make_required_field_check(field_name, error_type, details)
    for name, field_name, error_type, details in REQUIRED_FIELDS
}


# ═══════════════════════════════════════════════════
# SHIPPING WEIGHT
# ═══════════════════════════════════════════════════

VALID_WEIGHT_UNITS = {
    "oz", "lb", "lbs", "g", "kg",
    "gram", "grams", "kilogram", "kilograms",
    "ounce", "ounces", "pound", "pounds",
}
_WEIGHT_RE = re.compile(r"^(\d+\.?\d*)\s*([a-zA-Z.]+)$")


def is_valid_weight(weight: str) -> bool:
    """Non-negative number followed by a known unit ("2.5 lbs", "1 kg", "0 oz.")."""
    match = _WEIGHT_RE.match(weight.strip())
    if not match:
        return False
    unit = match.group(2).lower().rstrip(".")
    return unit in VALID_WEIGHT_UNITS


def check_shipping_weight(item: FeedItem) -> ErrorResult | None:
    if is_blank(item.shipping_weight):
        return finding(
            item, "Missing Shipping Weight", "Shipping weight is not set",
            "shipping_weight", "",
        )
    if not is_valid_weight(item.shipping_weight):
        return finding(
            item, "Invalid Shipping Weight Format",
            'Shipping weight must be a non-negative number with a valid unit (e.g., "0 oz", "2.5 lbs", "1 kg")',
            "shipping_weight", item.shipping_weight,
        )
    return None
