"""Rule families evaluated against every feed record."""

from .base import Checker, CheckFn, finding
from .identity import check_id_is_set, check_id_length, find_duplicate_ids
from .attribute_mismatch import check_gender_mismatch, check_age_group_mismatch
from .category import check_google_product_category, check_apparel_attributes
from .required_fields import REQUIRED_FIELDS, REQUIRED_FIELD_CHECKS, check_shipping_weight
from .gtin import check_gtin
from .text_quality import TEXT_FIELDS, make_defect_check, make_spelling_check

__all__ = [
    "Checker",
    "CheckFn",
    "finding",
    "check_id_is_set",
    "check_id_length",
    "find_duplicate_ids",
    "check_gender_mismatch",
    "check_age_group_mismatch",
    "check_google_product_category",
    "check_apparel_attributes",
    "REQUIRED_FIELDS",
    "REQUIRED_FIELD_CHECKS",
    "check_shipping_weight",
    "check_gtin",
    "TEXT_FIELDS",
    "make_defect_check",
    "make_spelling_check",
]
