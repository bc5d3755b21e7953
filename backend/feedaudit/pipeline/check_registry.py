"""Check registry: the ordered set of feed-quality rules.

Each rule is a :class:`Checker` with:
  - name:   stable key used to enable/disable it (``enabled_checks``)
  - family: identity | attribute_mismatch | category | required_field |
            identifier_format | text_quality | title | description | product_type |
            prohibited_content
  - label:  human-readable name used in logs and the checks listing
  - fn:     ``(FeedItem) -> ErrorResult | None``

Registration order is a contract: for any record, findings appear in the
report in exactly the order their checkers are listed below.  Families are
registered in the order above; inside a family, in list order.

Spelling checkers close over the injected ``FuzzyMatcher`` and are only
registered when one is supplied.  Duplicate-id detection needs the whole
feed, so it is a *feed-level* check run once by the pipeline's aggregation
step rather than per record.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, Sequence

from feedaudit.pipeline.schemas import ErrorResult, FeedAuditError, FeedItem
from feedaudit.pipeline.fuzzy_matcher import FuzzyMatcher
from feedaudit.pipeline.text_normalizer import DefectKind
from feedaudit.pipeline.checkers import (
    Checker, REQUIRED_FIELDS, REQUIRED_FIELD_CHECKS, TEXT_FIELDS,
    check_id_is_set, check_id_length, find_duplicate_ids,
    check_gender_mismatch, check_age_group_mismatch,
    check_google_product_category, check_apparel_attributes,
    check_shipping_weight, check_gtin,
    make_defect_check, make_spelling_check,
)
from feedaudit.pipeline.checkers import title, description, product_type, prohibited_content


class UnknownCheckError(FeedAuditError):
    """An enabled-check name that is not registered."""

    def __init__(self, names: Iterable[str]):
        self.names = sorted(names)
        super().__init__(f"Unknown check(s): {', '.join(self.names)}")


@dataclass(frozen=True)
class FeedLevelCheck:
    """A rule that needs the whole record sequence (e.g. duplicate ids)."""
    name: str
    family: str
    label: str
    fn: Callable[[Sequence[FeedItem]], list[ErrorResult]]

    def describe(self) -> dict:
        return {"name": self.name, "family": self.family, "label": self.label, "scope": "feed"}


# ───────────────────────────────────────────────────────
# Check definitions: (name, label, fn), grouped by family
# ───────────────────────────────────────────────────────

IDENTITY_CHECKS = [
    ("check_id_is_set", "Identity: Id set", check_id_is_set),
    ("check_id_length", "Identity: Id length", check_id_length),
]

ATTRIBUTE_MISMATCH_CHECKS = [
    ("check_gender_mismatch", "Mismatch: Gender vs title", check_gender_mismatch),
    ("check_age_group_mismatch", "Mismatch: Age group vs title", check_age_group_mismatch),
]

CATEGORY_CHECKS = [
    ("check_google_product_category", "Category: Google product category", check_google_product_category),
    ("check_apparel_attributes", "Category: Apparel attributes", check_apparel_attributes),
]

REQUIRED_FIELD_DEFS = [
    (name, f"Required: {field_name}", REQUIRED_FIELD_CHECKS[name])
    for name, field_name, _, _ in REQUIRED_FIELDS
] + [
    ("check_shipping_weight", "Required: shipping_weight", check_shipping_weight),
]

IDENTIFIER_FORMAT_CHECKS = [
    ("check_gtin", "Identifier: GTIN length", check_gtin),
]

TEXT_DEFECT_CHECKS = [
    (f"check_{field_name}_{kind.value}", f"Text: {field_name} {kind.value.replace('_', ' ')}",
     make_defect_check(field_name, kind))
    for field_name in TEXT_FIELDS
    for kind in DefectKind
]

TITLE_CHECKS = [
    ("check_title_size", "Title: Size present", title.check_title_size),
    ("check_title_color", "Title: Color present", title.check_title_color),
    ("check_title_brand", "Title: Brand present", title.check_title_brand),
    ("check_title_material", "Title: Material present", title.check_title_material),
    ("check_title_duplicate_words", "Title: Duplicate words", title.check_title_duplicate_words),
    ("check_title_whitespace", "Title: Edge whitespace", title.check_title_whitespace),
    ("check_title_repeated_whitespace", "Title: Repeated whitespace", title.check_title_repeated_whitespace),
    ("check_title_repeated_commas", "Title: Repeated commas", title.check_title_repeated_commas),
    ("check_title_punctuation", "Title: Edge punctuation", title.check_title_punctuation),
    ("check_title_html", "Title: HTML tags", title.check_title_html),
    ("check_title_html_entities", "Title: HTML entities", title.check_title_html_entities),
    ("check_title_promotional_words", "Title: Promotional words", title.check_title_promotional_words),
]

DESCRIPTION_CHECKS = [
    ("check_description_whitespace", "Description: Edge whitespace", description.check_description_whitespace),
    ("check_description_repeated_whitespace", "Description: Repeated whitespace",
     description.check_description_repeated_whitespace),
    ("check_description_repeated_commas", "Description: Repeated commas",
     description.check_description_repeated_commas),
    ("check_description_html", "Description: HTML tags", description.check_description_html),
    ("check_description_html_entities", "Description: HTML entities", description.check_description_html_entities),
    ("check_description_length", "Description: Length", description.check_description_length),
    ("check_description_non_breaking_spaces", "Description: Non-breaking spaces",
     description.check_description_non_breaking_spaces),
    ("check_description_promotional_words", "Description: Promotional words",
     description.check_description_promotional_words),
]

PRODUCT_TYPE_CHECKS = [
    ("check_image_link_commas", "Product info: Image link commas", product_type.check_image_link_commas),
    ("check_product_type_promotional_words", "Product type: Promotional words",
     product_type.check_product_type_promotional_words),
    ("check_product_type_commas", "Product type: Commas", product_type.check_product_type_commas),
    ("check_product_type_repeated_tiers", "Product type: Repeated tiers", product_type.check_product_type_repeated_tiers),
    ("check_product_type_whitespace", "Product type: Edge whitespace", product_type.check_product_type_whitespace),
    ("check_product_type_repeated_whitespace", "Product type: Repeated whitespace",
     product_type.check_product_type_repeated_whitespace),
    ("check_product_type_angle_brackets", "Product type: Edge angle brackets",
     product_type.check_product_type_angle_brackets),
]

PROHIBITED_CONTENT_CHECKS = [
    ("check_monitored_pharmacy_words", "Prohibited: Monitored pharmacy words",
     prohibited_content.check_monitored_pharmacy_words),
]

FEED_LEVEL_CHECKS = [
    FeedLevelCheck("check_duplicate_id", "identity", "Identity: Duplicate ids", find_duplicate_ids),
]


def _spelling_defs(matcher: FuzzyMatcher) -> list[tuple[str, str, Callable]]:
    return [
        (f"check_{field_name}_spelling", f"Text: {field_name} spelling", make_spelling_check(field_name, matcher))
        for field_name in TEXT_FIELDS
    ]


# ───────────────────────────────────────────────────────
# Registry
# ───────────────────────────────────────────────────────

class CheckerRegistry:
    """Ordered, immutable collection of per-record and feed-level checks."""

    def __init__(self, checkers: Sequence[Checker], feed_checks: Sequence[FeedLevelCheck] = ()):
        names = [c.name for c in checkers] + [c.name for c in feed_checks]
        if len(names) != len(set(names)):
            raise ValueError("Duplicate checker names in registry")
        self._checkers = tuple(checkers)
        self._feed_checks = tuple(feed_checks)

    def __iter__(self):
        return iter(self._checkers)

    def __len__(self) -> int:
        return len(self._checkers)

    @property
    def checkers(self) -> tuple[Checker, ...]:
        return self._checkers

    @property
    def feed_checks(self) -> tuple[FeedLevelCheck, ...]:
        return self._feed_checks

    def names(self) -> list[str]:
        return [c.name for c in self._checkers] + [c.name for c in self._feed_checks]

    def describe(self) -> list[dict]:
        return [c.describe() for c in self._checkers] + [c.describe() for c in self._feed_checks]

    def select(self, enabled: Iterable[str] | None) -> "CheckerRegistry":
        """Subset keeping registration order; ``None`` or empty keeps everything."""
        if not enabled:
            return self
        wanted = set(enabled)
        unknown = wanted - set(self.names())
        if unknown:
            raise UnknownCheckError(unknown)
        return CheckerRegistry(
            [c for c in self._checkers if c.name in wanted],
            [c for c in self._feed_checks if c.name in wanted],
        )


def build_registry(matcher: FuzzyMatcher | None = None) -> CheckerRegistry:
    """Assemble every rule in the documented order.

    Spelling checkers are included only when a matcher is supplied.
    """
    families: list[tuple[str, list]] = [
        ("identity", IDENTITY_CHECKS),
        ("attribute_mismatch", ATTRIBUTE_MISMATCH_CHECKS),
        ("category", CATEGORY_CHECKS),
        ("required_field", REQUIRED_FIELD_DEFS),
        ("identifier_format", IDENTIFIER_FORMAT_CHECKS),
        ("text_quality", TEXT_DEFECT_CHECKS + (_spelling_defs(matcher) if matcher is not None else [])),
        ("title", TITLE_CHECKS),
        ("description", DESCRIPTION_CHECKS),
        ("product_type", PRODUCT_TYPE_CHECKS),
        ("prohibited_content", PROHIBITED_CONTENT_CHECKS),
    ]
    checkers = [
        Checker(name=name, family=family, label=label, fn=fn)
        for family, defs in families
        for name, label, fn in defs
    ]
    return CheckerRegistry(checkers, FEED_LEVEL_CHECKS)
