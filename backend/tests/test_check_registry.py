"""Tests for feedaudit/pipeline/check_registry.py: ordered rule registration.

Covers:
  - build_registry(): family order, spelling checkers only with a matcher
  - select(): subset keeps registration order, unknown names rejected
  - describe(): listing shape, feed-level scope marker
"""

import pytest

from feedaudit.pipeline.checkers import Checker
from feedaudit.pipeline.check_registry import (
    CheckerRegistry,
    FEED_LEVEL_CHECKS,
    UnknownCheckError,
    build_registry,
)

FAMILY_ORDER = [
    "identity",
    "attribute_mismatch",
    "category",
    "required_field",
    "identifier_format",
    "text_quality",
    "title",
    "description",
    "product_type",
    "prohibited_content",
]


# ═══════════════════════════════════════════════════
# 1. Registration order
# ═══════════════════════════════════════════════════

class TestBuildRegistry:

    def test_families_in_documented_order(self):
        registry = build_registry()
        seen = []
        for checker in registry:
            if checker.family not in seen:
                seen.append(checker.family)
        assert seen == FAMILY_ORDER

    def test_families_are_contiguous(self):
        families = [c.family for c in build_registry()]
        for family in FAMILY_ORDER:
            first = families.index(family)
            last = len(families) - 1 - families[::-1].index(family)
            assert set(families[first:last + 1]) == {family}

    def test_no_spelling_without_matcher(self):
        names = build_registry().names()
        assert "check_title_spelling" not in names
        assert "check_description_spelling" not in names

    def test_spelling_with_matcher(self, matcher):
        names = build_registry(matcher).names()
        assert names.index("check_title_spelling") > names.index("check_title_bad_abbreviation")
        assert names.index("check_description_spelling") < names.index("check_title_color")

    def test_names_unique(self, matcher):
        names = build_registry(matcher).names()
        assert len(names) == len(set(names))

    def test_feed_level_checks_listed_last(self):
        registry = build_registry()
        assert registry.names()[-1] == "check_duplicate_id"
        assert registry.feed_checks == tuple(FEED_LEVEL_CHECKS)

    def test_first_checkers(self):
        assert build_registry().names()[:3] == [
            "check_id_is_set", "check_id_length", "check_gender_mismatch",
        ]

    def test_title_size_and_prohibited_content_registered(self):
        names = build_registry().names()
        assert names.index("check_title_size") < names.index("check_title_color")
        assert names[-2:] == ["check_monitored_pharmacy_words", "check_duplicate_id"]

    def test_duplicate_names_rejected(self):
        fn = lambda item: None
        with pytest.raises(ValueError):
            CheckerRegistry([Checker("a", "x", "A", fn), Checker("a", "x", "A", fn)])


# ═══════════════════════════════════════════════════
# 2. Selection
# ═══════════════════════════════════════════════════

class TestSelect:

    def test_none_keeps_everything(self):
        registry = build_registry()
        assert registry.select(None) is registry
        assert registry.select([]) is registry

    def test_subset_keeps_registration_order(self):
        registry = build_registry()
        selected = registry.select(["check_gtin", "check_id_is_set", "check_price_is_set"])
        assert selected.names() == ["check_id_is_set", "check_price_is_set", "check_gtin"]
        assert selected.feed_checks == ()

    def test_select_feed_level_check(self):
        selected = build_registry().select(["check_duplicate_id"])
        assert len(selected) == 0
        assert [c.name for c in selected.feed_checks] == ["check_duplicate_id"]

    def test_unknown_names_rejected(self):
        with pytest.raises(UnknownCheckError) as exc:
            build_registry().select(["check_gtin", "check_nope", "check_also_nope"])
        assert exc.value.names == ["check_also_nope", "check_nope"]

    def test_spelling_unknown_without_matcher(self):
        with pytest.raises(UnknownCheckError):
            build_registry().select(["check_title_spelling"])


# ═══════════════════════════════════════════════════
# 3. Listing
# ═══════════════════════════════════════════════════

class TestDescribe:

    def test_describe_shape(self):
        listing = build_registry().describe()
        assert listing[0] == {"name": "check_id_is_set", "family": "identity", "label": "Identity: Id set"}
        assert listing[-1]["scope"] == "feed"

    def test_describe_matches_names(self, matcher):
        registry = build_registry(matcher)
        assert [c["name"] for c in registry.describe()] == registry.names()
