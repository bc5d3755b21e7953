"""Shared fixtures for the feed audit test suite."""

import pytest

from feedaudit.pipeline.schemas import FeedItem
from feedaudit.pipeline.fuzzy_matcher import FuzzyMatcher


# ═══════════════════════════════════════════════════
# Feed records
# ═══════════════════════════════════════════════════

# A record every registered checker accepts
CLEAN_RECORD = {
    "id": "SKU-1",
    "title": "Acme Blue Cotton Shirt Medium",
    "description": "A soft shirt made from cotton.",
    "link": "https://example.com/p/1",
    "image_link": "https://example.com/i/1.jpg",
    "availability": "in stock",
    "price": "19.99 USD",
    "brand": "Acme",
    "gtin": "012345678905",
    "mpn": "AC-1",
    "condition": "new",
    "google_product_category": "Apparel & Accessories > Clothing > Shirts & Tops",
    "product_type": "Clothing > Shirts",
    "color": "Blue",
    "size": "M",
    "material": "Cotton",
    "gender": "male",
    "age_group": "adult",
    "shipping_weight": "1 lb",
}


@pytest.fixture
def make_item():
    """Factory: a clean record with the given fields overridden."""
    def _make(**overrides) -> FeedItem:
        row = dict(CLEAN_RECORD)
        row.update(overrides)
        return FeedItem(**row)
    return _make


@pytest.fixture
def clean_item(make_item):
    return make_item()


# ═══════════════════════════════════════════════════
# Spelling dictionary
# ═══════════════════════════════════════════════════

DICTIONARY_WORDS = {
    "soft": 5000,
    "shirt": 4000,
    "made": 9000,
    "from": 20000,
    "cotton": 3000,
    "comfortable": 2500,
    "fabric": 2000,
    "quality": 6000,
    "blue": 4500,
    "with": 30000,
    "pocket": 1500,
}


@pytest.fixture
def dictionary_file(tmp_path):
    """Small "term count" frequency list in the format symspellpy reads."""
    path = tmp_path / "frequency.txt"
    path.write_text(
        "\n".join(f"{word} {count}" for word, count in DICTIONARY_WORDS.items()) + "\n",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def matcher(dictionary_file):
    m = FuzzyMatcher(dictionary_file)
    assert m.load()
    return m


@pytest.fixture
def degraded_matcher(tmp_path):
    m = FuzzyMatcher(tmp_path / "missing.txt")
    m.load()
    return m
