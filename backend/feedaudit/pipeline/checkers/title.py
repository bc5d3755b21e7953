"""Title checks: attribute coverage, formatting and markup.

Defect classes shared with the description (missing spaces, dashes,
special characters, abbreviations) live in ``text_quality``.
"""

import re

from feedaudit.pipeline.schemas import ErrorResult, FeedItem
from feedaudit.pipeline.checkers.base import finding
from feedaudit.pipeline.text_normalizer import (
    REPEATED_WHITESPACE_RE, REPEATED_COMMA_RE, HTML_TAG_RE, HTML_ENTITY_RE,
    EDGE_PUNCTUATION_START_RE, EDGE_PUNCTUATION_END_RE,
    find_all, promotional_matches, unique_in_order,
)

# Measurement tokens and connectors that legitimately repeat ("12 in x 12 in")
DUPLICATE_IGNORE_WORDS = {"x", "by", "in", "inch", "inches", "ft", "feet", "cm", "m", "mm"}
_MEASURE_TOKEN_RE = re.compile(r"^\d+('|ft|in|cm|m|mm)?$")

# Letter sizes and the spelled-out forms a title may use instead
SIZE_WORDS = {"xs", "s", "m", "l", "xl", "small", "medium", "large"}
SIZE_SYNONYMS = {
    "xs": ["xs", "extra small"],
    "s": ["s", "small"],
    "m": ["m", "medium"],
    "l": ["l", "large"],
    "xl": ["xl", "extra large"],
}
_SIZE_SPLIT_RE = re.compile(r"[\s()]+")
# Number plus unit: "12in", "10.5\"", "12in."
_SIZE_UNIT_RE = re.compile(r"""^([\d.]+(?:\+\d+(?:\.\d+)?)?)([a-z"'./]+)$""")


def _size_token_in_title(token: str, title: str) -> bool:
    escaped = re.escape(token)
    if re.search(rf"(?<!\S){escaped}(?!\S)", title):
        return True
    unit_match = _SIZE_UNIT_RE.match(token)
    if unit_match:
        number = re.escape(unit_match.group(1))
        unit = unit_match.group(2).removesuffix(".")
        if unit and re.search(rf"(?<!\S){number}\s?{re.escape(unit)}\.?(?!\S)", title):
            return True
    words = SIZE_SYNONYMS.get(token) or ([token] if token in SIZE_WORDS else [])
    return any(re.search(rf"\b{re.escape(w)}\b(?!-)", title) for w in words)


def check_title_size(item: FeedItem) -> ErrorResult | None:
    if not item.size or not item.title:
        return None
    size = item.size.strip().lower().removesuffix(".")
    tokens = [t for t in _SIZE_SPLIT_RE.split(size) if t]
    title = item.title.lower()
    if not tokens or any(_size_token_in_title(t, title) for t in tokens):
        return None
    return finding(
        item, "Title Doesn't Contain Size When Size Is Set",
        f"Title does not contain size ({item.size}) when size is set",
        "title", item.title,
    )


def check_title_color(item: FeedItem) -> ErrorResult | None:
    if not item.color:
        return None
    title = (item.title or "").lower()
    components = [c for c in re.split(r"[\s/]+", item.color.lower()) if c]
    if all(c in title for c in components):
        return None
    return finding(
        item, "Title Doesn't Contain Color When Color Is Set",
        f'Title does not contain color "{item.color}" when color is set',
        "title", item.title,
    )


def check_title_brand(item: FeedItem) -> ErrorResult | None:
    if not item.brand:
        return None
    title = (item.title or "").lower()
    tokens = [t for t in re.split(r"[\s\-]+", item.brand.lower()) if t]
    if any(t in title for t in tokens):
        return None
    return finding(item, "Title Doesn't Contain Brand", f"Missing brand: {item.brand}", "title", item.title)


def check_title_material(item: FeedItem) -> ErrorResult | None:
    if not item.material:
        return None
    if item.material.lower() in (item.title or "").lower():
        return None
    return finding(item, "Title Doesn't Contain Material", f"Missing material: {item.material}", "title", item.title)


def check_title_duplicate_words(item: FeedItem) -> ErrorResult | None:
    words = [
        w for w in (item.title or "").lower().split()
        if w not in DUPLICATE_IGNORE_WORDS and not _MEASURE_TOKEN_RE.match(w) and len(w) > 2
    ]
    seen = set()
    duplicates = []
    for w in words:
        if w in seen:
            duplicates.append(w)
        seen.add(w)
    if not duplicates:
        return None
    return finding(
        item, "Title Contains Duplicate Words",
        f"Title contains duplicate words: {', '.join(unique_in_order(duplicates))}",
        "title", item.title,
    )


def check_title_whitespace(item: FeedItem) -> ErrorResult | None:
    title = item.title
    if not title:
        return None
    leading = title[:1].isspace()
    trailing = title[-1:].isspace()
    if not (leading or trailing):
        return None
    where = " and ".join(w for w, hit in (("the beginning", leading), ("the end", trailing)) if hit)
    return finding(item, "Title Contains Whitespace At Start Or End", f"Found whitespace at {where}", "title", title)


def check_title_repeated_whitespace(item: FeedItem) -> ErrorResult | None:
    matches = find_all(REPEATED_WHITESPACE_RE, item.title)
    if not matches:
        return None
    return finding(
        item, "Title Contains Repeated Whitespace",
        f"Found {len(matches)} instance(s) of repeated whitespace in title",
        "title", item.title,
    )


def check_title_repeated_commas(item: FeedItem) -> ErrorResult | None:
    matches = find_all(REPEATED_COMMA_RE, item.title)
    if not matches:
        return None
    return finding(
        item, "Title Contains Repeated Commas",
        f"Found {len(matches)} instance(s) of repeated commas in title",
        "title", item.title,
    )


def check_title_punctuation(item: FeedItem) -> ErrorResult | None:
    title = item.title
    if not title:
        return None
    at_start = bool(EDGE_PUNCTUATION_START_RE.search(title))
    at_end = bool(EDGE_PUNCTUATION_END_RE.search(title))
    if not (at_start or at_end):
        return None
    where = " and ".join(w for w, hit in (("the beginning", at_start), ("the end", at_end)) if hit)
    return finding(item, "Title Contains Punctuation At Start Or End", f"Found punctuation at {where}", "title", title)


def check_title_html(item: FeedItem) -> ErrorResult | None:
    matches = find_all(HTML_TAG_RE, item.title)
    if not matches:
        return None
    tags = unique_in_order(m.group(0) for m in matches)
    return finding(
        item, "Title Contains HTML Tags",
        f"Found {len(matches)} HTML tag(s): {', '.join(tags)}",
        "title", item.title,
    )


def check_title_html_entities(item: FeedItem) -> ErrorResult | None:
    matches = find_all(HTML_ENTITY_RE, item.title)
    if not matches:
        return None
    entities = unique_in_order(m.group(0) for m in matches)
    return finding(
        item, "Title Contains HTML Entities",
        f"Found {len(matches)} HTML entity(ies): {', '.join(entities)}",
        "title", item.title,
    )


def check_title_promotional_words(item: FeedItem) -> ErrorResult | None:
    hits = promotional_matches(item.title)
    if not hits:
        return None
    words = unique_in_order(word for word, _ in hits)
    return finding(
        item, "Title Contains Promotional Words",
        f"Found {len(hits)} promotional word(s): {', '.join(words)}",
        "title", item.title,
    )
