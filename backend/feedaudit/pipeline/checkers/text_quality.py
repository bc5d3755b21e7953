"""Text-quality checks over descriptive fields (title, description).

Two kinds of rule live here:

  - Defect rules: one checker per (field, DefectKind) so every defect class
    carries its own error type and explanation.
  - Spelling rules: one checker per field, built around the injected
    ``FuzzyMatcher``.  A single finding lists every confidently misspelled
    word of that field, in position order, with up to three suggestions.

Spelling deliberately skips tokens that are usually *not* prose: short
words, codes and abbreviations, numbers, fractions, measurements, brand
words, and anything that looks like a proper noun.
"""

import re
import logging

from feedaudit.config import SPELLING_MAX_SUGGESTIONS, TRACE_ENABLED
from feedaudit.pipeline.schemas import ErrorResult, FeedItem
from feedaudit.pipeline.checkers.base import CheckFn, finding
from feedaudit.pipeline.fuzzy_matcher import FuzzyMatcher
from feedaudit.pipeline.text_normalizer import (
    DefectKind, find_defects, get_context, truncate_context, format_cases, unique_in_order,
)

logger = logging.getLogger(__name__)

TEXT_FIELDS = ("title", "description")

DEFECT_LABELS = {
    DefectKind.MISSING_SPACE: "Missing Spaces After Commas",
    DefectKind.REPEATED_DASHES: "Repeated Dashes",
    DefectKind.SPECIAL_CHARACTER: "Special Characters",
    DefectKind.BAD_ABBREVIATION: "Bad Abbreviations",
}


def _trace(msg: str):
    if TRACE_ENABLED:
        logger.debug(f"[TRACE] {msg}")


# ═══════════════════════════════════════════════════
# 1. DEFECT CHECKERS
# ═══════════════════════════════════════════════════

def _defect_details(kind: DefectKind, matches: list[re.Match]) -> str:
    n = len(matches)
    if kind is DefectKind.SPECIAL_CHARACTER:
        found = unique_in_order(m.group(0) for m in matches)
        return f"Found {n} instance(s) of special characters: {', '.join(found)}"
    if kind is DefectKind.BAD_ABBREVIATION:
        found = unique_in_order(m.group(0).lower() for m in matches)
        return f"Found {n} instance(s) of bad abbreviations: {', '.join(found)}"
    return f"Found {n} instance(s) of {DEFECT_LABELS[kind].lower()}"


def make_defect_check(field_name: str, kind: DefectKind) -> CheckFn:
    """Checker for one defect class in one text field."""
    error_type = f"{field_name.capitalize()} Contains {DEFECT_LABELS[kind]}"

    def _check(item: FeedItem) -> ErrorResult | None:
        text = getattr(item, field_name)
        matches = find_defects(text, kind)
        if not matches:
            return None
        if field_name == "title":
            value = text
        else:
            value = format_cases([
                truncate_context(get_context(text, m.start(), len(m.group(0))), m.group(0))
                for m in matches
            ])
        return finding(item, error_type, _defect_details(kind, matches), field_name, value)

    _check.__name__ = f"check_{field_name}_{kind.value}"
    return _check


# ═══════════════════════════════════════════════════
# 2. SPELLING
# ═══════════════════════════════════════════════════

IGNORE_WORDS = {
    "no", "no.", "vs", "vs.", "etc", "etc.",
    "qty", "ref", "upc", "sku", "isbn", "eol", "msrp",
    "usb", "hdmi", "lcd", "led", "ac", "dc", "3d", "4k",
    "uk", "us", "eu", "ce", "ul", "iso", "din", "en", "pc",
}

_NUMBER_RE = re.compile(r"""^(\d+\.?\d*|\d{4}|\d+["']?[DWHLdwhl]?)(%)?$""")
_PROPER_NOUN_RE = re.compile(r"^[A-Z][a-z]+$")
_SPECIAL_CHAR_RE = re.compile(r"['’\-™®©]")
_FRACTION_RE = re.compile(r"^\d+/\d+$")
_MEASUREMENT_RE = re.compile(r"^\d+([/\-]?\d*)?(cm|mm|m|in|ft|oz|lb|kg|g|ml|l)$", re.IGNORECASE)
_EDGE_NON_WORD_RE = re.compile(r"^\W+|\W+$")


def is_likely_proper_noun(word: str) -> bool:
    if _PROPER_NOUN_RE.match(word):
        return True
    return all(
        _PROPER_NOUN_RE.match(part) or part.upper() == part
        for part in re.split(r"[\s-]", word)
    )


def _is_brand_word(word: str, brand: str | None) -> bool:
    if not brand:
        return False
    lowered = word.lower()
    brand_lower = brand.lower()
    return lowered in brand_lower or lowered in brand_lower.split()


def should_check_word(word: str, brand: str | None = None) -> bool:
    """Filter tokens that are not worth a dictionary lookup."""
    word = word.strip()
    if len(word) <= 2:
        return False
    if word.lower() in IGNORE_WORDS:
        return False
    if _FRACTION_RE.match(word) or _MEASUREMENT_RE.match(word) or _NUMBER_RE.match(word):
        return False
    if _is_brand_word(word, brand):
        return False
    if _SPECIAL_CHAR_RE.search(word):
        return False
    return True


def find_misspellings(text: str, matcher: FuzzyMatcher, brand: str | None = None) -> list[dict]:
    """Misspelled words of ``text`` in position order, with context and suggestions."""
    found = []
    position = 0
    for token in text.split():
        index = text.find(token, position)
        position = index + len(token)
        word = _EDGE_NON_WORD_RE.sub("", token)
        if not should_check_word(word, brand) or is_likely_proper_noun(word):
            continue
        if not matcher.is_likely_misspelled(word):
            continue
        suggestions = matcher.suggestions(word, limit=SPELLING_MAX_SUGGESTIONS)
        if not suggestions or suggestions[0].lower() == word.lower():
            continue
        _trace(f"spelling: {word!r} → {suggestions}")
        found.append({
            "word": word,
            "context": get_context(text, index, len(token)),
            "suggestions": suggestions,
            "position": index,
        })
    return found


def make_spelling_check(field_name: str, matcher: FuzzyMatcher) -> CheckFn:
    """Checker reporting misspelled words in ``field_name`` via ``matcher``."""
    error_type = f"Spelling Mistake in {field_name.capitalize()}"

    def _check(item: FeedItem) -> ErrorResult | None:
        text = getattr(item, field_name)
        if not text:
            return None
        misspelled = find_misspellings(text, matcher, item.brand)
        if not misspelled:
            return None
        cases = []
        for entry in misspelled:
            snippet = truncate_context(entry["context"], entry["word"])
            highlighted = "{" + entry["word"] + "}"
            snippet = re.sub(rf"\b{re.escape(entry['word'])}\b", lambda _m: highlighted, snippet, count=1)
            cases.append(f'"{snippet}" (Suggestions: {", ".join(entry["suggestions"])})')
        if len(cases) > 1:
            value = "; ".join(f"(case {i}) {c}" for i, c in enumerate(cases, start=1))
        else:
            value = cases[0]
        words = ", ".join(e["word"] for e in misspelled)
        return finding(
            item, error_type,
            f"Found {len(misspelled)} instance(s) of misspelled words in {field_name} ({words})",
            field_name, value,
        )

    _check.__name__ = f"check_{field_name}_spelling"
    return _check
