"""Stateless text canonicalization shared by the feed checkers.

Consolidates the pattern logic the checker families lean on:
  - Identifier cleaning (scientific-notation repair for GTIN-like codes)
  - Text-defect detection (missing spaces, dashes, special chars, abbreviations)
  - Markup / whitespace / promotional-word patterns for title & description
  - Context snippets used in finding values
"""

import enum
import math
import re
import logging

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════
# 1. IDENTIFIER CLEANING
# ═══════════════════════════════════════════════════

# Spreadsheet exports turn 13-digit codes into "1.234567E12"
SCIENTIFIC_NOTATION_RE = re.compile(r"^-?\d*\.?\d+e[+-]?\d+$", re.IGNORECASE)
_NON_DIGIT_RE = re.compile(r"\D")


def clean_identifier(raw: str | None) -> str:
    """Canonicalize a numeric identifier to a plain digit string.

    Scientific notation is parsed as a float, rounded to the nearest
    integer and rendered in full; anything else just loses its non-digit
    characters.  Very large exponents go through a float round-trip, so
    digits beyond double precision are not recoverable.

    Examples:
      "1.234567E12"      → "1234567000000"
      "0-12345-67890-5"  → "012345678905"
      "N/A"              → ""
    """
    if not raw:
        return ""
    text = raw.strip()
    if SCIENTIFIC_NOTATION_RE.match(text):
        try:
            value = float(text)
        except ValueError:
            value = math.nan
        if math.isfinite(value):
            return _NON_DIGIT_RE.sub("", str(round(value)))
        logger.debug(f"Identifier {raw!r} overflows a float; falling back to digit strip")
    return _NON_DIGIT_RE.sub("", text)


# ═══════════════════════════════════════════════════
# 2. TEXT DEFECTS
# ═══════════════════════════════════════════════════

class DefectKind(str, enum.Enum):
    MISSING_SPACE = "missing_space"
    REPEATED_DASHES = "repeated_dashes"
    SPECIAL_CHARACTER = "special_character"
    BAD_ABBREVIATION = "bad_abbreviation"


MISSING_SPACE_RE = re.compile(r"\b\w+,(?=[a-zA-Z])")
REPEATED_DASHES_RE = re.compile(r"--|- -")
SPECIAL_CHARS_RE = re.compile(r"[^a-zA-Z0-9\s.,;:()\-]")
# "pc" only in lowercase ("PC" is a product word); "in." only as a standalone unit
BAD_ABBREVIATIONS_RE = re.compile(
    r"\b(?:pck|pkg|qty|qt|(?-i:pc)|pcs|ea|ft)\b|(?:(?<=\s)|^)in\.(?=\s|$)",
    re.IGNORECASE,
)

ABBREVIATION_EXPANSIONS = {
    "pck": "pack",
    "pkg": "package",
    "qty": "quantity",
    "qt": "quart",
    "pc": "piece",
    "pcs": "pieces",
    "ea": "each",
    "in.": "inch",
    "ft": "feet",
}

_DEFECT_PATTERNS: dict[DefectKind, re.Pattern] = {
    DefectKind.MISSING_SPACE: MISSING_SPACE_RE,
    DefectKind.REPEATED_DASHES: REPEATED_DASHES_RE,
    DefectKind.SPECIAL_CHARACTER: SPECIAL_CHARS_RE,
    DefectKind.BAD_ABBREVIATION: BAD_ABBREVIATIONS_RE,
}


def find_defects(raw: str | None, kind: DefectKind) -> list[re.Match]:
    """Return every match of one defect class, in position order."""
    if not raw:
        return []
    return list(_DEFECT_PATTERNS[kind].finditer(raw))


def detect_text_defects(raw: str | None) -> set[DefectKind]:
    """Evaluate each defect class independently; a string may hit several."""
    if not raw:
        return set()
    return {kind for kind, pattern in _DEFECT_PATTERNS.items() if pattern.search(raw)}


# ═══════════════════════════════════════════════════
# 3. MARKUP, WHITESPACE & PROMOTIONAL PATTERNS
# ═══════════════════════════════════════════════════

REPEATED_WHITESPACE_RE = re.compile(r"\s{2,}")
REPEATED_COMMA_RE = re.compile(r",{2,}")
HTML_TAG_RE = re.compile(r"<[^>]*>")
HTML_ENTITY_RE = re.compile(r"&[a-z]+;", re.IGNORECASE)
NON_BREAKING_SPACE_RE = re.compile("\xa0")
EDGE_PUNCTUATION_START_RE = re.compile(r"^[.,!?;:\"'`]+")
EDGE_PUNCTUATION_END_RE = re.compile(r"[.,!?;:\"'`]+$")

PROMOTIONAL_WORDS = [
    "save", "free shipping", "best seller", "% off", "buy", "open box", "clearance",
]
_PROMOTIONAL_RES = [
    (word, re.compile(rf"\b{re.escape(word)}\b", re.IGNORECASE)) for word in PROMOTIONAL_WORDS
]


def find_all(pattern: re.Pattern, text: str | None) -> list[re.Match]:
    if not text:
        return []
    return list(pattern.finditer(text))


def promotional_matches(text: str | None) -> list[tuple[str, re.Match]]:
    """All promotional-word hits as (word, match), grouped by word list order."""
    if not text:
        return []
    hits = []
    for word, pattern in _PROMOTIONAL_RES:
        hits.extend((word, m) for m in pattern.finditer(text))
    return hits


def contains_any_word(words, text: str | None) -> bool:
    """Whole-word, case-insensitive membership test for a vocabulary list."""
    if not text:
        return False
    return any(re.search(rf"\b{re.escape(w)}\b", text, re.IGNORECASE) for w in words)


def is_blank(value: str | None) -> bool:
    return value is None or not value.strip()


def unique_in_order(items) -> list:
    seen = set()
    out = []
    for item in items:
        if item not in seen:
            seen.add(item)
            out.append(item)
    return out


# ═══════════════════════════════════════════════════
# 4. CONTEXT SNIPPETS
# ═══════════════════════════════════════════════════

CONTEXT_RADIUS = 15
CONTEXT_MAX_LENGTH = 40


def get_context(text: str, index: int, length: int) -> str:
    """Slice ``CONTEXT_RADIUS`` characters either side of a match."""
    start = max(0, index - CONTEXT_RADIUS)
    end = min(len(text), index + length + CONTEXT_RADIUS)
    return text[start:end]


def truncate_context(context: str, match: str) -> str:
    """Trim a context window to ``CONTEXT_MAX_LENGTH``, marking cut edges with '.'."""
    match_index = max(0, context.find(match))
    half = (CONTEXT_MAX_LENGTH - len(match)) // 2
    start = max(0, match_index - half)
    end = min(len(context), match_index + len(match) + half)
    snippet = context[start:end].strip()
    if start > 0:
        snippet = "." + snippet
    if end < len(context):
        snippet += "."
    return snippet


def format_cases(snippets: list[str], quote: str = '"') -> str:
    """Join example snippets, numbering them when there is more than one."""
    if len(snippets) == 1:
        return f"{quote}{snippets[0]}{quote}"
    return "; ".join(
        f"(case {i}) {quote}{s}{quote}" for i, s in enumerate(snippets, start=1)
    )
