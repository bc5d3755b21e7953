"""Approximate word lookup used by the spelling checkers.

Wraps a SymSpell index (symmetric-delete lookup, max edit distance 2,
prefix length 7).  The prefix length buckets dictionary entries on their
first seven characters, so lookup cost stays flat as the dictionary grows.

One ``FuzzyMatcher`` is built at process start and handed to the checker
registry; nothing here is a module-level singleton.  The dictionary loads
lazily on first lookup, behind a lock, so concurrent chunk workers never
load it twice.  If the load fails the matcher is *degraded*: it logs once
and answers "not misspelled / no suggestions" for every word, which turns
the spelling checkers into no-ops instead of failing the pass.
"""

import logging
import threading
from importlib import resources
from pathlib import Path

from symspellpy import SymSpell, Verbosity

from feedaudit.config import (
    SPELLING_DICTIONARY_PATH, FUZZY_MAX_EDIT_DISTANCE, FUZZY_PREFIX_LENGTH,
)

logger = logging.getLogger(__name__)

BUNDLED_DICTIONARY = "frequency_dictionary_en_82_765.txt"


def default_dictionary_path() -> Path:
    """Configured dictionary, or the English frequency list shipped with symspellpy."""
    if SPELLING_DICTIONARY_PATH:
        return Path(SPELLING_DICTIONARY_PATH)
    return Path(str(resources.files("symspellpy") / BUNDLED_DICTIONARY))


class FuzzyMatcher:
    """Memoized SymSpell dictionary with thread-safe one-time loading."""

    def __init__(
        self,
        dictionary_path: str | Path | None = None,
        max_edit_distance: int = FUZZY_MAX_EDIT_DISTANCE,
        prefix_length: int = FUZZY_PREFIX_LENGTH,
    ):
        self.dictionary_path = Path(dictionary_path) if dictionary_path else None
        self.max_edit_distance = max_edit_distance
        self.prefix_length = prefix_length
        self._symspell: SymSpell | None = None
        self._loaded = False
        self._degraded = False
        self._load_lock = threading.Lock()

    # ── Loading ──

    def load(self) -> bool:
        """Load the dictionary if not already attempted. Returns readiness."""
        if self._loaded:
            return not self._degraded
        with self._load_lock:
            if self._loaded:
                return not self._degraded
            path = self.dictionary_path or default_dictionary_path()
            try:
                sym = SymSpell(
                    max_dictionary_edit_distance=self.max_edit_distance,
                    prefix_length=self.prefix_length,
                )
                if not sym.load_dictionary(str(path), term_index=0, count_index=1, encoding="utf-8"):
                    raise FileNotFoundError(f"dictionary not found: {path}")
                if not sym.words:
                    raise ValueError(f"dictionary is empty: {path}")
                self._symspell = sym
                logger.info(f"FuzzyMatcher: loaded {len(sym.words)} words from {path.name}")
            except Exception as e:
                self._degraded = True
                logger.warning(f"FuzzyMatcher: dictionary load failed, spelling checks disabled: {e}")
            self._loaded = True
        return not self._degraded

    @property
    def ready(self) -> bool:
        return self._loaded and not self._degraded

    @property
    def degraded(self) -> bool:
        return self._degraded

    # ── Lookup ──

    def is_known(self, word: str) -> bool:
        if not word or not self.load():
            return False
        return word.lower() in self._symspell.words

    def suggestions(self, word: str, limit: int | None = None) -> list[str]:
        """Dictionary terms within edit distance, closest first (ties by frequency)."""
        if not word or not self.load():
            return []
        hits = self._symspell.lookup(
            word.lower(), Verbosity.ALL,
            max_edit_distance=self.max_edit_distance,
        )
        terms = [h.term for h in hits]
        return terms[:limit] if limit is not None else terms

    def is_likely_misspelled(self, word: str) -> bool:
        """Unknown word that has at least one nearby dictionary term."""
        if not word or not self.load():
            return False
        lowered = word.lower()
        if lowered in self._symspell.words:
            return False
        close = self.suggestions(lowered, limit=1)
        return bool(close) and close[0] != lowered
