"""Application configuration."""

import os
from pathlib import Path
from dotenv import load_dotenv

# Base paths
BASE_DIR = Path(__file__).resolve().parent.parent

# Load .env from backend root (before any os.getenv calls)
load_dotenv(BASE_DIR / ".env")


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    return int(raw) if raw else default


def _resolve_workers(raw: str) -> int:
    """Map MAX_WORKERS to a worker count; "auto" leaves one core for the server."""
    raw = (raw or "auto").strip().lower()
    if raw == "auto":
        return max(1, (os.cpu_count() or 2) - 1)
    return max(1, int(raw))


# Pipeline
CHUNK_SIZE = _int_env("CHUNK_SIZE", 1000)                       # Records per progress unit
MAX_WORKERS = _resolve_workers(os.getenv("MAX_WORKERS", "auto"))  # Parallel chunk evaluation

# Concurrency
MAX_CONCURRENT_ANALYSES = int(os.getenv("MAX_CONCURRENT_ANALYSES", "2"))  # Parallel passes served over HTTP

# Record limits
MAX_ID_LENGTH = 100
MAX_DESCRIPTION_LENGTH = 5000

# Spelling / fuzzy matching
# Leave SPELLING_DICTIONARY_PATH empty to use the frequency dictionary bundled with symspellpy
SPELLING_DICTIONARY_PATH = os.getenv("SPELLING_DICTIONARY_PATH", "")
FUZZY_MAX_EDIT_DISTANCE = 2
FUZZY_PREFIX_LENGTH = 7
SPELLING_MAX_SUGGESTIONS = 3

# Search terms
SEARCH_TERM_MIN_MATCHES = _int_env("SEARCH_TERM_MIN_MATCHES", 5)
SEARCH_TERMS_CHUNK_SIZE = _int_env("SEARCH_TERMS_CHUNK_SIZE", 10000)

# Keyword volume lookup (set KEYWORD_VOLUME_URL to enable; empty leaves metrics null)
KEYWORD_VOLUME_URL = os.getenv("KEYWORD_VOLUME_URL", "").rstrip("/")
KEYWORD_VOLUME_TIMEOUT = float(os.getenv("KEYWORD_VOLUME_TIMEOUT", "10"))

# HTTP
CORS_ORIGINS = [
    o.strip()
    for o in os.getenv("CORS_ORIGINS", "http://localhost:5173,http://localhost:3000").split(",")
    if o.strip()
]

# Debug trace mode (set FEEDAUDIT_TRACE=1 to get per-record checker logs)
TRACE_ENABLED = os.getenv("FEEDAUDIT_TRACE", "").strip().lower() in ("1", "true", "yes")
