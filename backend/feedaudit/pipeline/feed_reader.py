"""Tab-separated feed ingestion.

Turns a Google Shopping style TSV export into ``FeedItem`` records:
  - Header names trimmed, inner whitespace → ``_``, lower-cased
    ("Image Link" → ``image_link``)
  - Cell values trimmed; blank lines and all-empty rows skipped
  - Short rows padded, surplus cells dropped
  - Quotes are literal (titles like ``27" Monitor`` survive intact)

Failing to obtain any records at all is the only *fatal* fault in a pass,
so every read problem surfaces as :class:`FeedReadError` before a single
progress event is emitted.
"""

import csv
import io
import re
import logging
from pathlib import Path

from feedaudit.pipeline.schemas import FeedAuditError, FeedItem

logger = logging.getLogger(__name__)

_HEADER_SPACE_RE = re.compile(r"\s+")


class FeedReadError(FeedAuditError):
    """No records could be obtained from the feed source."""


def normalize_header(name: str) -> str:
    return _HEADER_SPACE_RE.sub("_", (name or "").strip()).lower()


def decode_feed_bytes(data: bytes) -> str:
    for encoding in ("utf-8-sig", "utf-8", "cp1252"):
        try:
            return data.decode(encoding)
        except UnicodeDecodeError:
            continue
    raise FeedReadError("Feed must be UTF-8 or Windows-1252 encoded.")


def parse_feed_text(text: str) -> list[FeedItem]:
    """Parse TSV text (header row first) into feed items."""
    if text.startswith("\ufeff"):
        text = text[1:]
    reader = csv.reader(io.StringIO(text), delimiter="\t", quoting=csv.QUOTE_NONE)
    try:
        raw_headers = next(reader)
    except StopIteration:
        raise FeedReadError("Feed is empty: header row is required.")
    headers = [normalize_header(h) for h in raw_headers]
    if not any(headers):
        raise FeedReadError("Feed header row is blank.")

    items: list[FeedItem] = []
    skipped = 0
    for cells in reader:
        values = [c.strip() for c in cells[:len(headers)]]
        if not any(values):
            skipped += 1
            continue
        values += [""] * (len(headers) - len(values))
        row = {h: v for h, v in zip(headers, values) if h}
        items.append(FeedItem.from_mapping(row))

    if skipped:
        logger.debug(f"Feed reader: skipped {skipped} empty row(s)")
    logger.info(f"Feed reader: parsed {len(items)} record(s) with {len(headers)} column(s)")
    return items


def read_feed(path: str | Path) -> list[FeedItem]:
    """Read and parse a TSV feed file from disk."""
    path = Path(path)
    try:
        data = path.read_bytes()
    except FileNotFoundError:
        raise FeedReadError(f"Feed file not found: {path}")
    except OSError as e:
        raise FeedReadError(f"Feed file unreadable: {path} ({e})")
    return parse_feed_text(decode_feed_bytes(data))
