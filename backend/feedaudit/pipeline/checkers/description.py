"""Description checks: whitespace, markup, length and promotional wording.

Descriptions are long, so finding values carry short context snippets
around each hit instead of the whole field.
"""

from feedaudit.config import MAX_DESCRIPTION_LENGTH
from feedaudit.pipeline.schemas import ErrorResult, FeedItem
from feedaudit.pipeline.checkers.base import finding
from feedaudit.pipeline.text_normalizer import (
    REPEATED_WHITESPACE_RE, REPEATED_COMMA_RE, HTML_TAG_RE, HTML_ENTITY_RE, NON_BREAKING_SPACE_RE,
    find_all, promotional_matches, get_context, truncate_context, format_cases,
)


def _snippets(text: str, matches) -> list[str]:
    return [
        truncate_context(get_context(text, m.start(), len(m.group(0))), m.group(0))
        for m in matches
    ]


def check_description_whitespace(item: FeedItem) -> ErrorResult | None:
    text = item.description
    if not text or not (text[:1].isspace() or text[-1:].isspace()):
        return None
    leading = len(text) - len(text.lstrip())
    trailing = len(text) - len(text.rstrip())
    value = ""
    if leading:
        words = text.lstrip().split(" ")
        value = f'"  {words[0]}..."'
    if trailing:
        words = text.rstrip().split(" ")
        value = f'"...{words[-1]}  "'
    return finding(
        item, "Description Contains Whitespace at Start or End",
        f"Description has {leading} whitespaces at the beginning and {trailing} whitespaces at the end",
        "description", value,
    )


def check_description_repeated_whitespace(item: FeedItem) -> ErrorResult | None:
    text = item.description
    matches = find_all(REPEATED_WHITESPACE_RE, text)
    if not matches:
        return None
    examples = []
    for m in matches:
        context = get_context(text, m.start(), len(m.group(0)))
        marked = context.replace(m.group(0), "__" * len(m.group(0)), 1)
        examples.append(f'"...{marked}..."')
    return finding(
        item, "Description Contains Repeated Whitespace",
        f"Found {len(matches)} instance(s) of repeated whitespaces in description",
        "description", "; ".join(examples),
    )


def check_description_repeated_commas(item: FeedItem) -> ErrorResult | None:
    matches = find_all(REPEATED_COMMA_RE, item.description)
    if not matches:
        return None
    return finding(
        item, "Description Contains Repeated Commas",
        f"Found {len(matches)} instance(s) of repeated commas",
        "description", format_cases(_snippets(item.description, matches)),
    )


def check_description_html(item: FeedItem) -> ErrorResult | None:
    matches = find_all(HTML_TAG_RE, item.description)
    if not matches:
        return None
    tags = ", ".join(m.group(0) for m in matches)
    return finding(
        item, "Description Contains HTML",
        f"Found {len(matches)} HTML tag(s): {tags}",
        "description", format_cases(_snippets(item.description, matches)),
    )


def check_description_html_entities(item: FeedItem) -> ErrorResult | None:
    matches = find_all(HTML_ENTITY_RE, item.description)
    if not matches:
        return None
    entities = ", ".join(m.group(0) for m in matches)
    return finding(
        item, "Description Contains HTML Entities",
        f"Found {len(matches)} HTML entities: {entities}",
        "description", format_cases(_snippets(item.description, matches)),
    )


def check_description_length(item: FeedItem) -> ErrorResult | None:
    if item.description and len(item.description) > MAX_DESCRIPTION_LENGTH:
        return finding(
            item, "Description Too Long",
            f"Description exceeds {MAX_DESCRIPTION_LENGTH} characters (current length: {len(item.description)})",
            "description", "Description Too Long",
        )
    return None


def check_description_non_breaking_spaces(item: FeedItem) -> ErrorResult | None:
    matches = find_all(NON_BREAKING_SPACE_RE, item.description)
    if not matches:
        return None
    return finding(
        item, "Description Contains Nonbreaking Spaces",
        f"Found {len(matches)} instance(s) of non-breaking spaces",
        "description", format_cases(_snippets(item.description, matches)),
    )


def check_description_promotional_words(item: FeedItem) -> ErrorResult | None:
    hits = promotional_matches(item.description)
    if not hits:
        return None
    # First hit per word is enough for an example
    first_hits = {}
    for word, m in hits:
        first_hits.setdefault(word, m)
    return finding(
        item, "Description Contains Promotional Words",
        f"Found {len(first_hits)} promotional word(s): {', '.join(first_hits)}",
        "description", format_cases(_snippets(item.description, first_hits.values())),
    )
