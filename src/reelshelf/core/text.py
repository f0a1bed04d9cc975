"""Title normalization for tokenized search."""

from __future__ import annotations

import re

_TOKEN_RE = re.compile(r"\w+", re.UNICODE)


def tokenize(text: str) -> list[str]:
    """Split text into lowercase word tokens, de-duplicated in first-seen order.

    The same normalizer is applied when indexing titles and when parsing a
    search query, so a query token matches a title token exactly.

    Args:
        text: Title or free-text query.

    Returns:
        List of distinct tokens.
    """
    seen: dict[str, None] = {}
    for token in _TOKEN_RE.findall(text.lower()):
        seen.setdefault(token, None)
    return list(seen)
