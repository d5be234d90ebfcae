"""
Lexical Scoring Helpers

Heuristic relevance scoring and snippet extraction for web content that has
no vector index. Matching is a plain case-insensitive substring test against
the raw query (no tokenization, no stemming), which keeps it language-agnostic
for Spanish text.

Scoring (defaults, all tunable through settings):
--------------------------------------------------
- +10 if the title contains the query, +5 more if it starts with it
- +1 if the content contains the query, plus min(occurrences, 5)
- +2 if the serialized metadata contains the query
"""

import json
import re
from typing import Any, Mapping, Optional

from chefcopilot.core.config import settings

EMPHASIS = "**"
ELLIPSIS = "..."


def count_occurrences(text: str, query: str) -> int:
    """Non-overlapping, case-insensitive occurrences of ``query`` in ``text``."""
    if not text or not query:
        return 0
    return text.lower().count(query.lower())


def highlight_all(text: str, query: str) -> str:
    """
    Wrap every case-insensitive occurrence of ``query`` in ``**``.

    The matched text keeps its original casing.
    """
    if not text or not query:
        return text or ""
    pattern = re.compile(re.escape(query), re.IGNORECASE)
    return pattern.sub(lambda m: f"{EMPHASIS}{m.group(0)}{EMPHASIS}", text)


def extract_snippet(
    content: Optional[str],
    query: str,
    max_length: Optional[int] = None,
    window: Optional[int] = None,
    emphasize: bool = True
) -> str:
    """
    Extract a short excerpt of ``content`` around the first match of ``query``.

    Found: ``window`` chars either side of the match, ``...`` on any side that
    does not reach the string boundary, the query emphasized unless
    ``emphasize`` is False.
    Not found: the first ``max_length`` chars, with ``...`` if truncated.
    """
    max_length = max_length if max_length is not None else settings.LEXICAL_SNIPPET_LENGTH
    window = window if window is not None else settings.LEXICAL_SNIPPET_WINDOW

    content = content or ""
    index = content.lower().find(query.lower()) if query else -1

    if index == -1:
        return content[:max_length] + (ELLIPSIS if len(content) > max_length else "")

    start = max(0, index - window)
    end = min(len(content), index + len(query) + window)

    snippet = content[start:end]
    if start > 0:
        snippet = ELLIPSIS + snippet
    if end < len(content):
        snippet = snippet + ELLIPSIS

    return highlight_all(snippet, query) if emphasize else snippet


class LexicalScorer:
    """
    Relevance scorer for lexical web content search.

    Usage:
    ------
    scorer = LexicalScorer()
    score = scorer.score({"title": "Aroma de vainilla", "content": "..."}, "aroma")
    """

    def __init__(
        self,
        title_weight: Optional[int] = None,
        title_prefix_bonus: Optional[int] = None,
        content_weight: Optional[int] = None,
        occurrence_cap: Optional[int] = None,
        metadata_weight: Optional[int] = None
    ):
        self.title_weight = _pick(title_weight, settings.LEXICAL_TITLE_WEIGHT)
        self.title_prefix_bonus = _pick(title_prefix_bonus, settings.LEXICAL_TITLE_PREFIX_BONUS)
        self.content_weight = _pick(content_weight, settings.LEXICAL_CONTENT_WEIGHT)
        self.occurrence_cap = _pick(occurrence_cap, settings.LEXICAL_OCCURRENCE_CAP)
        self.metadata_weight = _pick(metadata_weight, settings.LEXICAL_METADATA_WEIGHT)

    def score(self, item: Mapping[str, Any], query: str) -> int:
        """
        Score one candidate item.

        Args:
            item: Mapping with optional ``title``, ``content`` and ``metadata``
            query: Raw search text

        Returns:
            Non-negative heuristic score, higher is better
        """
        if not query or not query.strip():
            return 0
        query_lower = query.lower()

        title_lower = (item.get("title") or "").lower()
        content_lower = (item.get("content") or "").lower()

        score = 0

        if query_lower in title_lower:
            score += self.title_weight
            if title_lower.startswith(query_lower):
                score += self.title_prefix_bonus

        if query_lower in content_lower:
            score += self.content_weight
            score += min(content_lower.count(query_lower), self.occurrence_cap)

        metadata = item.get("metadata")
        if metadata:
            serialized = json.dumps(metadata, ensure_ascii=False, default=str).lower()
            if query_lower in serialized:
                score += self.metadata_weight

        return score


def relevance_score(item: Mapping[str, Any], query: str) -> int:
    """Score ``item`` with the default weights."""
    return LexicalScorer().score(item, query)


def _pick(value: Optional[int], default: int) -> int:
    return default if value is None else value
