"""
Tests for lexical scoring and snippet helpers.

This module tests:
- Occurrence counting and highlighting
- Snippet windows, ellipses and emphasis
- Heuristic relevance scoring
"""

import pytest

from chefcopilot.services.processors.text_search import (
    LexicalScorer,
    count_occurrences,
    extract_snippet,
    highlight_all,
    relevance_score,
)


class TestHighlighting:
    """Test occurrence counting and emphasis."""

    def test_count_occurrences_case_insensitive(self):
        assert count_occurrences("aroma Aroma AROMA", "aroma") == 3

    def test_count_occurrences_empty(self):
        assert count_occurrences("", "aroma") == 0
        assert count_occurrences("aroma", "") == 0

    def test_highlight_all_keeps_casing(self):
        assert highlight_all("Sartén SARTÉN sartén", "sartén") == "**Sartén** **SARTÉN** **sartén**"

    def test_highlight_all_escapes_regex(self):
        assert highlight_all("precio (oferta) hoy", "(oferta)") == "precio **(oferta)** hoy"

    def test_highlight_all_without_query(self):
        assert highlight_all("texto", "") == "texto"
        assert highlight_all(None, "x") == ""


class TestSnippets:
    """Test snippet extraction around the first match."""

    def test_window_around_match(self):
        content = "x" * 100 + "Aroma" + "y" * 100

        snippet = extract_snippet(content, "aroma")

        assert snippet == "..." + "x" * 50 + "**Aroma**" + "y" * 50 + "..."

    def test_match_at_start_has_no_leading_ellipsis(self):
        assert extract_snippet("Aroma intenso", "aroma") == "**Aroma** intenso"

    def test_match_near_end(self):
        content = "z" * 80 + "vainilla"

        snippet = extract_snippet(content, "vainilla")

        assert snippet.startswith("...")
        assert snippet.endswith("**vainilla**")

    def test_not_found_truncates(self):
        content = "a" * 300

        snippet = extract_snippet(content, "zzz")

        assert snippet == "a" * 200 + "..."

    def test_not_found_short_content(self):
        assert extract_snippet("Receta de bizcocho", "zzz") == "Receta de bizcocho"

    def test_custom_lengths(self):
        content = "b" * 30 + "miel" + "c" * 30

        assert extract_snippet(content, "miel", window=5) == "..." + "b" * 5 + "**miel**" + "c" * 5 + "..."
        assert extract_snippet(content, "zzz", max_length=10) == "b" * 10 + "..."

    def test_empty_content(self):
        assert extract_snippet(None, "aroma") == ""


class TestLexicalScorer:
    """Test heuristic relevance scoring."""

    def test_title_prefix_match(self):
        item = {"title": "Aroma de vainilla", "content": "Extracto natural."}
        assert relevance_score(item, "aroma") == 15

    def test_title_contains(self):
        item = {"title": "Extracto con aroma", "content": ""}
        assert relevance_score(item, "aroma") == 10

    def test_content_occurrences_are_capped(self):
        twice = {"title": "Vainilla", "content": "aroma dulce, aroma intenso"}
        stuffed = {"title": "Vainilla", "content": "aroma " * 20}

        assert relevance_score(twice, "aroma") == 3
        assert relevance_score(stuffed, "aroma") == 6

    def test_metadata_match(self):
        item = {"title": "Guía", "content": "", "metadata": {"tags": ["vainilla"]}}
        assert relevance_score(item, "vainilla") == 2

    def test_missing_fields(self):
        assert relevance_score({}, "aroma") == 0

    @pytest.mark.parametrize("query", ["", "   "])
    def test_blank_query_scores_zero(self, query):
        assert relevance_score({"title": "Aroma"}, query) == 0

    def test_title_match_outranks_body_mentions(self):
        title_item = {"title": "Aroma de vainilla", "content": "Extracto para repostería."}
        body_item = {"title": "Postres", "content": "Un aroma suave. El aroma perdura."}

        assert relevance_score(title_item, "aroma") > relevance_score(body_item, "aroma")

    def test_query_is_not_stripped(self):
        item = {"title": "Aroma de vainilla", "content": "Con aroma natural."}

        assert relevance_score(item, "aroma") == 17
        # " aroma" only occurs inside the content, never in the title
        assert relevance_score(item, " aroma") == 2
        assert relevance_score(item, "aroma ") == 17

    def test_custom_weights(self):
        scorer = LexicalScorer(title_weight=1, title_prefix_bonus=0, content_weight=0, occurrence_cap=1)
        item = {"title": "Aroma", "content": "aroma aroma"}

        assert scorer.score(item, "aroma") == 2
