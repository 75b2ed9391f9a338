"""Unit tests for the query engine.

Tests for pattern compilation, scoring, ranking, history and
suggestions.
"""

from concurrent.futures import ThreadPoolExecutor
from datetime import UTC, datetime, timedelta

import pytest
from dirscope.errors import InvalidPatternError
from dirscope.models.search import PatternType, SearchOptions
from dirscope.search.engine import DEFAULT_HISTORY_SIZE, MAX_SUGGESTIONS, QueryEngine

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def engine() -> QueryEngine:
    """Fresh query engine."""
    return QueryEngine()


class TestCompile:
    """Tests for compile and validate."""

    def test_literal_escapes_metacharacters(self, engine: QueryEngine) -> None:
        """Regex metacharacters in a literal query match themselves."""
        pattern = engine.compile("a.b")

        assert pattern is not None
        assert pattern.search("xa.by")
        assert not pattern.search("axb")

    def test_wildcard_matches_whole_name(self, engine: QueryEngine) -> None:
        """Wildcards are anchored to the full filename."""
        pattern = engine.compile("*.txt", PatternType.WILDCARD)

        assert pattern is not None
        assert pattern.search("notes.txt")
        assert not pattern.search("notes.txt.bak")

    def test_question_mark_matches_one_character(self, engine: QueryEngine) -> None:
        """? matches exactly one character."""
        pattern = engine.compile("file?.log", PatternType.WILDCARD)

        assert pattern is not None
        assert pattern.search("file1.log")
        assert not pattern.search("file12.log")

    def test_invalid_regex_returns_none(self, engine: QueryEngine) -> None:
        """An invalid regex compiles to None instead of raising."""
        assert engine.compile("[unclosed", PatternType.REGEX) is None

    def test_validate_raises_for_invalid_regex(self, engine: QueryEngine) -> None:
        """validate reports the compile error."""
        with pytest.raises(InvalidPatternError, match="unclosed"):
            engine.validate("[unclosed", PatternType.REGEX)

    def test_case_sensitivity(self, engine: QueryEngine) -> None:
        """Matching ignores case unless requested."""
        insensitive = engine.compile("README")
        sensitive = engine.compile("README", case_sensitive=True)

        assert insensitive is not None and insensitive.search("readme.md")
        assert sensitive is not None and not sensitive.search("readme.md")


class TestScore:
    """Tests for relevance scoring."""

    def test_prefix_match_on_recent_file(self, engine: QueryEngine, make_entry) -> None:
        """Match, prefix, leading, length, file and recency terms add up."""
        item = make_entry("report.txt", modified=NOW - timedelta(days=2))
        pattern = engine.compile("rep")
        assert pattern is not None
        matches = engine.find_matches(item.name, pattern)

        score = engine.score(item, matches, "rep", now=NOW)

        assert score == pytest.approx(102.0)

    def test_exact_match_outranks_prefix(self, engine: QueryEngine, make_entry) -> None:
        """An exact filename match scores the exact bonus on top of the prefix."""
        results = engine.search(
            "readme",
            [make_entry("readme.md"), make_entry("readme")],
            now=NOW,
        )

        assert [r.item.name for r in results] == ["readme", "readme.md"]
        assert results[0].score == pytest.approx(194.4)
        assert results[1].score == pytest.approx(94.1)

    def test_score_never_negative(self, engine: QueryEngine, make_entry) -> None:
        """Long directory names with a late match floor at zero."""
        item = make_entry("x" * 300 + "a", is_directory=True)
        pattern = engine.compile("a")
        assert pattern is not None
        matches = engine.find_matches(item.name, pattern)

        assert engine.score(item, matches, "a", now=NOW) == 0.0

    def test_old_entries_get_no_recency_bonus(self, engine: QueryEngine, make_entry) -> None:
        """Entries modified seven or more days ago get no recency bonus."""
        fresh = make_entry("data", modified=NOW - timedelta(days=6))
        stale = make_entry("data", modified=NOW - timedelta(days=7))
        pattern = engine.compile("data")
        assert pattern is not None
        matches = engine.find_matches("data", pattern)

        difference = engine.score(fresh, matches, "data", now=NOW) - engine.score(
            stale, matches, "data", now=NOW
        )

        assert difference == pytest.approx(4.0)


class TestSearch:
    """Tests for search."""

    def test_blank_query_returns_nothing(self, engine: QueryEngine, make_entry) -> None:
        """Whitespace-only queries match nothing and are not remembered."""
        assert engine.search("   ", [make_entry("a.txt")]) == []
        assert engine.history() == []

    def test_invalid_pattern_returns_nothing(self, engine: QueryEngine, make_entry) -> None:
        """An invalid regex yields an empty result instead of an error."""
        options = SearchOptions(pattern_type=PatternType.REGEX)

        assert engine.search("(", [make_entry("(.txt")], options) == []

    def test_hidden_entries_skipped_by_default(self, engine: QueryEngine, make_entry) -> None:
        """Dot-files only match with include_hidden."""
        items = [make_entry(".env"), make_entry("env.txt")]

        default = engine.search("env", items, now=NOW)
        with_hidden = engine.search("env", items, SearchOptions(include_hidden=True), now=NOW)

        assert [r.item.name for r in default] == ["env.txt"]
        assert {r.item.name for r in with_hidden} == {".env", "env.txt"}

    def test_wildcard_search(self, engine: QueryEngine, make_entry) -> None:
        """Wildcard queries filter by whole-name match."""
        items = [make_entry("a.py"), make_entry("b.txt"), make_entry("c.py")]
        options = SearchOptions(pattern_type=PatternType.WILDCARD)

        results = engine.search("*.py", items, options, now=NOW)

        assert sorted(r.item.name for r in results) == ["a.py", "c.py"]

    def test_ties_keep_input_order(self, engine: QueryEngine, make_entry) -> None:
        """Entries with equal scores stay in discovery order."""
        items = [make_entry("xa1"), make_entry("xa2"), make_entry("xa3")]

        results = engine.search("a", items, now=NOW)

        assert [r.item.name for r in results] == ["xa1", "xa2", "xa3"]

    def test_records_all_match_positions(self, engine: QueryEngine, make_entry) -> None:
        """Every non-overlapping match is reported with its span."""
        results = engine.search("ab", [make_entry("abxab")], now=NOW)

        assert [(m.start_index, m.end_index) for m in results[0].matches] == [(0, 2), (3, 5)]


class TestHistory:
    """Tests for search history and suggestions."""

    def test_history_is_most_recent_first_without_duplicates(self, engine: QueryEngine) -> None:
        """Re-adding a query moves it to the front."""
        for query in ["alpha", "beta", "alpha"]:
            engine.add_to_history(query)

        assert engine.history() == ["alpha", "beta"]

    def test_history_is_capped(self, engine: QueryEngine) -> None:
        """Only the most recent queries are kept."""
        for i in range(DEFAULT_HISTORY_SIZE + 5):
            engine.add_to_history(f"query {i}")

        history = engine.history()
        assert len(history) == DEFAULT_HISTORY_SIZE
        assert history[0] == f"query {DEFAULT_HISTORY_SIZE + 4}"
        assert "query 0" not in history

    def test_search_adds_to_history(self, engine: QueryEngine, make_entry) -> None:
        """Successful searches are remembered trimmed."""
        engine.search("  notes ", [make_entry("notes.txt")])

        assert engine.history() == ["notes"]

    def test_concurrent_adds_stay_deduplicated(self, engine: QueryEngine) -> None:
        """Adding the same queries from many threads neither fails nor duplicates."""
        queries = [f"query-{i % 5}" for i in range(2000)]

        with ThreadPoolExecutor(max_workers=8) as executor:
            list(executor.map(engine.add_to_history, queries))

        assert sorted(engine.history()) == [f"query-{i}" for i in range(5)]

    def test_clear_history(self, engine: QueryEngine) -> None:
        """clear_history forgets everything."""
        engine.add_to_history("x")
        engine.clear_history()

        assert engine.history() == []

    def test_suggestions_order_and_extensions(self, engine: QueryEngine, make_entry) -> None:
        """History comes first, then names, then extension patterns."""
        engine.add_to_history("py files")
        items = [make_entry("pyproject.toml"), make_entry("main.py")]

        assert engine.suggestions("py", items) == ["py files", "pyproject.toml"]
        assert engine.suggestions(".p", items) == ["*.py"]

    def test_suggestions_are_capped(self, engine: QueryEngine, make_entry) -> None:
        """At most MAX_SUGGESTIONS suggestions are returned."""
        items = [make_entry(f"log{i}") for i in range(20)]

        assert len(engine.suggestions("log", items)) == MAX_SUGGESTIONS
