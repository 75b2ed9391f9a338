"""Filename query engine with relevance ranking.

Queries are compiled into regular expressions according to their
pattern type, matched against entry filenames, scored and ranked.
The engine also keeps a bounded, de-duplicated search history and
offers prefix suggestions.
"""

import logging
import os
import re
import threading
from collections.abc import Iterable, Sequence
from datetime import UTC, datetime

from dirscope.errors import InvalidPatternError
from dirscope.models.entry import FileEntry
from dirscope.models.search import (
    MatchField,
    PatternType,
    SearchMatch,
    SearchOptions,
    SearchResult,
)

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_SIZE = 50
MAX_SUGGESTIONS = 10

# Scoring weights
MATCH_WEIGHT = 10.0
EXACT_BONUS = 100.0
PREFIX_BONUS = 50.0
LEADING_MATCH_BONUS = 30.0
LENGTH_PENALTY = 0.1
FILE_BONUS = 5.0
RECENCY_WINDOW_DAYS = 7.0
RECENCY_MAX_BONUS = 10.0

_SECONDS_PER_DAY = 24 * 60 * 60


def _pattern_source(query: str, pattern_type: PatternType) -> str:
    if pattern_type is PatternType.LITERAL:
        return re.escape(query)
    if pattern_type is PatternType.WILDCARD:
        escaped = re.escape(query).replace(r"\*", ".*").replace(r"\?", ".")
        return f"^{escaped}$"
    return query


class QueryEngine:
    """Compiles, runs and ranks filename searches.

    Args:
        history_size: Maximum number of remembered queries.
    """

    def __init__(self, history_size: int = DEFAULT_HISTORY_SIZE) -> None:
        self._history_size = history_size
        self._history: list[str] = []
        self._history_lock = threading.Lock()

    # =========================================================================
    # Compilation
    # =========================================================================

    def validate(self, query: str, pattern_type: PatternType = PatternType.LITERAL) -> re.Pattern[str]:
        """Compile a query, raising on failure.

        Args:
            query: Query string.
            pattern_type: How the query is interpreted.

        Returns:
            Compiled case-insensitive pattern.

        Raises:
            InvalidPatternError: If the query is not a valid pattern.
        """
        try:
            return re.compile(_pattern_source(query, pattern_type), re.IGNORECASE)
        except re.error as e:
            raise InvalidPatternError(query, str(e)) from e

    def compile(
        self,
        query: str,
        pattern_type: PatternType = PatternType.LITERAL,
        case_sensitive: bool = False,
    ) -> re.Pattern[str] | None:
        """Compile a query into a matcher.

        - literal: the escaped query matches as a substring.
        - wildcard: ``*`` becomes ``.*``, ``?`` becomes ``.``, and the
          pattern is anchored so it matches the whole filename.
        - regex: the query is used verbatim.

        Args:
            query: Query string.
            pattern_type: How the query is interpreted.
            case_sensitive: Match case exactly.

        Returns:
            Compiled pattern, or None if the query is not a valid pattern.
        """
        flags = 0 if case_sensitive else re.IGNORECASE
        try:
            return re.compile(_pattern_source(query, pattern_type), flags)
        except re.error as e:
            logger.debug("Invalid %s pattern %r: %s", pattern_type.value, query, e)
            return None

    # =========================================================================
    # Matching and scoring
    # =========================================================================

    def find_matches(self, text: str, pattern: re.Pattern[str]) -> list[SearchMatch]:
        """Find every non-overlapping match of ``pattern`` in ``text``."""
        return [
            SearchMatch(
                source_field=MatchField.FILENAME,
                matched_text=match.group(0),
                start_index=match.start(),
                end_index=match.end(),
            )
            for match in pattern.finditer(text)
        ]

    def score(
        self,
        item: FileEntry,
        matches: Sequence[SearchMatch],
        query: str,
        now: datetime | None = None,
    ) -> float:
        """Calculate the relevance score of a match.

        Starts at 10 per match; adds 100 for an exact filename match,
        50 when the filename starts with the query, 30 per match at
        index 0, 5 for files, and up to 10 for entries modified in the
        last 7 days; subtracts 0.1 per filename character. Case is
        ignored for the exact and prefix comparisons. Never negative.

        Args:
            item: Matched entry.
            matches: Matches found in the entry.
            query: Original query string.
            now: Reference time for recency. Defaults to the current time.

        Returns:
            Non-negative relevance score.
        """
        filename = item.name
        filename_lower = filename.lower()
        query_lower = query.lower()

        score = len(matches) * MATCH_WEIGHT

        if filename_lower == query_lower:
            score += EXACT_BONUS
        if filename_lower.startswith(query_lower):
            score += PREFIX_BONUS

        for match in matches:
            if match.start_index == 0:
                score += LEADING_MATCH_BONUS

        # Prefer shorter, more specific names
        score -= len(filename) * LENGTH_PENALTY

        if item.is_file:
            score += FILE_BONUS

        reference = now or datetime.now(UTC)
        days_since_modified = (reference - item.modified).total_seconds() / _SECONDS_PER_DAY
        if days_since_modified < RECENCY_WINDOW_DAYS:
            score += max(0.0, RECENCY_MAX_BONUS - days_since_modified)

        return max(0.0, score)

    # =========================================================================
    # Search
    # =========================================================================

    def search(
        self,
        query: str,
        items: Iterable[FileEntry],
        options: SearchOptions | None = None,
        now: datetime | None = None,
    ) -> list[SearchResult]:
        """Filter and rank entries by a query.

        A blank query yields no results. An invalid pattern yields no
        results and no exception. Hidden entries are skipped unless
        ``include_hidden`` is set. Results are sorted by descending
        score; ties keep their input order.

        Args:
            query: Query string.
            items: Candidate entries.
            options: Search options. Defaults to a case-insensitive literal search.
            now: Reference time for recency scoring.

        Returns:
            Ranked search results.
        """
        if not query.strip():
            return []

        opts = options or SearchOptions()
        pattern = self.compile(query, opts.pattern_type, opts.case_sensitive)
        if pattern is None:
            logger.warning("Ignoring invalid %s query: %r", opts.pattern_type.value, query)
            return []

        if opts.search_in_content:
            logger.debug("Content search is not supported; matching filenames only")

        reference = now or datetime.now(UTC)
        results: list[SearchResult] = []
        for item in items:
            if item.hidden and not opts.include_hidden:
                continue
            matches = self.find_matches(os.path.basename(item.name), pattern)
            if not matches:
                continue
            results.append(
                SearchResult(
                    item=item,
                    matches=tuple(matches),
                    score=self.score(item, matches, query, now=reference),
                )
            )

        # sorted() is stable, so ties keep discovery order
        results = sorted(results, key=lambda result: result.score, reverse=True)

        self.add_to_history(query)
        return results

    # =========================================================================
    # History and suggestions
    # =========================================================================

    def add_to_history(self, query: str) -> None:
        """Remember a query at the front of the history.

        Re-adding a known query moves it to the front instead of
        duplicating it; the oldest entries beyond the cap are dropped.
        """
        trimmed = query.strip()
        if not trimmed:
            return
        with self._history_lock:
            if trimmed in self._history:
                self._history.remove(trimmed)
            self._history.insert(0, trimmed)
            del self._history[self._history_size :]

    def history(self) -> list[str]:
        """Return the search history, most recent first."""
        with self._history_lock:
            return list(self._history)

    def clear_history(self) -> None:
        """Forget every remembered query."""
        with self._history_lock:
            self._history.clear()

    def suggestions(self, partial_query: str, items: Iterable[FileEntry]) -> list[str]:
        """Suggest completions for a partial query.

        Candidates, in order: history entries, filenames, and ``*.ext``
        patterns whose prefix matches the partial query (ignoring case).

        Args:
            partial_query: What the user typed so far.
            items: Entries whose names and extensions may be suggested.

        Returns:
            Up to 10 unique suggestions.
        """
        prefix = partial_query.lower()
        suggestions: dict[str, None] = {}

        for entry in self.history():
            if entry.lower().startswith(prefix):
                suggestions[entry] = None

        for item in items:
            if item.name.lower().startswith(prefix):
                suggestions[item.name] = None
            ext = os.path.splitext(item.name)[1]
            if ext and ext.lower().startswith(prefix):
                suggestions[f"*{ext}"] = None

        return list(suggestions)[:MAX_SUGGESTIONS]
