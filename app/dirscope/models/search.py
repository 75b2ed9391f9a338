"""Search query, match and result models."""

from dataclasses import dataclass
from enum import Enum

from dirscope.models.entry import FileEntry


class PatternType(str, Enum):
    """How a query string is interpreted.

    Attributes:
        LITERAL: Substring match on the escaped query.
        WILDCARD: ``*`` and ``?`` globbing against the whole filename.
        REGEX: Query used verbatim as a regular expression.
    """

    LITERAL = "literal"
    WILDCARD = "wildcard"
    REGEX = "regex"


class MatchField(str, Enum):
    """Field of an entry a match was found in."""

    FILENAME = "filename"


@dataclass(frozen=True, slots=True)
class SearchOptions:
    """Options controlling a single search.

    Attributes:
        case_sensitive: Match case exactly.
        pattern_type: How the query is interpreted.
        include_hidden: Also search dot-files.
        search_in_content: Accepted for interface compatibility; file
            content is never searched.
    """

    case_sensitive: bool = False
    pattern_type: PatternType = PatternType.LITERAL
    include_hidden: bool = False
    search_in_content: bool = False


@dataclass(frozen=True, slots=True)
class SearchMatch:
    """A single pattern match inside an entry field.

    Attributes:
        source_field: Field the match was found in.
        matched_text: Text covered by the match.
        start_index: Index of the first matched character.
        end_index: Index one past the last matched character.
    """

    source_field: MatchField
    matched_text: str
    start_index: int
    end_index: int


@dataclass(frozen=True, slots=True)
class SearchResult:
    """A ranked search hit.

    Attributes:
        item: The matching directory entry.
        matches: All matches found in the entry, in order.
        score: Relevance score (higher ranks first).
    """

    item: FileEntry
    matches: tuple[SearchMatch, ...]
    score: float
