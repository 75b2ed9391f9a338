"""Filename search with ranking, history and debouncing."""

from dirscope.search.debounce import DebouncedSearch
from dirscope.search.engine import QueryEngine

__all__ = [
    "DebouncedSearch",
    "QueryEngine",
]
