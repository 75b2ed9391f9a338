"""Paginated directory reading and batched processing."""

from dirscope.pagination.engine import PageSequence, PaginationEngine, sort_entries

__all__ = ["PageSequence", "PaginationEngine", "sort_entries"]
