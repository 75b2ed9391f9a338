"""dirscope - directory cache, search and undo journal for file explorers.

The engine keeps a consistent, fast view over a directory subtree,
answers ranked search queries, paginates large directories and
journals file operations so they can be undone.
"""

__version__ = "0.1.0"
