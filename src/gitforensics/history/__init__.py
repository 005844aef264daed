"""Commit history sources."""

from gitforensics.history.loader import (
    HistoryError,
    find_commit,
    load_git_history,
    load_history,
    load_history_file,
)

__all__ = [
    "HistoryError",
    "find_commit",
    "load_git_history",
    "load_history",
    "load_history_file",
]
