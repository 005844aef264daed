"""Load the ordered commit sequence to bisect."""

from __future__ import annotations

import shlex
from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml
from invoke.exceptions import UnexpectedExit
from pydantic import ValidationError

from gitforensics.bisect.models import CommitRef, HistoryOrder
from gitforensics.core.log import logger
from gitforensics.core.runner import Runner

if TYPE_CHECKING:
    from gitforensics.core.config import HistoryConfig

# Unit separator between git log fields
_FIELD_SEP = "\x1f"
_GIT_LOG_FORMAT = "%H%x1f%an%x1f%aI%x1f%s"


class HistoryError(RuntimeError):
    """The commit history could not be loaded."""


def load_history(config: HistoryConfig) -> list[CommitRef]:
    """Load commits oldest-first from a file or a git repository."""
    if config.file is not None:
        return load_history_file(config.file, config.order)
    return load_git_history(config.workdir, config.ref, config.max_count)


def load_history_file(
    path: Path, order: HistoryOrder = HistoryOrder.OLDEST_FIRST
) -> list[CommitRef]:
    """Read a YAML or JSON list of commits.

    Items are hash strings or mappings with a `hash` key and optional
    `author`, `date` and `message`.

    Raises:
        HistoryError: If the file is missing, malformed or repeats a hash
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise HistoryError(f"Cannot read history file {path}: {e}") from e

    if not isinstance(data, list):
        raise HistoryError(f"History file {path} must contain a list")

    commits = [_parse_item(item, path) for item in data]
    if order == HistoryOrder.NEWEST_FIRST:
        commits.reverse()

    _check_unique(commits)
    logger.info("Loaded history file", path=str(path), commits=len(commits))
    return commits


def load_git_history(
    workdir: Path, ref: str = "HEAD", max_count: int | None = 100
) -> list[CommitRef]:
    """List the most recent commits reachable from ref, oldest first.

    Raises:
        HistoryError: If git fails
    """
    command = (
        f"git log --reverse --format={_GIT_LOG_FORMAT}"
        f"{f' -n {max_count}' if max_count else ''} {shlex.quote(ref)} --"
    )

    with logger.span("Loading git history", workdir=str(workdir), ref=ref):
        try:
            result = Runner().execute(command, cwd=workdir)
        except UnexpectedExit as e:
            raise HistoryError(
                f"git log failed in {workdir}: {e.result.stderr.strip()}"
            ) from e

    commits = []
    for line in result.stdout.splitlines():
        if not line.strip():
            continue
        sha, author, date, subject = (line.split(_FIELD_SEP, 3) + [""] * 3)[:4]
        commits.append(CommitRef(
            hash=sha, author=author, date=date, message=subject
        ))

    logger.info("Loaded git history", ref=ref, commits=len(commits))
    return commits


def find_commit(commits: Sequence[CommitRef], ref: str) -> CommitRef:
    """Find the commit whose hash is ref or starts with it.

    Raises:
        HistoryError: If no commit or more than one commit matches
    """
    exact = [c for c in commits if c.hash == ref]
    if exact:
        return exact[0]

    matches = [c for c in commits if ref and c.hash.startswith(ref)]
    if not matches:
        raise HistoryError(f"No commit matching {ref!r} in loaded history")
    if len(matches) > 1:
        raise HistoryError(
            f"Ambiguous commit {ref!r}: matches {len(matches)} commits"
        )
    return matches[0]


def _parse_item(item: Any, path: Path) -> CommitRef:
    # Unquoted all-digit abbreviations load as YAML ints
    if isinstance(item, (str, int)):
        return CommitRef(hash=str(item))
    if isinstance(item, dict) and isinstance(item.get("hash"), int):
        item = {**item, "hash": str(item["hash"])}
    try:
        return CommitRef.model_validate(item)
    except ValidationError as e:
        raise HistoryError(f"Invalid commit entry in {path}: {item!r}") from e


def _check_unique(commits: Sequence[CommitRef]) -> None:
    seen = set()
    for commit in commits:
        if commit.hash in seen:
            raise HistoryError(f"Duplicate commit {commit.hash} in history")
        seen.add(commit.hash)
