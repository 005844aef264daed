"""Bisection step calculation."""

from __future__ import annotations

import math
from collections.abc import Sequence, Set

from gitforensics.bisect.models import CommitRef, StepResult


def index_of(commits: Sequence[CommitRef], commit_hash: str | None) -> int:
    """Position of commit_hash in commits, or -1."""
    for i, commit in enumerate(commits):
        if commit.hash == commit_hash:
            return i
    return -1


class BisectEngine:
    """Stateless binary search over an ordered commit sequence."""

    @staticmethod
    def step(
        commits: Sequence[CommitRef],
        good_hash: str,
        bad_hash: str,
        eliminated: Set[str],
    ) -> StepResult:
        """Compute the next commit to test between two boundaries.

        Candidates are the commits between good_hash and bad_hash
        inclusive, in sequence order, that are not in eliminated. The
        boundaries may appear in either order, and stay candidates
        until eliminated.

        Returns:
            StepResult with the lower-middle candidate as midpoint, or
            with bad_hash as suspected once one candidate or fewer
            remain. An empty result (no midpoint, no suspect) means a
            boundary is not in commits.
        """
        good_idx = index_of(commits, good_hash)
        bad_idx = index_of(commits, bad_hash)

        if good_idx == -1 or bad_idx == -1:
            return StepResult()

        start = min(good_idx, bad_idx)
        end = max(good_idx, bad_idx)

        candidates = [
            commit.hash for commit in commits[start:end + 1]
            if commit.hash not in eliminated
        ]

        if len(candidates) <= 1:
            return StepResult(suspected=bad_hash)

        return StepResult(
            midpoint=candidates[len(candidates) // 2],
            remaining=len(candidates),
            estimated_steps=math.ceil(math.log2(len(candidates))),
        )
