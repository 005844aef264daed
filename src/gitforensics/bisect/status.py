"""Per-commit status derived from a bisect state."""

from __future__ import annotations

from gitforensics.bisect.models import BisectState, BisectStatus


def derive_statuses(state: BisectState) -> dict[str, BisectStatus]:
    """Map classified commit hashes to their BisectStatus.

    Boundaries and the suspect are assigned in the order good, bad,
    suspected, so a later one wins when a hash matches several.
    Eliminated hashes are SKIPPED only if not already classified.
    Unclassified hashes are absent.
    """
    statuses: dict[str, BisectStatus] = {}
    if state.good_hash:
        statuses[state.good_hash] = BisectStatus.GOOD
    if state.bad_hash:
        statuses[state.bad_hash] = BisectStatus.BAD
    if state.suspected_hash:
        statuses[state.suspected_hash] = BisectStatus.SUSPECTED
    for commit_hash in state.eliminated_hashes:
        statuses.setdefault(commit_hash, BisectStatus.SKIPPED)
    return statuses
