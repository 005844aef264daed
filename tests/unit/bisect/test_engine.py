"""Tests for BisectEngine.step."""

from gitforensics.bisect.engine import BisectEngine, index_of
from gitforensics.bisect.models import StepResult


class TestMidpointSelection:
    """Tests for choosing the next commit to test."""

    def test_lower_middle_of_even_window(self, commits, hashes):
        """Ten candidates pick index 5."""
        result = BisectEngine.step(commits, hashes[0], hashes[9], set())

        assert result.midpoint == hashes[5]
        assert result.suspected is None
        assert result.remaining == 10
        assert result.estimated_steps == 4

    def test_middle_of_odd_window(self, commits, hashes):
        result = BisectEngine.step(commits, hashes[2], hashes[6], set())

        assert result.midpoint == hashes[4]
        assert result.remaining == 5
        assert result.estimated_steps == 3

    def test_either_orientation(self, commits, hashes):
        """Good after bad in the sequence gives the same window."""
        forward = BisectEngine.step(commits, hashes[0], hashes[9], set())
        backward = BisectEngine.step(commits, hashes[9], hashes[0], set())

        assert backward.midpoint == forward.midpoint
        assert backward.remaining == forward.remaining

    def test_eliminated_commits_are_skipped(self, commits, hashes):
        eliminated = set(hashes[:5])

        result = BisectEngine.step(commits, hashes[0], hashes[9], eliminated)

        # Candidates are 5..9
        assert result.remaining == 5
        assert result.midpoint == hashes[7]

    def test_three_commit_window_picks_interior(self, make_commits):
        commits = make_commits(3)
        good, x, bad = (c.hash for c in commits)

        result = BisectEngine.step(commits, good, bad, set())

        assert result.midpoint == x

    def test_two_candidates_can_pick_boundary(self, commits, hashes):
        """With two candidates the lower-middle pick is the later one,
        which may be a boundary."""
        result = BisectEngine.step(commits, hashes[3], hashes[4], set())

        assert result.midpoint == hashes[4]
        assert result.remaining == 2
        assert result.estimated_steps == 1

    def test_commits_outside_window_ignored(self, commits, hashes):
        result = BisectEngine.step(commits, hashes[6], hashes[8], set())

        assert result.remaining == 3
        assert result.midpoint == hashes[7]


class TestConvergence:
    """Tests for the converged result."""

    def test_single_candidate_reports_bad_boundary(self, commits, hashes):
        result = BisectEngine.step(
            commits, hashes[3], hashes[4], {hashes[3]}
        )

        assert result == StepResult(suspected=hashes[4])

    def test_reports_bad_boundary_not_sole_candidate(self, commits, hashes):
        """The culprit is the bad boundary even when it is eliminated."""
        result = BisectEngine.step(
            commits, hashes[3], hashes[4], {hashes[4]}
        )

        assert result.suspected == hashes[4]
        assert result.midpoint is None

    def test_no_candidates(self, commits, hashes):
        result = BisectEngine.step(
            commits, hashes[2], hashes[5], set(hashes)
        )

        assert result.suspected == hashes[5]
        assert result.remaining == 0
        assert result.estimated_steps == 0

    def test_same_good_and_bad(self, commits, hashes):
        result = BisectEngine.step(commits, hashes[4], hashes[4], set())

        assert result.suspected == hashes[4]


class TestUnresolvableBoundary:
    """Tests for boundaries missing from the sequence."""

    def test_unknown_good(self, commits, hashes):
        result = BisectEngine.step(commits, "deadbeef", hashes[9], set())

        assert result == StepResult()
        assert not result.can_proceed

    def test_unknown_bad(self, commits, hashes):
        result = BisectEngine.step(commits, hashes[0], "deadbeef", set())

        assert result.midpoint is None
        assert result.suspected is None
        assert result.remaining == 0

    def test_empty_sequence(self):
        assert BisectEngine.step([], "a", "b", set()) == StepResult()


def test_step_is_deterministic(commits, hashes):
    eliminated = {hashes[1], hashes[2]}

    first = BisectEngine.step(commits, hashes[0], hashes[9], eliminated)
    second = BisectEngine.step(commits, hashes[0], hashes[9], eliminated)

    assert first == second


def test_step_does_not_mutate_arguments(commits, hashes):
    eliminated = {hashes[1]}
    before_commits = list(commits)

    BisectEngine.step(commits, hashes[0], hashes[9], eliminated)

    assert eliminated == {hashes[1]}
    assert commits == before_commits


def test_index_of(commits, hashes):
    assert index_of(commits, hashes[3]) == 3
    assert index_of(commits, "missing") == -1
    assert index_of(commits, None) == -1
