"""Tests for the sync decision table."""

import itertools

import pytest

from superrepo_sync.models import RepositoryStatus
from superrepo_sync.sync.decision import Action, decide


def make_status(clean=True, tracking=True, ahead=0, behind=0, detached=False):
    return RepositoryStatus(
        current_branch=None if detached else "main",
        is_detached=detached,
        is_clean=clean,
        has_tracking_branch=tracking,
        ahead_count=ahead if tracking else None,
        behind_count=behind if tracking else None,
        upstream="origin/main" if tracking else None,
        dirty_paths=() if clean else ("notes.txt",),
    )


class TestDecisionTable:
    def test_dirty_blocks(self):
        assert decide(make_status(clean=False)) is Action.BLOCKED_DIRTY

    def test_no_upstream_blocks(self):
        assert decide(make_status(tracking=False)) is Action.BLOCKED_NO_UPSTREAM

    def test_up_to_date_skips(self):
        assert decide(make_status()) is Action.SKIP

    def test_behind_pulls(self):
        assert decide(make_status(behind=3)) is Action.PULL

    def test_ahead_pushes(self):
        assert decide(make_status(ahead=2)) is Action.PUSH

    def test_ahead_and_behind_is_diverged(self):
        assert decide(make_status(ahead=1, behind=1)) is Action.BLOCKED_DIVERGED

    def test_unknown_counts_with_tracking_block(self):
        status = RepositoryStatus(
            current_branch="main", is_detached=False, is_clean=True,
            has_tracking_branch=True, ahead_count=None, behind_count=None,
        )
        assert decide(status) is Action.BLOCKED_NO_UPSTREAM

    def test_detached_without_upstream_blocks(self):
        assert decide(make_status(tracking=False, detached=True)) is Action.BLOCKED_NO_UPSTREAM

    def test_blocked_property(self):
        assert Action.BLOCKED_DIVERGED.is_blocked
        assert not Action.PULL.is_blocked


class TestDecisionProperties:
    @pytest.mark.parametrize("ahead,behind", [(0, 0), (1, 0), (0, 5), (4, 7)])
    def test_dirty_wins_regardless_of_counts(self, ahead, behind):
        assert decide(make_status(clean=False, ahead=ahead, behind=behind)) is Action.BLOCKED_DIRTY

    @pytest.mark.parametrize("ahead,behind", [(1, 1), (10, 2), (2, 30)])
    def test_divergence_never_pulls_or_pushes(self, ahead, behind):
        action = decide(make_status(ahead=ahead, behind=behind))
        assert action is Action.BLOCKED_DIVERGED

    def test_total_over_all_combinations(self):
        expected = {
            (False, False, False, False): Action.BLOCKED_DIRTY,
            (True, False, False, False): Action.BLOCKED_NO_UPSTREAM,
            (True, True, False, False): Action.SKIP,
            (True, True, True, False): Action.PULL,
            (True, True, False, True): Action.PUSH,
            (True, True, True, True): Action.BLOCKED_DIVERGED,
        }
        for clean, tracking, is_behind, is_ahead in itertools.product([True, False], repeat=4):
            status = make_status(
                clean=clean, tracking=tracking,
                ahead=1 if is_ahead else 0, behind=1 if is_behind else 0,
            )
            action = decide(status)
            assert isinstance(action, Action)
            if not clean:
                assert action is Action.BLOCKED_DIRTY
            elif not tracking:
                assert action is Action.BLOCKED_NO_UPSTREAM
            else:
                assert action is expected[(clean, tracking, is_behind, is_ahead)]

    def test_decide_does_not_mutate(self):
        status = make_status(behind=2)
        before = status
        decide(status)
        decide(status)
        assert status == before
        assert decide(status) is decide(status)
