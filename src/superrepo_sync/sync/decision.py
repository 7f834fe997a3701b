"""Sync decision table: repository status -> next action.

    clean  tracking  behind  ahead   action
    no     -         -       -       BLOCKED_DIRTY
    yes    no        -       -       BLOCKED_NO_UPSTREAM
    yes    yes       no      no      SKIP
    yes    yes       yes     no      PULL
    yes    yes       no      yes     PUSH
    yes    yes       yes     yes     BLOCKED_DIVERGED

Divergence is never resolved here: a repository that is both ahead and
behind always blocks.
"""

from __future__ import annotations

from enum import Enum

from superrepo_sync.models import RepositoryStatus


class Action(Enum):
    SKIP = "skip"
    PULL = "pull"
    PUSH = "push"
    BLOCKED_DIRTY = "blocked:dirty"
    BLOCKED_NO_UPSTREAM = "blocked:no-upstream"
    BLOCKED_DIVERGED = "blocked:diverged"

    @property
    def is_blocked(self) -> bool:
        return self.value.startswith("blocked:")


def decide(status: RepositoryStatus) -> Action:
    """Map a status snapshot to exactly one action."""
    if not status.is_clean:
        return Action.BLOCKED_DIRTY
    if not status.has_tracking_branch:
        return Action.BLOCKED_NO_UPSTREAM
    if status.ahead_count is None or status.behind_count is None:
        return Action.BLOCKED_NO_UPSTREAM

    behind = status.behind_count > 0
    ahead = status.ahead_count > 0
    if behind and ahead:
        return Action.BLOCKED_DIVERGED
    if behind:
        return Action.PULL
    if ahead:
        return Action.PUSH
    return Action.SKIP
