# src/branchflow/merge.py: Merge orchestration.
# This module turns a divergence classification into a concrete merge action:
# nothing when the refs are equal, otherwise a checkout of the receiving
# branch through the session's context stack, a fast-forward or explicit
# merge, and a restore of the previous checkout. A conflict stops everything:
# the conflicted tree is left in place and the stack is not unwound.

from enum import Enum, auto
from typing import List

from .divergence import DivergenceStatus, compare
from .gitwrap import MergeResult, MergeStrategy, git_commits_between, git_merge
from .session import FlowSession
from .util.errors import MergeConflictError, UnrelatedHistoriesError
from .util.log import get_logger

logger = get_logger(__name__)


class RestoreMode(Enum):
    RESTORE_CHECKOUT = auto()
    LEAVE_CHECKED_OUT = auto()


def remote_conflict_guidance(remote: str, branch: str) -> List[str]:
    return [
        f"Resolve the merge conflicts on '{branch}'.",
        "Commit the resolution.",
        f"Push the resolved branch: git push {remote} {branch}",
        "Re-run the command that was interrupted.",
    ]


def local_conflict_guidance(source: str, target: str) -> List[str]:
    return [
        f"Resolve the conflicts of merging '{source}' into '{target}'.",
        "Commit the resolution.",
        "Re-run the command that was interrupted.",
    ]


def _finish(session: FlowSession, restore_mode: RestoreMode) -> None:
    if restore_mode is RestoreMode.RESTORE_CHECKOUT:
        session.stack.pop()
    else:
        session.stack.pop_no_checkout()


def merge_from_remote(
    session: FlowSession, remote: str, branch: str, restore_mode: RestoreMode
) -> DivergenceStatus:
    """
    Merges remote/branch into the local branch.

    Returns the status found before merging; EQUAL means nothing was touched.

    Raises:
        UnrelatedHistoriesError: If the two sides share no history.
        MergeConflictError: If the merge stopped with conflicts.
    """
    tracking = f"{remote}/{branch}"
    status = compare(session.repo_path, branch, tracking)
    if status is DivergenceStatus.EQUAL:
        logger.info(f"'{branch}' is up to date with '{tracking}'")
        return status
    if status is DivergenceStatus.NO_COMMON_ANCESTOR:
        raise UnrelatedHistoriesError(f"'{branch}' and '{tracking}' have no common ancestor.")

    strategy = (
        MergeStrategy.FAST_FORWARD
        if status is DivergenceStatus.FIRST_NEEDS_FAST_FORWARD
        else MergeStrategy.EXPLICIT
    )
    session.stack.push(branch)
    logger.info(f"Merging '{tracking}' into '{branch}' ({status.name}, {strategy.name})")
    if git_merge(session.repo_path, tracking, strategy) is MergeResult.CONFLICT:
        raise MergeConflictError(
            f"Merging '{tracking}' into '{branch}' produced conflicts.",
            branch=branch,
            guidance=remote_conflict_guidance(remote, branch),
        )
    _finish(session, restore_mode)
    return status


def choose_local_strategy(
    session: FlowSession, source: str, target: str, status: DivergenceStatus
) -> MergeStrategy:
    """Fast-forward only a linear one-commit gap; anything else gets a merge commit."""
    if status is not DivergenceStatus.SECOND_NEEDS_FAST_FORWARD:
        return MergeStrategy.EXPLICIT
    if git_commits_between(session.repo_path, target, source) == 1:
        return MergeStrategy.FAST_FORWARD
    return MergeStrategy.EXPLICIT


def merge_local(
    session: FlowSession, source: str, target: str, restore_mode: RestoreMode
) -> DivergenceStatus:
    """
    Merges the local branch source into the local branch target.

    Returns the status found before merging; EQUAL means nothing was touched.

    Raises:
        UnrelatedHistoriesError: If the two branches share no history.
        MergeConflictError: If the merge stopped with conflicts.
    """
    status = compare(session.repo_path, source, target)
    if status is DivergenceStatus.EQUAL:
        logger.info(f"'{target}' already matches '{source}'")
        return status
    if status is DivergenceStatus.NO_COMMON_ANCESTOR:
        raise UnrelatedHistoriesError(f"'{source}' and '{target}' have no common ancestor.")

    session.stack.push(target)
    strategy = choose_local_strategy(session, source, target, status)
    logger.info(f"Merging '{source}' into '{target}' ({status.name}, {strategy.name})")
    if git_merge(session.repo_path, source, strategy) is MergeResult.CONFLICT:
        raise MergeConflictError(
            f"Merging '{source}' into '{target}' produced conflicts.",
            branch=target,
            guidance=local_conflict_guidance(source, target),
        )
    _finish(session, restore_mode)
    return status
