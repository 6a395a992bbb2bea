# src/branchflow/sync.py: Synchronization with the shared remote.
# This module implements the two remote-facing workflows. sync_with_origin
# fetches, reconciles each canonical branch with its remote-tracking branch
# (stability branch first), pushes back whatever the merge left ahead, and
# returns the user to the branch they started on. publish_current_branch only
# ever writes forward: it creates, updates or force-overwrites the remote
# branch and never merges.

from dataclasses import dataclass
from enum import Enum, auto
from typing import List, Optional

from .divergence import DivergenceStatus, compare
from .gitwrap import (
    BranchScope,
    git_branch_exists,
    git_current_branch,
    git_fetch,
    git_fetch_tags,
    git_push,
    git_set_upstream,
)
from .merge import RestoreMode, merge_from_remote
from .session import FlowSession
from .util.errors import BranchNotFoundError, DetachedHeadError
from .util.log import get_logger

logger = get_logger(__name__)


class PublishStatus(Enum):
    CREATED = auto()
    OVERWRITTEN = auto()
    UPDATED = auto()
    NO_ACTION = auto()


@dataclass
class BranchSyncResult:
    branch: str
    status: Optional[DivergenceStatus] = None
    pushed: bool = False
    skipped: bool = False


@dataclass
class SyncReport:
    remote: str
    restored_branch: str
    branches: List[BranchSyncResult]


def _require_current_branch(session: FlowSession) -> str:
    current = git_current_branch(session.repo_path)
    if current is None:
        raise DetachedHeadError("HEAD is detached. Check out a branch before running this command.")
    return current


def _tracked_canonical_branches(session: FlowSession) -> List[str]:
    """
    Returns the canonical branches that have a remote-tracking counterpart.

    Each of them must also exist locally; a fresh clone usually only has the
    branch it checked out.
    """
    tracked = []
    for branch in session.config.canonical_branches():
        tracking = f"{session.remote}/{branch}"
        if not git_branch_exists(session.repo_path, tracking, BranchScope.REMOTE):
            continue
        if not git_branch_exists(session.repo_path, branch, BranchScope.LOCAL):
            raise BranchNotFoundError(
                f"'{tracking}' exists but there is no local '{branch}'. "
                f"Create it with: git branch {branch} {tracking}"
            )
        tracked.append(branch)
    return tracked


def sync_with_origin(session: FlowSession) -> SyncReport:
    """
    Fetches the configured remote and reconciles the canonical branches with it.

    Raises:
        BranchNotFoundError: If a canonical branch exists on the remote but not
            locally. Nothing has been merged at that point.
        RemoteError: If fetching or pushing fails.
        MergeConflictError: If a canonical branch cannot be merged cleanly. The
            user is left on that branch with the conflict in place.
    """
    remote = session.remote
    original = _require_current_branch(session)

    logger.info(f"Fetching from '{remote}'")
    git_fetch(session.repo_path, remote)
    git_fetch_tags(session.repo_path, remote)

    tracked = _tracked_canonical_branches(session)

    session.stack.push(original)
    results = []
    for branch in session.config.canonical_branches():
        if branch not in tracked:
            logger.info(f"No remote-tracking branch '{remote}/{branch}', skipping")
            results.append(BranchSyncResult(branch=branch, skipped=True))
            continue
        tracking = f"{remote}/{branch}"

        result = BranchSyncResult(branch=branch)
        result.status = merge_from_remote(session, remote, branch, RestoreMode.LEAVE_CHECKED_OUT)
        if compare(session.repo_path, branch, tracking) is not DivergenceStatus.EQUAL:
            logger.info(f"Pushing '{branch}' to '{remote}'")
            git_push(session.repo_path, remote, branch)
            result.pushed = True
        results.append(result)

    restored = session.stack.pop()
    return SyncReport(remote=remote, restored_branch=restored, branches=results)


def publish_current_branch(session: FlowSession, force: bool = False) -> PublishStatus:
    """
    Writes the current branch to the remote.

    force overwrites the remote branch without looking at how the two sides
    relate; it discards whatever exists only on the remote.

    Raises:
        RemoteError: If pushing or fetching fails.
    """
    remote = session.remote
    branch = _require_current_branch(session)
    tracking = f"{remote}/{branch}"

    if not git_branch_exists(session.repo_path, tracking, BranchScope.REMOTE):
        logger.info(f"Creating '{tracking}'")
        git_push(session.repo_path, remote, branch)
        git_fetch(session.repo_path, remote)
        git_set_upstream(session.repo_path, branch, remote)
        return PublishStatus.CREATED

    if force:
        logger.warning(f"Force-pushing '{branch}' over '{tracking}'")
        git_push(session.repo_path, remote, branch, force=True)
        return PublishStatus.OVERWRITTEN

    if compare(session.repo_path, branch, tracking) is DivergenceStatus.EQUAL:
        return PublishStatus.NO_ACTION

    logger.info(f"Updating '{tracking}'")
    git_push(session.repo_path, remote, branch)
    return PublishStatus.UPDATED
