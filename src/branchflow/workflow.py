# src/branchflow/workflow.py: Start and finish wrappers for topic branches.
# Feature, release and hotfix branches follow the usual branching model:
# features grow from develop and go back into it; releases grow from develop
# and hotfixes from master, and both land on master (tagged) and develop.
# Preconditions are checked before anything is mutated.

from typing import List, Tuple

from .gitwrap import (
    BranchScope,
    WorkingTreeState,
    git_branch_exists,
    git_checkout,
    git_create_branch,
    git_current_branch,
    git_delete_branch,
    git_tag,
    git_working_tree_state,
)
from .merge import RestoreMode, merge_local
from .names import resolve_prefix
from .session import FlowSession
from .util.errors import BranchExistsError, BranchNotFoundError, DirtyWorkingTreeError
from .util.log import get_logger

logger = get_logger(__name__)


def _require_clean(session: FlowSession) -> None:
    state = git_working_tree_state(session.repo_path)
    if state is WorkingTreeState.UNSTAGED_CHANGES:
        raise DirtyWorkingTreeError("The working tree has unstaged changes. Commit or stash them first.")
    if state is WorkingTreeState.STAGED_UNCOMMITTED:
        raise DirtyWorkingTreeError("The index has uncommitted changes. Commit or stash them first.")


def _require_branch(session: FlowSession, branch: str) -> None:
    if not git_branch_exists(session.repo_path, branch, BranchScope.LOCAL):
        raise BranchNotFoundError(f"Required branch '{branch}' does not exist.")


def base_branch(session: FlowSession, kind: str) -> str:
    if kind == "hotfix":
        return session.config.branches.master
    return session.config.branches.develop


def merge_targets(session: FlowSession, kind: str) -> List[str]:
    if kind == "feature":
        return [session.config.branches.develop]
    return session.config.canonical_branches()


def start_branch(session: FlowSession, kind: str, name: str) -> str:
    """Creates and checks out prefix+name from the kind's base branch."""
    branch = session.config.prefix_for(kind) + name
    base = base_branch(session, kind)

    _require_clean(session)
    _require_branch(session, base)
    if git_branch_exists(session.repo_path, branch, BranchScope.LOCAL):
        raise BranchExistsError(f"Branch '{branch}' already exists.")

    logger.info(f"Creating '{branch}' from '{base}'")
    git_create_branch(session.repo_path, branch, base)
    return branch


def finish_branch(session: FlowSession, kind: str, name: str) -> Tuple[str, List[str]]:
    """
    Merges a topic branch into its targets, tags releases and hotfixes, and deletes it.

    Every merge but the last restores the previous checkout; the user ends up
    on the last target.

    Returns:
        The finished branch and the targets it was merged into.
    """
    prefix = session.config.prefix_for(kind)
    branch = prefix + resolve_prefix(session.repo_path, name, prefix)
    targets = merge_targets(session, kind)

    _require_clean(session)
    for target in targets:
        _require_branch(session, target)

    for index, target in enumerate(targets):
        last = index == len(targets) - 1
        mode = RestoreMode.LEAVE_CHECKED_OUT if last else RestoreMode.RESTORE_CHECKOUT
        merge_local(session, branch, target, mode)
        if target == session.config.branches.master and kind != "feature":
            tag = session.config.prefixes.versiontag + branch[len(prefix):]
            logger.info(f"Tagging '{target}' as '{tag}'")
            git_tag(session.repo_path, tag, target, f"Finish {branch}")

    if git_current_branch(session.repo_path) == branch:
        git_checkout(session.repo_path, targets[-1])
    git_delete_branch(session.repo_path, branch)
    return branch, targets
