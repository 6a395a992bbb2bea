# src/branchflow/gitwrap.py: Safe subprocess wrappers for Git.
# This module is the only place branchflow talks to the 'git' binary. Each
# function is one VCS primitive (resolve a ref, find a merge base, list
# branches, check out, merge, fetch, push, ...). Commands run with a timeout,
# with interactive prompts disabled, and failures surface as typed errors.

import os
import subprocess
from enum import Enum, auto
from pathlib import Path
from typing import List, Optional

from .util.errors import (
    CheckoutFailedError,
    GitError,
    RemoteError,
    UnresolvableReferenceError,
)
from .util.log import get_logger

logger = get_logger(__name__)


class BranchScope(Enum):
    LOCAL = auto()
    REMOTE = auto()
    ALL = auto()


class WorkingTreeState(Enum):
    CLEAN = auto()
    UNSTAGED_CHANGES = auto()
    STAGED_UNCOMMITTED = auto()


class MergeStrategy(Enum):
    FAST_FORWARD = auto()
    EXPLICIT = auto()


class MergeResult(Enum):
    SUCCESS = auto()
    CONFLICT = auto()


_SCOPE_REFS = {
    BranchScope.LOCAL: ["refs/heads"],
    BranchScope.REMOTE: ["refs/remotes"],
    BranchScope.ALL: ["refs/heads", "refs/remotes"],
}

# Never block on a credential prompt or a merge message editor.
_GIT_ENV = {"GIT_TERMINAL_PROMPT": "0", "GIT_MERGE_AUTOEDIT": "no"}

# --- Core Git Execution ---

def run_git(
    args: List[str],
    cwd: Path,
    timeout: int = 120,
    check: bool = True,
    env: Optional[dict] = None,
) -> subprocess.CompletedProcess:
    """
    Runs 'git <args>' inside the repository at cwd.

    Output is captured as text. With check=False a non-zero exit is returned
    to the caller, which is how the query helpers below tell "no such ref"
    apart from a real failure.

    Raises:
        GitError: If cwd is missing, git is not installed, the command exits
            non-zero while check is set, or it exceeds timeout seconds.
    """
    cwd = Path(cwd)
    if not cwd.is_dir():
        raise GitError(f"Git working directory not found: {cwd}")

    command = ["git", *args]
    label = " ".join(args)
    logger.debug(f"Running 'git {label}' in {cwd}")
    try:
        return subprocess.run(
            command,
            cwd=cwd,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=check,
            env={**os.environ, **_GIT_ENV, **(env or {})},
        )
    except FileNotFoundError as e:
        raise GitError("No 'git' executable on PATH; branchflow needs git installed.") from e
    except subprocess.CalledProcessError as e:
        detail = (e.stderr or "").strip() or (e.stdout or "").strip() or f"exit status {e.returncode}"
        raise GitError(f"'git {label}' failed in {cwd}: {detail}") from e
    except subprocess.TimeoutExpired as e:
        raise GitError(f"'git {label}' timed out after {timeout} seconds.") from e


def _output_lines(result: subprocess.CompletedProcess) -> List[str]:
    return [line.strip() for line in result.stdout.splitlines() if line.strip()]


# --- Repository queries ---

def git_is_repository(cwd: Path) -> bool:
    """Checks whether cwd is inside a git work tree."""
    try:
        result = run_git(["rev-parse", "--is-inside-work-tree"], cwd=cwd, check=False)
    except GitError:
        return False
    return result.returncode == 0 and result.stdout.strip() == "true"


def git_git_dir(cwd: Path) -> Path:
    """Returns the absolute path of the repository's .git directory."""
    result = run_git(["rev-parse", "--absolute-git-dir"], cwd=cwd)
    return Path(result.stdout.strip())


def git_resolve_ref(cwd: Path, ref: str) -> str:
    """Resolves a ref to a commit id, raising UnresolvableReferenceError if it names none."""
    result = run_git(
        ["rev-parse", "--verify", "--quiet", f"{ref}^{{commit}}"], cwd=cwd, check=False
    )
    sha = result.stdout.strip()
    if result.returncode != 0 or not sha:
        raise UnresolvableReferenceError(ref)
    return sha


def git_merge_base(cwd: Path, commit1: str, commit2: str) -> Optional[str]:
    """Finds the common ancestor of two commits, or None when the histories are unrelated."""
    result = run_git(["merge-base", commit1, commit2], cwd=cwd, check=False)
    if result.returncode == 1:
        return None
    if result.returncode != 0:
        raise GitError(
            f"'git merge-base {commit1} {commit2}' failed in {cwd}: {result.stderr.strip()}"
        )
    return result.stdout.strip()


def git_list_branches(cwd: Path, scope: BranchScope = BranchScope.LOCAL) -> List[str]:
    """
    Lists branch names in the given scope.

    Local branches are returned as 'name', remote-tracking ones as 'remote/name'.
    Symbolic remote HEAD refs (e.g. 'origin/HEAD') are skipped.
    """
    result = run_git(["for-each-ref", "--format=%(refname)"] + _SCOPE_REFS[scope], cwd=cwd)
    names = []
    for refname in _output_lines(result):
        if refname.endswith("/HEAD"):
            continue
        for namespace in ("refs/heads/", "refs/remotes/"):
            if refname.startswith(namespace):
                names.append(refname[len(namespace):])
    return names


def git_branch_exists(cwd: Path, name: str, scope: BranchScope = BranchScope.LOCAL) -> bool:
    return name in git_list_branches(cwd, scope)


def git_current_branch(cwd: Path) -> Optional[str]:
    """Gets the current active branch name, or None when HEAD is detached."""
    result = run_git(["symbolic-ref", "--short", "-q", "HEAD"], cwd=cwd, check=False)
    if result.returncode != 0:
        return None
    return result.stdout.strip() or None


def git_working_tree_state(cwd: Path) -> WorkingTreeState:
    """Classifies uncommitted changes in the work tree and index."""
    run_git(["update-index", "-q", "--ignore-submodules", "--refresh"], cwd=cwd, check=False)
    unstaged = run_git(
        ["diff-files", "--quiet", "--ignore-submodules", "--"], cwd=cwd, check=False
    )
    if unstaged.returncode != 0:
        return WorkingTreeState.UNSTAGED_CHANGES
    staged = run_git(
        ["diff-index", "--cached", "--quiet", "--ignore-submodules", "HEAD", "--"],
        cwd=cwd,
        check=False,
    )
    if staged.returncode != 0:
        return WorkingTreeState.STAGED_UNCOMMITTED
    return WorkingTreeState.CLEAN


def git_commits_between(cwd: Path, base: str, tip: str) -> int:
    """Counts commits reachable from tip but not from base."""
    result = run_git(["rev-list", "--count", f"{base}..{tip}"], cwd=cwd)
    return int(result.stdout.strip())


# --- Branch mutation ---

def git_checkout(cwd: Path, branch: str) -> None:
    """Switches the work tree to branch."""
    result = run_git(["checkout", "-q", branch], cwd=cwd, check=False)
    if result.returncode != 0:
        raise CheckoutFailedError(branch, result.stderr.strip() or result.stdout.strip())


def git_create_branch(cwd: Path, name: str, base: str) -> None:
    """Creates branch name at base and checks it out."""
    run_git(["checkout", "-q", "-b", name, base], cwd=cwd)


def git_delete_branch(cwd: Path, name: str) -> None:
    run_git(["branch", "-d", name], cwd=cwd)


def git_tag(cwd: Path, tag: str, ref: str, message: str) -> None:
    run_git(["tag", "-a", tag, "-m", message, ref], cwd=cwd)


def git_merge(cwd: Path, ref: str, strategy: MergeStrategy) -> MergeResult:
    """
    Merges ref into the current branch.

    FAST_FORWARD lets git advance the branch pointer when possible; EXPLICIT
    always records a merge commit (--no-ff). A failed merge that leaves
    unmerged paths behind is reported as CONFLICT, any other failure raises.
    """
    args = ["merge", "--no-edit"]
    args.append("--ff" if strategy is MergeStrategy.FAST_FORWARD else "--no-ff")
    args.append(ref)
    result = run_git(args, cwd=cwd, check=False)
    if result.returncode == 0:
        return MergeResult.SUCCESS

    unmerged = run_git(["diff", "--name-only", "--diff-filter=U"], cwd=cwd, check=False)
    if _output_lines(unmerged):
        return MergeResult.CONFLICT
    error_message = result.stderr.strip() or result.stdout.strip()
    raise GitError(f"'git {' '.join(args)}' failed in {cwd}: {error_message}")


# --- Remote operations ---

def git_fetch(cwd: Path, remote: str) -> None:
    """Fetches branch updates from a remote."""
    try:
        run_git(["fetch", "-q", remote], cwd=cwd)
    except GitError as e:
        raise RemoteError(f"Could not fetch from '{remote}': {e}")


def git_fetch_tags(cwd: Path, remote: str) -> None:
    try:
        run_git(["fetch", "-q", "--tags", remote], cwd=cwd)
    except GitError as e:
        raise RemoteError(f"Could not fetch tags from '{remote}': {e}")


def git_push(cwd: Path, remote: str, branch: str, force: bool = False) -> None:
    """Pushes a branch to a remote."""
    args = ["push", "-q", remote, f"refs/heads/{branch}:refs/heads/{branch}"]
    if force:
        args.append("--force")
    try:
        run_git(args, cwd=cwd)
    except GitError as e:
        raise RemoteError(f"Could not push '{branch}' to '{remote}': {e}")


def git_set_upstream(cwd: Path, branch: str, remote: str) -> None:
    """Configures remote/branch as the tracking branch of branch."""
    run_git(["branch", f"--set-upstream-to={remote}/{branch}", branch], cwd=cwd)
