# src/branchflow/names.py: Short branch name resolution.
# Lets users type 'login' instead of 'feature/fix-login' as long as the short
# name picks out a single local branch under the given prefix.

from pathlib import Path

from .gitwrap import BranchScope, git_list_branches
from .util.errors import AmbiguousBranchError, BranchNotFoundError


def resolve_prefix(repo_path: Path, short_name: str, branch_prefix: str) -> str:
    """
    Resolves short_name to a local branch under branch_prefix.

    An exact match always wins. Otherwise exactly one branch must start with
    branch_prefix + short_name.

    Returns:
        The matching branch name with branch_prefix stripped.

    Raises:
        BranchNotFoundError: If no branch matches.
        AmbiguousBranchError: If several branches match; .matches lists their full names.
    """
    wanted = branch_prefix + short_name
    branches = git_list_branches(repo_path, BranchScope.LOCAL)
    if wanted in branches:
        return short_name

    matches = [name for name in branches if name.startswith(wanted)]
    if not matches:
        raise BranchNotFoundError(f"No branch matches '{wanted}'.")
    if len(matches) > 1:
        raise AmbiguousBranchError(short_name, matches)
    return matches[0][len(branch_prefix):]
