# src/branchflow/divergence.py: Branch divergence classification.
# This module answers "do these two refs need reconciling, and how?". It
# resolves both refs, compares their commit ids and merge base, and returns
# one of five statuses. It never mutates the repository.

from enum import Enum, auto
from pathlib import Path

from .gitwrap import git_merge_base, git_resolve_ref


class DivergenceStatus(Enum):
    """
    Relationship of a first ref to a second ref.

    The comparison is ordered: swapping the arguments swaps the two
    fast-forward cases and leaves the other three unchanged.
    """
    EQUAL = auto()
    FIRST_NEEDS_FAST_FORWARD = auto()
    SECOND_NEEDS_FAST_FORWARD = auto()
    REQUIRES_REAL_MERGE = auto()
    NO_COMMON_ANCESTOR = auto()


def compare(repo_path: Path, ref_a: str, ref_b: str) -> DivergenceStatus:
    """
    Classifies ref_a against ref_b.

    Raises:
        UnresolvableReferenceError: If either ref does not name a commit.
    """
    commit_a = git_resolve_ref(repo_path, ref_a)
    commit_b = git_resolve_ref(repo_path, ref_b)
    if commit_a == commit_b:
        return DivergenceStatus.EQUAL

    base = git_merge_base(repo_path, commit_a, commit_b)
    if base is None:
        return DivergenceStatus.NO_COMMON_ANCESTOR
    if base == commit_a:
        return DivergenceStatus.FIRST_NEEDS_FAST_FORWARD
    if base == commit_b:
        return DivergenceStatus.SECOND_NEEDS_FAST_FORWARD
    return DivergenceStatus.REQUIRES_REAL_MERGE
