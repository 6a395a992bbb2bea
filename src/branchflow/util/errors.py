# src/branchflow/util/errors.py: Typed exceptions and exit codes.
# This module defines the exception hierarchy for branchflow. Every error class
# carries the process exit code the CLI uses when the error reaches the top
# level, so the core never terminates the process itself.

from typing import List


class BranchflowError(Exception):
    """Base exception for the application."""
    exit_code = 1


class ConfigError(BranchflowError):
    """Configuration-related errors."""
    exit_code = 2


class GitError(BranchflowError):
    """Git command errors."""
    exit_code = 3


class UnresolvableReferenceError(GitError):
    """A ref name does not resolve to a commit."""

    def __init__(self, ref: str):
        super().__init__(f"'{ref}' does not resolve to a commit.")
        self.ref = ref


class CheckoutFailedError(GitError):
    """Git refused to switch branches (e.g. local changes would be overwritten)."""

    def __init__(self, branch: str, reason: str):
        super().__init__(f"Could not check out '{branch}': {reason}")
        self.branch = branch


# --- Precondition failures: detected before anything is mutated ---

class PreconditionError(BranchflowError):
    """A command cannot run in the current repository state."""
    exit_code = 4


class NotARepositoryError(PreconditionError):
    pass


class DirtyWorkingTreeError(PreconditionError):
    pass


class DetachedHeadError(PreconditionError):
    pass


class BranchNotFoundError(PreconditionError):
    pass


class BranchExistsError(PreconditionError):
    pass


class UnrelatedHistoriesError(PreconditionError):
    """Two branches share no merge base."""


class SessionLockedError(PreconditionError):
    """Another branchflow process holds the repository lock."""


class AmbiguousBranchError(PreconditionError):
    """A short branch name matches more than one local branch."""

    def __init__(self, name: str, matches: List[str]):
        super().__init__(
            f"Name '{name}' is ambiguous, it matches: {', '.join(matches)}"
        )
        self.name = name
        self.matches = matches


# --- Remote failures: fatal, never retried ---

class RemoteError(BranchflowError):
    """Fetch, push or hosting API transport errors."""
    exit_code = 5


class AuthenticationError(RemoteError):
    pass


# --- Merge conflicts: the working tree is left conflicted on purpose ---

class MergeConflictError(BranchflowError):
    """A merge stopped with conflicts; carries the manual resolution steps."""
    exit_code = 6

    def __init__(self, message: str, branch: str, guidance: List[str]):
        super().__init__(message)
        self.branch = branch
        self.guidance = guidance


# --- Internal invariant violations: orchestration bugs, not user errors ---

class InternalError(BranchflowError):
    exit_code = 70


class StackUnderflowError(InternalError):
    """pop() was called on an empty branch context stack."""
