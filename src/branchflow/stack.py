# src/branchflow/stack.py: Branch context stack.
# Nested merge steps switch the checked-out branch; this stack records where
# each step has to return to. Like a shell's pushd/popd, push() saves the
# branch that was checked out before switching and pop() switches back to it.
# The stack is strictly LIFO and owned by one session, so it needs no locking.

from pathlib import Path
from typing import List

from .gitwrap import git_checkout, git_current_branch
from .util.errors import DetachedHeadError, StackUnderflowError
from .util.log import branch_context, get_logger

logger = get_logger(__name__)


class BranchStack:
    """LIFO record of branches to restore the work tree to."""

    def __init__(self, repo_path: Path):
        self.repo_path = repo_path
        self._entries: List[str] = []

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> List[str]:
        return list(self._entries)

    def push(self, target: str) -> None:
        """
        Saves the current branch, then makes target the checked-out branch.

        Raises:
            DetachedHeadError: If HEAD is not on a branch, so there is nothing to restore.
            CheckoutFailedError: If git refuses to switch.
        """
        current = git_current_branch(self.repo_path)
        if current is None:
            raise DetachedHeadError(
                f"Cannot switch to '{target}' from a detached HEAD. Check out a branch first."
            )
        self._entries.append(current)
        if current != target:
            logger.info(f"Checking out '{target}' (returning to '{current}' later)")
            git_checkout(self.repo_path, target)
        branch_context.set(target)

    def pop(self) -> str:
        """Removes the top entry and checks that branch out again."""
        branch = self._take()
        if git_current_branch(self.repo_path) != branch:
            logger.info(f"Restoring checkout of '{branch}'")
            git_checkout(self.repo_path, branch)
        branch_context.set(branch)
        return branch

    def pop_no_checkout(self) -> str:
        """Removes the top entry and leaves the work tree where it is."""
        return self._take()

    def _take(self) -> str:
        if not self._entries:
            raise StackUnderflowError("Branch context stack popped while empty.")
        return self._entries.pop()
