# src/branchflow/session.py: Per-invocation workflow session.
# A session bundles everything one top-level command needs: the repository
# path, the loaded configuration and the branch context stack. Entering the
# session verifies the repository and takes a file lock in the git directory
# so two branchflow processes never switch branches under each other.

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from filelock import FileLock, Timeout

from .config import FlowConfig
from .gitwrap import git_git_dir, git_is_repository
from .stack import BranchStack
from .util.errors import NotARepositoryError, SessionLockedError
from .util.log import branch_context, get_logger

logger = get_logger(__name__)

LOCK_NAME = "branchflow.lock"


@dataclass
class FlowSession:
    repo_path: Path
    config: FlowConfig = field(default_factory=FlowConfig)
    stack: BranchStack = field(init=False)
    _lock: Optional[FileLock] = field(default=None, init=False, repr=False)

    def __post_init__(self):
        self.repo_path = Path(self.repo_path)
        self.stack = BranchStack(self.repo_path)

    @property
    def remote(self) -> str:
        return self.config.remote

    def __enter__(self) -> "FlowSession":
        if not git_is_repository(self.repo_path):
            raise NotARepositoryError(f"'{self.repo_path}' is not inside a git work tree.")

        lock = FileLock(git_git_dir(self.repo_path) / LOCK_NAME)
        try:
            lock.acquire(timeout=1)
        except Timeout:
            raise SessionLockedError(
                "Another branchflow command is running in this repository. Try again when it finishes."
            ) from None
        self._lock = lock
        logger.debug(f"Session lock acquired for {self.repo_path}")
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._lock is not None and self._lock.is_locked:
            self._lock.release()
        self._lock = None
        branch_context.set(None)
