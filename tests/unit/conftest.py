# tests/unit/conftest.py: Shared fixtures for the unit tests.

import pytest
from pathlib import Path

from branchflow.config import FlowConfig
from branchflow.session import FlowSession


class FakeCheckout:
    """Stands in for the work tree: tracks the checked-out branch and every checkout."""

    def __init__(self, current="feature/x"):
        self.current = current
        self.checkouts = []

    def current_branch(self, cwd):
        return self.current

    def checkout(self, cwd, branch):
        self.checkouts.append(branch)
        self.current = branch


@pytest.fixture
def checkout(mocker) -> FakeCheckout:
    """Patches the git calls the branch context stack makes."""
    fake = FakeCheckout()
    mocker.patch("branchflow.stack.git_current_branch", side_effect=fake.current_branch)
    mocker.patch("branchflow.stack.git_checkout", side_effect=fake.checkout)
    return fake


@pytest.fixture
def session(tmp_path: Path) -> FlowSession:
    return FlowSession(repo_path=tmp_path, config=FlowConfig())
