# tests/e2e/conftest.py: Real git repositories for end-to-end scenarios.

import subprocess
from pathlib import Path

import pytest

from gitrepo import commit_file, git


@pytest.fixture(autouse=True)
def git_identity(tmp_path: Path, monkeypatch):
    """Isolates git from the user's configuration and gives commits an author."""
    global_config = tmp_path / "gitconfig"
    global_config.write_text("")
    monkeypatch.setenv("GIT_CONFIG_GLOBAL", str(global_config))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    for role in ("AUTHOR", "COMMITTER"):
        monkeypatch.setenv(f"GIT_{role}_NAME", "Branchflow Test")
        monkeypatch.setenv(f"GIT_{role}_EMAIL", "test@example.com")


@pytest.fixture
def origin(tmp_path: Path) -> Path:
    path = tmp_path / "origin.git"
    subprocess.run(["git", "init", "-q", "--bare", str(path)], check=True)
    return path


@pytest.fixture
def work(tmp_path: Path, origin: Path) -> Path:
    """A clone with master and develop published to origin, checked out on master."""
    path = tmp_path / "work"
    path.mkdir()
    git(path, "init", "-q")
    git(path, "symbolic-ref", "HEAD", "refs/heads/master")
    commit_file(path, "README.md", "hello\n", "Initial commit")
    git(path, "branch", "develop")
    git(path, "remote", "add", "origin", str(origin))
    git(path, "push", "-q", "origin", "master", "develop")
    git(path, "fetch", "-q", "origin")
    return path


@pytest.fixture
def other(tmp_path: Path, origin: Path, work: Path) -> Path:
    """A second clone standing in for a teammate who pushes to origin."""
    path = tmp_path / "other"
    subprocess.run(["git", "clone", "-q", str(origin), str(path)], check=True)
    git(path, "checkout", "-q", "master")
    return path
