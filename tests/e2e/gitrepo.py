# tests/e2e/gitrepo.py: Helpers for driving real git repositories in scenarios.

import subprocess
from pathlib import Path


def git(cwd: Path, *args: str) -> str:
    result = subprocess.run(["git", *args], cwd=cwd, capture_output=True, text=True, check=True)
    return result.stdout.strip()


def commit_file(cwd: Path, name: str, content: str, message: str) -> str:
    (cwd / name).write_text(content)
    git(cwd, "add", name)
    git(cwd, "commit", "-q", "-m", message)
    return git(cwd, "rev-parse", "HEAD")


def parent_count(cwd: Path, ref: str) -> int:
    return len(git(cwd, "rev-list", "--parents", "-n", "1", ref).split()) - 1
