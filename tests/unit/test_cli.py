# tests/unit/test_cli.py: Unit tests for the command-line interface.

import pytest
import requests
from typer.testing import CliRunner

from branchflow import __version__
from branchflow.cli import app
from branchflow.divergence import DivergenceStatus
from branchflow.merge import RestoreMode, remote_conflict_guidance
from branchflow.sync import BranchSyncResult, PublishStatus, SyncReport
from branchflow.util.errors import AmbiguousBranchError, MergeConflictError, RemoteError

runner = CliRunner()


@pytest.fixture
def repo(tmp_path, mocker, monkeypatch):
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    git_dir = tmp_path / ".git"
    git_dir.mkdir()
    mocker.patch("branchflow.session.git_is_repository", return_value=True)
    mocker.patch("branchflow.session.git_git_dir", return_value=git_dir)
    return tmp_path


def invoke(repo, *args):
    return runner.invoke(app, ["--repo", str(repo), *args])


def test_version():
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_compare_prints_status(repo, mocker):
    mocker.patch("branchflow.cli.compare", return_value=DivergenceStatus.REQUIRES_REAL_MERGE)
    result = invoke(repo, "compare", "develop", "origin/develop")
    assert result.exit_code == 0
    assert "REQUIRES_REAL_MERGE" in result.output


def test_sync_reports_branches(repo, mocker):
    report = SyncReport(
        remote="origin",
        restored_branch="feature/x",
        branches=[
            BranchSyncResult("master", DivergenceStatus.REQUIRES_REAL_MERGE, pushed=True),
            BranchSyncResult("develop", skipped=True),
        ],
    )
    mocker.patch("branchflow.cli.sync_with_origin", return_value=report)

    result = invoke(repo, "sync")

    assert result.exit_code == 0
    assert "REQUIRES_REAL_MERGE" in result.output
    assert "feature/x" in result.output


def test_sync_conflict_exits_non_zero_with_guidance(repo, mocker):
    error = MergeConflictError(
        "Merging 'origin/master' into 'master' produced conflicts.",
        branch="master",
        guidance=remote_conflict_guidance("origin", "master"),
    )
    mocker.patch("branchflow.cli.sync_with_origin", side_effect=error)

    result = invoke(repo, "sync")

    assert result.exit_code == MergeConflictError.exit_code
    assert "git push origin master" in result.output


def test_sync_remote_failure(repo, mocker):
    mocker.patch("branchflow.cli.sync_with_origin", side_effect=RemoteError("Could not fetch from 'origin'"))
    result = invoke(repo, "sync")
    assert result.exit_code == 5
    assert "Could not fetch" in result.output


def test_publish_force(repo, mocker):
    publish = mocker.patch("branchflow.cli.publish_current_branch", return_value=PublishStatus.OVERWRITTEN)
    result = invoke(repo, "publish", "--force")
    assert result.exit_code == 0
    assert "overwritten" in result.output
    assert publish.call_args.kwargs["force"] is True


def test_merge_restores_by_default(repo, mocker):
    merge_local = mocker.patch("branchflow.cli.merge_local", return_value=DivergenceStatus.SECOND_NEEDS_FAST_FORWARD)

    assert invoke(repo, "merge", "feature/x", "develop").exit_code == 0
    assert merge_local.call_args.args[1:] == ("feature/x", "develop", RestoreMode.RESTORE_CHECKOUT)

    assert invoke(repo, "merge", "feature/x", "develop", "--stay").exit_code == 0
    assert merge_local.call_args.args[3] is RestoreMode.LEAVE_CHECKED_OUT


def test_resolve_ambiguous_lists_candidates(repo, mocker):
    mocker.patch(
        "branchflow.cli.resolve_prefix",
        side_effect=AmbiguousBranchError("fix", ["feature/fix-login", "feature/fix-logout"]),
    )
    result = invoke(repo, "resolve", "fix")
    assert result.exit_code == 4
    assert "feature/fix-login" in result.output
    assert "feature/fix-logout" in result.output


def test_not_a_repository(tmp_path, mocker, monkeypatch):
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    mocker.patch("branchflow.session.git_is_repository", return_value=False)
    result = invoke(tmp_path, "sync")
    assert result.exit_code == 4
    assert "Error" in result.output


def test_bad_config_file(repo):
    (repo / ".branchflow.yaml").write_text("remote: [unclosed")
    result = invoke(repo, "sync")
    assert result.exit_code == 2


def test_unknown_logging_level_exits_with_config_code(repo):
    (repo / ".branchflow.yaml").write_text("logging:\n  level: verbose\n")
    result = invoke(repo, "resolve", "x")
    assert result.exit_code == 2
    assert "Error" in result.output


def test_pull_request_requires_repository_setting(repo):
    result = invoke(repo, "pull-request")
    assert result.exit_code == 2
    assert "hosting.repository" in result.output


def test_pull_request_non_json_reply(repo, mocker):
    (repo / ".branchflow.yaml").write_text("hosting:\n  repository: acme/widgets\n")
    mocker.patch("branchflow.cli.git_current_branch", return_value="feature/x")
    response = requests.Response()
    response.status_code = 201
    response._content = b"<html>created</html>"
    client = mocker.patch("branchflow.cli.HostingClient")
    client.return_value.post.return_value = response

    result = invoke(repo, "pull-request")

    assert result.exit_code == RemoteError.exit_code
    assert "not JSON" in result.output
    assert client.return_value.post.call_args.args[0] == "repos/acme/widgets/pulls"
