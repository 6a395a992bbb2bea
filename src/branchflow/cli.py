# src/branchflow/cli.py: Command-Line Interface (CLI) entry point.
# Implemented using Typer, this module provides the 'branchflow' command. Each
# subcommand opens a session on the repository, calls into the merge engine
# and renders the outcome with rich. This is the only place where errors are
# turned into process exit codes.

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from . import __version__
from .config import FlowConfig, load_config
from .divergence import compare
from .gitwrap import git_current_branch
from .hosting import HostingClient
from .merge import RestoreMode, merge_local
from .names import resolve_prefix
from .session import FlowSession
from .sync import publish_current_branch, sync_with_origin
from .util.errors import (
    AmbiguousBranchError,
    BranchflowError,
    ConfigError,
    DetachedHeadError,
    MergeConflictError,
    RemoteError,
)
from .util.log import configure_logging
from .workflow import finish_branch, start_branch

app = typer.Typer(
    name="branchflow",
    help="Branching-model workflow commands on top of git.",
    add_completion=False,
)
console = Console(stderr=True)


class _State:
    def __init__(self, repo_path: Path, config: FlowConfig):
        self.repo_path = repo_path
        self.config = config


def version_callback(value: bool):
    """Print the version and exit."""
    if value:
        print(f"branchflow version: {__version__}")
        raise typer.Exit()


def fail(error: BranchflowError) -> None:
    """Reports an error and exits with its code."""
    if isinstance(error, MergeConflictError):
        console.print(f"[bold red]Merge conflict:[/bold red] {error}")
        console.print("To continue:")
        for number, step in enumerate(error.guidance, start=1):
            console.print(f"  {number}. {step}")
    elif isinstance(error, AmbiguousBranchError):
        console.print(f"[bold red]Error:[/bold red] '{error.name}' is ambiguous. Candidates:")
        for match in error.matches:
            console.print(f"  - {match}")
    else:
        console.print(f"[bold red]Error:[/bold red] {error}")
    raise typer.Exit(code=error.exit_code)


def open_session(ctx: typer.Context) -> FlowSession:
    state: _State = ctx.obj
    return FlowSession(repo_path=state.repo_path, config=state.config)


@app.callback()
def main(
    ctx: typer.Context,
    config_path: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Path to a branchflow YAML config file."
    ),
    repo: Path = typer.Option(
        Path("."), "--repo", "-C", help="Repository to operate on.", resolve_path=True
    ),
    version: Optional[bool] = typer.Option(
        None, "--version", callback=version_callback, is_eager=True
    ),
):
    """
    branchflow CLI.
    """
    try:
        cfg = load_config(config_path, repo_path=repo)
    except ConfigError as e:
        fail(e)
    configure_logging(cfg.logging.level, cfg.logging.json_format)
    ctx.obj = _State(repo, cfg)


@app.command("compare")
def compare_cmd(
    ctx: typer.Context,
    first: str = typer.Argument(..., help="First ref."),
    second: str = typer.Argument(..., help="Second ref."),
):
    """Show how FIRST relates to SECOND."""
    try:
        with open_session(ctx) as session:
            status = compare(session.repo_path, first, second)
    except BranchflowError as e:
        fail(e)
    print(status.name)


@app.command()
def sync(ctx: typer.Context):
    """Fetch the remote and reconcile the canonical branches with it."""
    try:
        with open_session(ctx) as session:
            with console.status(f"Syncing with [bold cyan]{session.remote}[/bold cyan]...", spinner="dots"):
                report = sync_with_origin(session)
    except BranchflowError as e:
        fail(e)

    table = Table("Branch", "Status", "Pushed")
    for result in report.branches:
        if result.skipped:
            table.add_row(result.branch, "no remote branch", "-")
        else:
            table.add_row(result.branch, result.status.name, "yes" if result.pushed else "no")
    console.print(table)
    console.print(f"[bold green]Synced with {report.remote}.[/bold green] Back on '{report.restored_branch}'.")


@app.command()
def publish(
    ctx: typer.Context,
    force: bool = typer.Option(
        False, "--force", help="Overwrite the remote branch, discarding commits only it has."
    ),
):
    """Create or update the remote copy of the current branch."""
    try:
        with open_session(ctx) as session:
            status = publish_current_branch(session, force=force)
    except BranchflowError as e:
        fail(e)
    messages = {
        "CREATED": "Remote branch created.",
        "OVERWRITTEN": "Remote branch overwritten.",
        "UPDATED": "Remote branch updated.",
        "NO_ACTION": "Remote branch already up to date.",
    }
    console.print(f"[bold green]{messages[status.name]}[/bold green]")


@app.command()
def merge(
    ctx: typer.Context,
    source: str = typer.Argument(..., help="Branch to merge from."),
    target: str = typer.Argument(..., help="Branch to merge into."),
    stay: bool = typer.Option(False, "--stay", help="Stay on TARGET afterwards."),
):
    """Merge local branch SOURCE into local branch TARGET."""
    mode = RestoreMode.LEAVE_CHECKED_OUT if stay else RestoreMode.RESTORE_CHECKOUT
    try:
        with open_session(ctx) as session:
            status = merge_local(session, source, target, mode)
    except BranchflowError as e:
        fail(e)
    console.print(f"[bold green]{target}[/bold green]: {status.name}")


@app.command()
def resolve(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Short branch name."),
    kind: str = typer.Option("feature", "--kind", help="feature, release or hotfix."),
):
    """Expand a short topic branch name to the full branch name."""
    state: _State = ctx.obj
    try:
        prefix = state.config.prefix_for(kind)
        print(prefix + resolve_prefix(state.repo_path, name, prefix))
    except BranchflowError as e:
        fail(e)


@app.command()
def start(
    ctx: typer.Context,
    kind: str = typer.Argument(..., help="feature, release or hotfix."),
    name: str = typer.Argument(..., help="Name of the new branch, without prefix."),
):
    """Start a new topic branch."""
    try:
        with open_session(ctx) as session:
            branch = start_branch(session, kind, name)
    except BranchflowError as e:
        fail(e)
    console.print(f"Switched to new branch [bold cyan]{branch}[/bold cyan]")


@app.command()
def finish(
    ctx: typer.Context,
    kind: str = typer.Argument(..., help="feature, release or hotfix."),
    name: str = typer.Argument(..., help="Name or unique prefix of the branch."),
):
    """Merge a topic branch into its targets and delete it."""
    try:
        with open_session(ctx) as session:
            branch, targets = finish_branch(session, kind, name)
    except BranchflowError as e:
        fail(e)
    console.print(f"[bold green]Finished {branch}[/bold green], merged into {', '.join(targets)}.")


@app.command()
def login(
    ctx: typer.Context,
    username: str = typer.Option(..., "--username", "-u"),
    password: str = typer.Option(..., "--password", "-p", envvar="BRANCHFLOW_PASSWORD"),
):
    """Obtain and store a hosting API token."""
    state: _State = ctx.obj
    try:
        HostingClient(state.config.hosting).authenticate(username, password)
    except BranchflowError as e:
        fail(e)
    console.print("[bold green]Logged in.[/bold green]")


@app.command("pull-request")
def pull_request(
    ctx: typer.Context,
    base: Optional[str] = typer.Option(None, "--base", help="Branch to merge into. Defaults to develop."),
    title: Optional[str] = typer.Option(None, "--title"),
    body: str = typer.Option("", "--body"),
):
    """Open a pull request for the current branch on the hosting service."""
    state: _State = ctx.obj
    repository = state.config.hosting.repository
    if not repository:
        fail(ConfigError("Set 'hosting.repository' (owner/name) to open pull requests."))

    try:
        head = git_current_branch(state.repo_path)
        if head is None:
            raise DetachedHeadError("HEAD is detached. Check out the branch to open a pull request for.")
        payload = {
            "head": head,
            "base": base or state.config.branches.develop,
            "title": title or head,
            "body": body,
        }
        response = HostingClient(state.config.hosting).post(f"repos/{repository}/pulls", payload)
    except BranchflowError as e:
        fail(e)

    if not response.ok:
        console.print(f"[bold red]Hosting API returned HTTP {response.status_code}:[/bold red] {response.text}")
        raise typer.Exit(code=5)
    try:
        created = response.json()
    except ValueError as e:
        fail(RemoteError(f"Hosting API reply is not JSON: {e}"))
    url = created.get("html_url", "") if isinstance(created, dict) else ""
    console.print(f"Pull request opened: {url}")


if __name__ == "__main__":
    app()
