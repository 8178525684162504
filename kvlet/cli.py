"""Command-line interface for kvlet."""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

import click
from rich.console import Console
from rich.markup import escape

from .config import Settings
from .errors import KvletError
from .objects import Commit
from .repository import (
    CheckoutBranch,
    CheckoutCommitFile,
    CheckoutFile,
    CheckoutRequest,
    Repository,
)
from .store import open_repository

console = Console(highlight=False, soft_wrap=True)


@contextmanager
def _reporting_errors() -> Iterator[None]:
    """Print a kvlet error as one line and exit with status 1."""
    try:
        yield
    except KvletError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise SystemExit(1) from e


def _repo(ctx: click.Context, *, create: bool = False) -> Repository:
    with _reporting_errors():
        repo = open_repository(
            ctx.obj["path"], create=create, settings=ctx.obj["settings"]
        )
    ctx.call_on_close(repo.objects.kv.close)
    return repo


def _print_commit(commit: Commit) -> None:
    console.print("===")
    console.print(f"commit {commit.digest}", markup=False)
    if commit.is_merge:
        first, second = commit.parents[:2]
        console.print(f"Merge: {first[:7]} {second[:7]}", markup=False)
    console.print(f"Date: {commit.date}", markup=False)
    console.print(commit.message, markup=False)
    console.print()


def _section(title: str, lines: list[str]) -> None:
    console.print(f"=== {title} ===", markup=False)
    for line in lines:
        console.print(line, markup=False)
    console.print()


class _RawOperands(click.Command):
    """Command that keeps its raw operands, including a ``--`` separator."""

    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        ctx.meta["operands"] = list(args)
        return super().parse_args(ctx, args)


def parse_checkout(operands: list[str]) -> CheckoutRequest:
    """Turn ``checkout`` operands into a checkout request.

    Accepted forms: ``-- FILE``, ``COMMIT -- FILE`` and ``BRANCH``.
    """
    if len(operands) == 2 and operands[0] == "--":
        return CheckoutFile(operands[1])
    if len(operands) == 3 and operands[1] == "--":
        return CheckoutCommitFile(operands[0], operands[2])
    if len(operands) == 1 and operands[0] != "--":
        return CheckoutBranch(operands[0])
    raise click.UsageError("Incorrect operands.")


@click.group()
@click.option(
    "-C",
    "--path",
    type=click.Path(file_okay=False, path_type=Path),
    default=".",
    help="Working-tree directory (default: current directory).",
)
@click.pass_context
def main(ctx: click.Context, path: Path) -> None:
    """kvlet - a small local version-control system."""
    settings = Settings.from_env()
    logging.basicConfig(
        level=settings.log_level, format="%(levelname)s %(name)s: %(message)s"
    )
    ctx.ensure_object(dict)
    ctx.obj["path"] = path
    ctx.obj["settings"] = settings


@main.command()
@click.pass_context
def init(ctx: click.Context) -> None:
    """Create a repository in the working directory."""
    _repo(ctx, create=True)


@main.command()
@click.argument("file")
@click.pass_context
def add(ctx: click.Context, file: str) -> None:
    """Stage a file for the next commit."""
    repo = _repo(ctx)
    with _reporting_errors():
        repo.add(file)


@main.command()
@click.argument("message")
@click.pass_context
def commit(ctx: click.Context, message: str) -> None:
    """Commit staged changes."""
    repo = _repo(ctx)
    with _reporting_errors():
        repo.commit(message)


@main.command()
@click.argument("file")
@click.pass_context
def rm(ctx: click.Context, file: str) -> None:
    """Unstage a file, or untrack and delete it."""
    repo = _repo(ctx)
    with _reporting_errors():
        repo.rm(file)


@main.command()
@click.pass_context
def log(ctx: click.Context) -> None:
    """Show the history of the current branch."""
    repo = _repo(ctx)
    with _reporting_errors():
        for c in repo.log():
            _print_commit(c)


@main.command("global-log")
@click.pass_context
def global_log(ctx: click.Context) -> None:
    """Show every commit ever made."""
    repo = _repo(ctx)
    with _reporting_errors():
        for c in repo.global_log():
            _print_commit(c)


@main.command()
@click.argument("message")
@click.pass_context
def find(ctx: click.Context, message: str) -> None:
    """Print the ids of all commits with the given message."""
    repo = _repo(ctx)
    with _reporting_errors():
        for commit_id in repo.find(message):
            console.print(commit_id, markup=False)


@main.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show branches, staged and removed files, and working-tree changes."""
    repo = _repo(ctx)
    with _reporting_errors():
        st = repo.status()
    _section("Branches", [("*" + b) if b == st.head else b for b in st.branches])
    _section("Staged Files", list(st.staged))
    _section("Removed Files", list(st.removed))
    _section(
        "Modifications Not Staged For Commit",
        [f"{name} ({kind})" for name, kind in st.modified],
    )
    _section("Untracked Files", list(st.untracked))


@main.command(
    cls=_RawOperands,
    context_settings={"ignore_unknown_options": True},
)
@click.argument("operands", nargs=-1, type=click.UNPROCESSED)
@click.pass_context
def checkout(ctx: click.Context, operands: tuple[str, ...]) -> None:
    """Restore a file (-- FILE, COMMIT -- FILE) or switch to BRANCH."""
    request = parse_checkout(ctx.meta["operands"])
    repo = _repo(ctx)
    with _reporting_errors():
        repo.checkout(request)


@main.command()
@click.argument("name")
@click.pass_context
def branch(ctx: click.Context, name: str) -> None:
    """Create a branch at the current commit."""
    repo = _repo(ctx)
    with _reporting_errors():
        repo.branch(name)


@main.command("rm-branch")
@click.argument("name")
@click.pass_context
def rm_branch(ctx: click.Context, name: str) -> None:
    """Delete a branch pointer."""
    repo = _repo(ctx)
    with _reporting_errors():
        repo.delete_branch(name)


@main.command()
@click.argument("commit_id")
@click.pass_context
def reset(ctx: click.Context, commit_id: str) -> None:
    """Check out all files of a commit and move the current branch to it."""
    repo = _repo(ctx)
    with _reporting_errors():
        repo.reset(commit_id)


@main.command()
@click.argument("name")
@click.pass_context
def merge(ctx: click.Context, name: str) -> None:
    """Merge a branch into the current branch."""
    repo = _repo(ctx)
    with _reporting_errors():
        result = repo.merge(name)
    if result.strategy == "up_to_date":
        console.print("Given branch is an ancestor of the current branch.")
    elif result.strategy == "fast_forward":
        console.print("Current branch fast-forwarded.")
    elif result.conflicts:
        console.print("Encountered a merge conflict.")


if __name__ == "__main__":
    main()
