"""
CLI commands for querying and editing tags.

Queries print one package ID per line so they can be piped into other
tools; the other commands render rich tables.
"""

from typing import List

import typer
from rich.console import Console
from rich.table import Table

from dotinstall.cli import get_config
from dotinstall.core.exceptions import (
    DotinstallError,
    InstallRootNotFoundError,
    MalformedOperandError,
)
from dotinstall.tags.query import QueryEvaluator
from dotinstall.tags.store import TagStore

tags_app = typer.Typer(help="Commands to query and edit package tags.")
console = Console()


def _store(ctx: typer.Context) -> TagStore:
    return TagStore.from_settings(get_config(ctx))


def _existing_store(ctx: typer.Context) -> TagStore:
    """Store for read-only commands; exits when the install root is missing."""
    store = _store(ctx)
    try:
        store.require_root()
    except InstallRootNotFoundError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)
    return store


@tags_app.command(
    "query",
    # -a/-o style operators must reach the tokens argument untouched
    context_settings={"ignore_unknown_options": True},
)
def query_cmd(
    ctx: typer.Context,
    tokens: List[str] = typer.Argument(
        None,
        help="Tags, optionally signed (&tag, |tag) or preceded by -a/--and or -o/--or",
    ),
    save: bool = typer.Option(
        True, "--save/--no-save", help="Store the result in .tags/.query"
    ),
):
    """
    List packages matching a tag query, evaluated left to right from all tagged packages.
    """
    evaluator = QueryEvaluator(_store(ctx))
    try:
        result = evaluator.run(tokens or [], save=save)
    except MalformedOperandError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=2)
    except (DotinstallError, OSError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    for warning in result.warnings:
        typer.echo(f"Warning: {warning}", err=True)
    for member in result.members:
        typer.echo(member)


@tags_app.command("list")
def list_tags_cmd(ctx: typer.Context):
    """
    List all tags with their member counts.
    """
    store = _existing_store(ctx)
    tags = store.list_tags()
    if not tags:
        typer.echo("No tags found.")
        return

    table = Table(title=f"Tags in {store.tag_dir}")
    table.add_column("Tag", style="cyan")
    table.add_column("Packages", style="magenta", justify="right")
    for tag in tags:
        try:
            count = str(len(store.members(tag)))
        except OSError:
            count = "unreadable"
        table.add_row(tag, count)
    console.print(table)


@tags_app.command("show")
def show_tag_cmd(
    ctx: typer.Context,
    tag: str = typer.Argument(..., help="Tag to show"),
):
    """
    Print the members of one tag, one per line.
    """
    store = _existing_store(ctx)
    try:
        members = store.members(tag)
    except (ValueError, OSError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)
    for member in members:
        typer.echo(member)


@tags_app.command("add")
def add_tag_cmd(
    ctx: typer.Context,
    tag: str = typer.Argument(..., help="Tag to add packages to"),
    packages: List[str] = typer.Argument(..., help="Package IDs"),
):
    """
    Tag packages, updating both the tag file and each package's .tags file.
    """
    store = _store(ctx)
    try:
        for package in packages:
            store.tag_package(package, [tag])
    except (ValueError, DotinstallError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"Tagged {len(packages)} package(s) with '{tag}'")


@tags_app.command("remove")
def remove_tag_cmd(
    ctx: typer.Context,
    tag: str = typer.Argument(..., help="Tag to remove packages from"),
    packages: List[str] = typer.Argument(..., help="Package IDs"),
):
    """
    Untag packages. The tag file itself is kept, even when it becomes empty.
    """
    store = _store(ctx)
    try:
        for package in packages:
            store.untag_package(package, [tag])
    except (ValueError, DotinstallError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"Removed '{tag}' from {len(packages)} package(s)")


@tags_app.command("check")
def check_cmd(ctx: typer.Context):
    """
    Check tag files and per-package tag files for consistency.
    """
    report = _existing_store(ctx).check()
    if report.ok:
        typer.echo(
            f"OK: {report.tags_checked} tags, {report.packages_checked} tagged packages"
        )
        return

    table = Table(title=f"{len(report.issues)} issue(s)")
    table.add_column("Kind", style="red")
    table.add_column("Tag", style="cyan")
    table.add_column("Package", style="green")
    table.add_column("Detail")
    for issue in report.issues:
        table.add_row(issue.kind.value, issue.tag or "", issue.package or "", issue.detail or "")
    console.print(table)
    raise typer.Exit(code=1)
