# src/dotinstall/cli/pkg_cli.py
"""
CLI commands to create packages and inspect their metadata.
"""
from typing import List

import typer
from rich.console import Console
from rich.table import Table

from dotinstall.cli import get_config
from dotinstall.core.exceptions import DotinstallError
from dotinstall.deps.graph import LinkGraph
from dotinstall.deps.packages import PackageEditor

pkg_app = typer.Typer(help="Commands to create and inspect packages.")
console = Console()


@pkg_app.command("add")
def add_package_cmd(
    ctx: typer.Context,
    package: str = typer.Argument(..., help="Package ID"),
    tags: List[str] = typer.Option(None, "--tag", "-t", help="Tag (repeatable)"),
    upstream: List[str] = typer.Option(
        None, "--dep", "-d", help="Upstream dependency, installed first (repeatable)"
    ),
    downstream: List[str] = typer.Option(
        None, "--child", "-D", help="Downstream package, installed after (repeatable)"
    ),
    comments: List[str] = typer.Option(None, "--comment", "-c", help="Comment (repeatable)"),
):
    """
    Create or update a package directory with tags, comments and links.
    """
    editor = PackageEditor.from_settings(get_config(ctx))
    try:
        pkg_dir = editor.add(
            package,
            tags=tags or [],
            upstream=upstream or [],
            downstream=downstream or [],
            comments=comments or [],
        )
    except (ValueError, DotinstallError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"Updated package {package} at {pkg_dir}")


@pkg_app.command("show")
def show_package_cmd(
    ctx: typer.Context,
    package: str = typer.Argument(..., help="Package ID"),
):
    """
    Show a package's tags, links and comments.
    """
    config = get_config(ctx)
    editor = PackageEditor.from_settings(config)
    try:
        pkg_dir = editor.store.package_dir(package)
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)
    if not pkg_dir.is_dir():
        typer.echo(f"Package '{package}' not found.", err=True)
        raise typer.Exit(code=1)

    graph = LinkGraph.scan(config.root, config.upstream_dirname, config.downstream_dirname)

    table = Table(title=f"Package: {package}")
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Path", str(pkg_dir))
    table.add_row("Tags", ", ".join(editor.store.package_tags(package)))
    table.add_row("Upstream", ", ".join(graph.dependencies(package)))
    table.add_row("Downstream", ", ".join(graph.dependents(package)))
    console.print(table)

    comments = editor.comments(package)
    if comments:
        console.print("Comments:")
        for comment in comments:
            console.print(f"  {comment}")
