# src/dotinstall/cli/deps_cli.py
"""
CLI commands for listing dependencies through upstream/downstream links.
"""
from pathlib import Path
from typing import List, Optional

import typer

from dotinstall.cli import get_config
from dotinstall.deps.graph import LinkGraph
from dotinstall.deps.schemas import WalkOrder
from dotinstall.deps.walker import DependencyWalker

deps_app = typer.Typer(help="Commands to walk and order package dependencies.")


@deps_app.command("walk")
def walk_cmd(
    ctx: typer.Context,
    package: Optional[str] = typer.Argument(
        None, help="Package to start from (default: the whole install root)"
    ),
    base: Optional[Path] = typer.Option(
        None, "--base", "-b", help="Start directory, relative to the install root"
    ),
    recurse: Optional[str] = typer.Option(
        None, "--recurse", help="Directory name to collect entries from (default: upstream)"
    ),
    prune: Optional[str] = typer.Option(
        None, "--prune", help="Directory name never to descend into (default: downstream)"
    ),
    shallow: bool = typer.Option(
        False, "--shallow/--deep", "-d/-D",
        help="List nearest packages first instead of most distant first"
    ),
    depths: bool = typer.Option(False, "--depths", help="Prefix each name with its depth"),
):
    """
    List the packages reachable through link directories, ordered by depth.
    """
    config = get_config(ctx)
    order = WalkOrder.SHALLOW_FIRST if shallow else WalkOrder.DEEP_FIRST
    walker = DependencyWalker.from_settings(
        config, recurse_dir=recurse, prune_dir=prune, order=order
    )

    start = config.root
    if base is not None:
        start = start / base
    if package is not None:
        start = start / package

    result = walker.walk(start)
    for cycle in result.cycles:
        typer.echo(f"Warning: link loop cut at {cycle}", err=True)
    for entry in result.entries:
        typer.echo(f"{entry.depth} {entry.name}" if depths else entry.name)

    if result.errors:
        for error in result.errors:
            typer.echo(f"Error: {error}", err=True)
        raise typer.Exit(code=1)


@deps_app.command("order")
def order_cmd(
    ctx: typer.Context,
    packages: List[str] = typer.Argument(
        None, help="Packages to order with their dependencies (default: all)"
    ),
):
    """
    Print an install order in which every dependency precedes its dependents.
    """
    config = get_config(ctx)
    if not config.root.is_dir():
        typer.echo(f"Error: Could not find directory '{config.root}'", err=True)
        raise typer.Exit(code=1)

    graph = LinkGraph.scan(config.root, config.upstream_dirname, config.downstream_dirname)
    result = graph.install_order(packages or None)
    for cycle in result.cycles:
        typer.echo(f"Warning: dependency cycle: {' -> '.join(cycle)}", err=True)
    for package in result.order:
        typer.echo(package)
