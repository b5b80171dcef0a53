"""
CLI command for harvesting package names from install scripts.
"""
from pathlib import Path
from typing import Optional

import typer

from dotinstall.core.settings import DEFAULT_HARVEST_COMMAND
from dotinstall.harvest.harvester import harvest_file


def harvest_cmd(
    script: Path = typer.Argument(..., help="Script or history file to scan"),
    command: str = typer.Option(
        DEFAULT_HARVEST_COMMAND, "--command", "-m",
        help="Pattern selecting install lines, e.g. 'dnf' or 'apt'"
    ),
    outfile: Optional[Path] = typer.Option(
        None, "--outfile", "-o", help="Also append the names to this file"
    ),
    unique: bool = typer.Option(False, "--unique", "-u", help="Drop repeated names"),
):
    """
    Print package names from lines like 'sudo dnf install foo bar', one per line.
    """
    if not script.exists():
        typer.echo(f"Error: Script {script} does not exist", err=True)
        raise typer.Exit(1)
    try:
        packages = harvest_file(script, command=command, unique=unique, outfile=outfile)
    except (ValueError, OSError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    for name in packages:
        typer.echo(name)
