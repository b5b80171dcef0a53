"""
Top-level CLI that aggregates sub-apps from tag_cli, deps_cli, etc.
"""

from pathlib import Path
from typing import Optional

import typer

from dotinstall.cli import configure_logging
from dotinstall.cli.deps_cli import deps_app
from dotinstall.cli.harvest_cli import harvest_cmd
from dotinstall.cli.pkg_cli import pkg_app
from dotinstall.cli.tag_cli import tags_app
from dotinstall.core.config import settings

main_app = typer.Typer(help="dotinstall CLI", no_args_is_help=True)

# Add subcommands as Typer sub-apps:
main_app.add_typer(tags_app, name="tags")
main_app.add_typer(deps_app, name="deps")
main_app.add_typer(pkg_app, name="pkg")
main_app.command("harvest")(harvest_cmd)


@main_app.callback()
def main_callback(
    ctx: typer.Context,
    root: Optional[Path] = typer.Option(
        None, "--root", "-r",
        help="Install root (default: $DOTINSTALL_INSTALL_ROOT or ~/.install)"
    ),
    log_level: str = typer.Option(
        "WARNING", "--log-level", "-l", help="Logging level"
    ),
):
    """
    Track installed packages with tags and upstream/downstream links.
    """
    config = settings
    if root is not None:
        config = settings.model_copy(update={"install_root": root})
    ctx.obj = {"settings": config}

    # The install root's .log collects a record of every run that can reach it
    log_file = config.log_file if config.root.is_dir() else None
    configure_logging(log_level, log_file)


def main():
    main_app()


if __name__ == "__main__":
    main()
