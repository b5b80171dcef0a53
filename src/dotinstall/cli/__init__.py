"""
Initialize the CLI package. Contains shared CLI utilities and configuration.
"""

import logging
from pathlib import Path
from typing import Optional

import typer

from dotinstall.core.config import Settings, settings

LOG_FORMAT = "%(levelname)s %(name)s - %(message)s"
FILE_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"


def configure_logging(log_level: str, log_file: Optional[Path] = None) -> None:
    """
    Log to stderr at the given level, and append everything at INFO and
    above to log_file when one is given.
    """
    numeric_level = getattr(logging, log_level.upper(), None)
    if not isinstance(numeric_level, int):
        raise typer.BadParameter(f"Invalid log level: {log_level}")

    console_handler = logging.StreamHandler()
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handlers = [console_handler]

    if log_file is not None:
        try:
            file_handler = logging.FileHandler(log_file, encoding="utf-8")
        except OSError as e:
            typer.echo(f"Error: Cannot write logfile '{log_file}': {e}", err=True)
            raise typer.Exit(code=1)
        file_handler.setLevel(logging.INFO)
        file_handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT))
        handlers.append(file_handler)

    logging.basicConfig(
        level=min(numeric_level, logging.INFO) if log_file else numeric_level,
        handlers=handlers,
        force=True,
    )


def get_config(ctx: typer.Context) -> Settings:
    """Settings for this invocation, as set up by the main callback."""
    if ctx.obj and "settings" in ctx.obj:
        return ctx.obj["settings"]
    return settings
