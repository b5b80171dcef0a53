# dotinstall/harvest/harvester.py
"""
Collects package names from lines of the form ``<command> install <packages>``.

Options are not parsed: package managers' history logs don't reliably quote
option arguments (``--foo=a long value``), so the first option-looking field
ends the line.
"""

import logging
import re
from pathlib import Path
from typing import Iterable, List, Optional, Union

from dotinstall.core.settings import DEFAULT_HARVEST_COMMAND, HARVEST_IGNORED_WORDS

logger = logging.getLogger(__name__)

# A field matching any of these ends processing of its line
STOP_PATTERNS = [re.compile(p) for p in (r"^-", r"=", r"^#")]


def harvest_line(line: str, command: str = DEFAULT_HARVEST_COMMAND) -> List[str]:
    """
    Extract package names from a single line.

    Args:
        line: A line of a script or history file
        command: Regular expression a line must contain to be considered;
            fields equal to it are dropped as well

    Returns:
        Package names in order of appearance
    """
    if not re.search(command, line):
        return []
    ignored = set(HARVEST_IGNORED_WORDS) | {command}
    names = []
    for field in line.split():
        if any(p.search(field) for p in STOP_PATTERNS):
            break
        if field in ignored:
            continue
        names.append(field)
    return names


def harvest_packages(
    lines: Iterable[str],
    command: str = DEFAULT_HARVEST_COMMAND,
    unique: bool = False,
) -> List[str]:
    """
    Extract package names from every matching line.

    Args:
        lines: Script or history lines
        command: Regular expression selecting install lines
        unique: Drop names already seen on earlier lines

    Returns:
        Package names in order of appearance
    """
    try:
        re.compile(command)
    except re.error as e:
        raise ValueError(f"Invalid command pattern {command!r}: {e}") from e

    packages: List[str] = []
    seen = set()
    for line in lines:
        for name in harvest_line(line, command):
            if unique and name in seen:
                continue
            seen.add(name)
            packages.append(name)
    return packages


def harvest_file(
    path: Union[str, Path],
    command: str = DEFAULT_HARVEST_COMMAND,
    unique: bool = False,
    outfile: Optional[Union[str, Path]] = None,
) -> List[str]:
    """
    Harvest a script file, optionally appending the names to outfile.
    """
    path = Path(path)
    with path.open("r", encoding="utf-8", errors="replace") as f:
        packages = harvest_packages(f, command=command, unique=unique)
    logger.info(f"Harvested {len(packages)} package names from {path}")

    if outfile is not None:
        with Path(outfile).open("a", encoding="utf-8") as out:
            for name in packages:
                out.write(f"{name}\n")
    return packages
