"""Access to text assets such as query templates and example configuration files."""

from __future__ import annotations

from itertools import dropwhile
from os import PathLike
from pathlib import Path
from typing import Union

StrPath = Union[str, "PathLike[str]"]


def strip_header(content: str) -> str:
    """Drop the leading run of lines that start with ``#`` and keep the rest verbatim."""
    lines = content.split("\n")
    body = dropwhile(lambda line: line.startswith("#"), lines)
    return "\n".join(body)


def read_asset(filename: StrPath, root: StrPath) -> str:
    """Read ``filename`` below the ``root`` directory with its comment header removed.

    Raises ``FileNotFoundError`` (or another ``OSError``) when the asset cannot be read.
    """
    path = Path(root) / filename
    return strip_header(path.read_text(encoding="utf-8"))


def example_text(content: str) -> str:
    """Render a configuration file as an indented example for help output.

    Every line starting with ``#`` is left out, wherever it appears.
    """
    body = "".join(
        f"  {line}\n" for line in content.split("\n") if not line.startswith("#")
    )
    return "\n  Example of the file content:\n" + body