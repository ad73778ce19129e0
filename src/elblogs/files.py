"""Directory walking and lazy line reading for log trees."""
from __future__ import annotations

import os
from pathlib import Path
from typing import BinaryIO, Iterator

from .errors import EnumerationError, LineReadError


def walk_files(root: str | Path) -> Iterator[Path]:
    """Yield every entry below *root* (depth >= 1), directories included.

    Traversal is top-down and each directory's entries are yielded in
    sorted order, so the sequence is stable for a given tree. Symlinked
    directories are yielded but not descended into.

    Raises:
        EnumerationError: on the first traversal error, including a
            missing or unreadable root. Entries already yielded stay valid.
    """
    root = Path(root)

    def _fail(err: OSError) -> None:
        raise EnumerationError(
            f"Cannot traverse directory: {err.strerror or err}",
            path=err.filename if err.filename is not None else root,
        ) from err

    for dirpath, dirnames, filenames in os.walk(root, onerror=_fail):
        dirnames.sort()
        base = Path(dirpath)
        for name in sorted(dirnames + filenames):
            yield base / name


def open_log(path: Path) -> BinaryIO:
    """Open a log file for line reading. ``OSError`` propagates to the caller.

    The file is opened in binary mode; :func:`read_lines` decodes one line
    at a time so a bad byte only affects the line that holds it.
    """
    return path.open("rb")


def read_lines(
    stream: BinaryIO,
    path: str | Path | None = None,
    encoding: str = "utf-8",
) -> Iterator[str]:
    """Lazily yield decoded lines from *stream* with the terminator removed.

    Only ``\\n`` ends a line; a ``\\r`` right before it is dropped too.
    Blank lines are yielded as empty strings.

    Raises:
        LineReadError: when a line cannot be read or decoded. The sequence
            ends there; lines yielded before stay valid.
    """
    line_number = 0
    while True:
        line_number += 1
        try:
            raw = stream.readline()
        except OSError as exc:
            raise LineReadError(f"Cannot read line: {exc}", path=path, line_number=line_number) from exc
        if not raw:
            return
        if raw.endswith(b"\n"):
            raw = raw[:-1]
            if raw.endswith(b"\r"):
                raw = raw[:-1]
        try:
            line = raw.decode(encoding)
        except UnicodeDecodeError as exc:
            raise LineReadError(f"Cannot decode line: {exc}", path=path, line_number=line_number) from exc
        yield line
