"""Exceptions raised by the file-walking and line-reading stages.

Per-line parse problems are not exceptions: the parser returns them as
``LineParseFailure`` values.
"""
from __future__ import annotations

from pathlib import Path


class ElbLogsError(Exception):
    """Base exception for elblogs run and file failures."""


class EnumerationError(ElbLogsError):
    """Directory traversal failed. Fatal to the run.

    Attributes:
        path: The path whose traversal failed (may be None if unknown).
    """

    def __init__(self, message: str, path: str | Path | None = None) -> None:
        self.path = path
        self.message = message
        super().__init__(f"{message} ({path})" if path is not None else message)


class LineReadError(ElbLogsError):
    """Reading a line from a log file failed. Ends that file only.

    Attributes:
        path:        File being read (None when reading an anonymous stream).
        line_number: 1-based number of the line that could not be read.
    """

    def __init__(
        self,
        message: str,
        path: str | Path | None = None,
        line_number: int | None = None,
    ) -> None:
        self.path = path
        self.line_number = line_number
        self.message = message
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        where = []
        if self.path is not None:
            where.append(str(self.path))
        if self.line_number is not None:
            where.append(f"line {self.line_number}")
        if where:
            return f"{self.message} ({', '.join(where)})"
        return self.message
