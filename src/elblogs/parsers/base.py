"""Line parser Protocol consumed by the pipeline driver."""
from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, Union, runtime_checkable

if TYPE_CHECKING:
    from .elb import LineParseFailure, LogRecord

ParseOutcome = Union["LogRecord", "LineParseFailure"]


@runtime_checkable
class LineParser(Protocol):
    """Protocol for line parsers: duck-typed, no inheritance required."""

    def parse_line(self, line: str) -> ParseOutcome:
        """Parse one raw line into a record or a failure. Must never raise."""
        ...

    @property
    def name(self) -> str:
        """Human-readable parser name (e.g. 'elb')."""
        ...
