"""Driver: enumerate files, read lines, parse, and tally outcomes.

Usage::

    from elblogs.pipeline import scan

    result = scan("/var/log/elb")
    print(result.summary.records, result.summary.failures)
"""
from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Iterator

from .config import Settings, settings as default_settings
from .errors import LineReadError
from .files import open_log, read_lines, walk_files
from .parsers.base import LineParser
from .parsers.elb import ElbLineParser, LineParseFailure, LogRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParsedLine:
    """One parse outcome together with where the line came from."""

    path: Path
    line_number: int
    outcome: LogRecord | LineParseFailure


@dataclass
class ScanSummary:
    """Counters for one run. Successes and failures are tallied separately.

    Attributes:
        files_seen:    Non-directory entries handed to the reader.
        files_parsed:  Files opened and read (fully or up to a read error).
        files_skipped: Files that could not be opened.
        read_errors:   Files whose reading stopped early on a read error.
        records:       Lines that parsed into a LogRecord.
        failures:      Lines that produced a LineParseFailure.
        error_fields:  How often each field tag appeared in failures.
    """

    files_seen: int = 0
    files_parsed: int = 0
    files_skipped: int = 0
    read_errors: int = 0
    records: int = 0
    failures: int = 0
    error_fields: Counter[str] = field(default_factory=Counter)

    def add(self, outcome: LogRecord | LineParseFailure) -> None:
        if isinstance(outcome, LineParseFailure):
            self.failures += 1
            self.error_fields.update(outcome.field_names)
        else:
            self.records += 1

    @property
    def lines(self) -> int:
        return self.records + self.failures


@dataclass
class ScanResult:
    """In-memory output of :func:`scan`."""

    records: list[LogRecord] = field(default_factory=list)
    failures: list[LineParseFailure] = field(default_factory=list)
    summary: ScanSummary = field(default_factory=ScanSummary)


def process_files(
    paths: Iterable[Path],
    parser: LineParser | None = None,
    settings: Settings | None = None,
    summary: ScanSummary | None = None,
) -> Iterator[ParsedLine]:
    """Parse every line of every readable file in *paths*, in order.

    Directories are skipped. Files that cannot be opened are logged and
    skipped; a read error ends the current file only. When *summary* is
    given it is updated as lines are produced.
    """
    cfg = settings or default_settings
    if parser is None:
        parser = ElbLineParser(quoted_request=cfg.quoted_request)

    for path in paths:
        if path.is_dir():
            continue
        if summary is not None:
            summary.files_seen += 1
        if cfg.debug:
            logger.debug("Processing file %s.", path)

        try:
            stream = open_log(path)
        except OSError as exc:
            logger.error("Cannot open %s: %s", path, exc)
            if summary is not None:
                summary.files_skipped += 1
            continue

        found = 0
        with stream:
            try:
                for line_number, line in enumerate(read_lines(stream, path, cfg.encoding), start=1):
                    outcome = parser.parse_line(line)
                    if isinstance(outcome, LogRecord):
                        found += 1
                    elif cfg.debug:
                        logger.debug("%s:%d: %s", path, line_number, outcome)
                    if summary is not None:
                        summary.add(outcome)
                    yield ParsedLine(path, line_number, outcome)
            except LineReadError as exc:
                logger.warning("Stopped reading %s: %s", path, exc)
                if summary is not None:
                    summary.read_errors += 1

        if summary is not None:
            summary.files_parsed += 1
        if cfg.debug:
            logger.debug("Found %d records in file %s.", found, path)


def scan(
    root: str | Path,
    parser: LineParser | None = None,
    settings: Settings | None = None,
) -> ScanResult:
    """Walk *root* and parse every file below it into memory.

    Raises:
        EnumerationError: if the directory walk fails.
    """
    result = ScanResult()
    lines = process_files(walk_files(root), parser=parser, settings=settings, summary=result.summary)
    for parsed in lines:
        if isinstance(parsed.outcome, LogRecord):
            result.records.append(parsed.outcome)
        else:
            result.failures.append(parsed.outcome)
    return result
