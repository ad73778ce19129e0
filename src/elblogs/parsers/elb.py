"""Classic ELB access-log line parser.

Wire format (space separated, one request per line)::

    timestamp elb client:port backend:port request_processing_time
    backend_processing_time response_processing_time elb_status_code
    backend_status_code received_bytes sent_bytes "METHOD URL VERSION" ...

A line either parses into a :class:`LogRecord` or into a
:class:`LineParseFailure` listing *every* malformed field, in positional
order. Parsing never raises, and nothing is kept between calls.

Two tokenizers are available:

* ``split`` (default): split on the ASCII space character. The request
  group arrives as three tokens, so URLs containing spaces cannot be
  represented. This mirrors the output historically produced for the
  corpus.
* ``quoted``: a ``"``-enclosed group is one token and is split into
  method (first word), URL (middle) and version (last word), so the URL
  may contain spaces. Runs of spaces between tokens collapse.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable

from .fields import (
    Endpoint,
    format_timestamp,
    parse_endpoint,
    parse_float32,
    parse_timestamp,
    parse_u16,
    parse_u64,
)

TIMESTAMP = "timestamp"
ELB_NAME = "elb name"
CLIENT_ADDRESS = "client address"
BACKEND_ADDRESS = "backend address"
REQUEST_PROCESSING_TIME = "request processing time"
BACKEND_PROCESSING_TIME = "backend processing time"
RESPONSE_PROCESSING_TIME = "response processing time"
ELB_STATUS_CODE = "ELB status code"
BACKEND_STATUS_CODE = "backend status code"
RECEIVED_BYTES = "received bytes"
SENT_BYTES = "sent bytes"

# Every tag a FieldError can carry, in positional order. ELB_NAME is
# reserved: the name is passed through and never fails.
FIELD_TAGS: tuple[str, ...] = (
    TIMESTAMP,
    ELB_NAME,
    CLIENT_ADDRESS,
    BACKEND_ADDRESS,
    REQUEST_PROCESSING_TIME,
    BACKEND_PROCESSING_TIME,
    RESPONSE_PROCESSING_TIME,
    ELB_STATUS_CODE,
    BACKEND_STATUS_CODE,
    RECEIVED_BYTES,
    SENT_BYTES,
)

METHOD_POS = 11
URL_POS = 12
VERSION_POS = 13


@dataclass(frozen=True)
class LogRecord:
    """One successfully parsed access-log line."""

    timestamp: datetime
    elb_name: str
    client_address: Endpoint
    backend_address: Endpoint
    request_processing_time: float
    backend_processing_time: float
    response_processing_time: float
    elb_status_code: int
    backend_status_code: int
    received_bytes: int
    sent_bytes: int
    request_method: str
    request_url: str
    request_http_version: str

    def to_dict(self) -> dict[str, Any]:
        """Flatten into a JSON-friendly dict (timestamp and endpoints as text)."""
        return {
            "timestamp": format_timestamp(self.timestamp),
            "elb_name": self.elb_name,
            "client_address": str(self.client_address),
            "backend_address": str(self.backend_address),
            "request_processing_time": self.request_processing_time,
            "backend_processing_time": self.backend_processing_time,
            "response_processing_time": self.response_processing_time,
            "elb_status_code": self.elb_status_code,
            "backend_status_code": self.backend_status_code,
            "received_bytes": self.received_bytes,
            "sent_bytes": self.sent_bytes,
            "request_method": self.request_method,
            "request_url": self.request_url,
            "request_http_version": self.request_http_version,
        }


@dataclass(frozen=True)
class FieldError:
    """A single field that failed to parse.

    Attributes:
        field_name: Tag from :data:`FIELD_TAGS`.
        cause:      Description of the underlying conversion error.
    """

    field_name: str
    cause: str

    def __str__(self) -> str:
        return f"{self.field_name}: {self.cause}"


@dataclass(frozen=True)
class LineParseFailure:
    """A line with one or more malformed fields, kept verbatim for post-mortem."""

    raw_line: str
    errors: tuple[FieldError, ...]

    def __post_init__(self) -> None:
        if not self.errors:
            raise ValueError("LineParseFailure requires at least one FieldError")

    @property
    def field_names(self) -> list[str]:
        return [e.field_name for e in self.errors]

    def __str__(self) -> str:
        causes = "; ".join(str(e) for e in self.errors)
        return f"{len(self.errors)} malformed field(s) in {self.raw_line!r}: {causes}"


@dataclass(frozen=True)
class FieldSpec:
    """Descriptor for one typed positional field."""

    position: int
    attr: str
    tag: str
    convert: Callable[[str], Any]


TYPED_FIELDS: tuple[FieldSpec, ...] = (
    FieldSpec(0, "timestamp", TIMESTAMP, parse_timestamp),
    FieldSpec(2, "client_address", CLIENT_ADDRESS, parse_endpoint),
    FieldSpec(3, "backend_address", BACKEND_ADDRESS, parse_endpoint),
    FieldSpec(4, "request_processing_time", REQUEST_PROCESSING_TIME, parse_float32),
    FieldSpec(5, "backend_processing_time", BACKEND_PROCESSING_TIME, parse_float32),
    FieldSpec(6, "response_processing_time", RESPONSE_PROCESSING_TIME, parse_float32),
    FieldSpec(7, "elb_status_code", ELB_STATUS_CODE, parse_u16),
    FieldSpec(8, "backend_status_code", BACKEND_STATUS_CODE, parse_u16),
    FieldSpec(9, "received_bytes", RECEIVED_BYTES, parse_u64),
    FieldSpec(10, "sent_bytes", SENT_BYTES, parse_u64),
)

# A quoted group (possibly unterminated at end of line) or a bare word
_QUOTED_TOKEN_RE = re.compile(r'"[^"]*"?|[^ ]+')


def strip_quotes(token: str) -> str:
    """Remove at most one leading and at most one trailing double quote."""
    if token.startswith('"'):
        token = token[1:]
    if token.endswith('"'):
        token = token[:-1]
    return token


def split_tokens(line: str) -> list[str]:
    return line.split(" ")


def quoted_tokens(line: str) -> list[str]:
    """Tokenize honouring quotes, expanding the request group into three tokens."""
    tokens = _QUOTED_TOKEN_RE.findall(line)
    if len(tokens) <= METHOD_POS or not tokens[METHOD_POS].startswith('"'):
        return tokens
    request = strip_quotes(tokens[METHOD_POS])
    method, _, rest = request.partition(" ")
    if " " in rest:
        url, _, version = rest.rpartition(" ")
    else:
        url, version = rest, ""
    return tokens[:METHOD_POS] + [method, url, version]


def tokenize(line: str, quoted_request: bool = False) -> list[str]:
    if quoted_request:
        return quoted_tokens(line)
    return split_tokens(line)


def _token(tokens: list[str], position: int) -> str:
    return tokens[position] if position < len(tokens) else ""


class ElbLineParser:
    """Parse classic ELB access-log lines.

    Usage::

        parser = ElbLineParser()
        outcome = parser.parse_line(line)
        if isinstance(outcome, LineParseFailure):
            print(outcome.field_names)
    """

    def __init__(self, quoted_request: bool = False) -> None:
        self._quoted_request = quoted_request

    @property
    def name(self) -> str:
        return "elb"

    @property
    def quoted_request(self) -> bool:
        return self._quoted_request

    def parse_line(self, line: str) -> LogRecord | LineParseFailure:
        tokens = tokenize(line, self._quoted_request)
        values: dict[str, Any] = {}
        errors: list[FieldError] = []

        for spec in TYPED_FIELDS:
            if spec.position >= len(tokens):
                errors.append(FieldError(spec.tag, f"missing field at position {spec.position}"))
                continue
            try:
                values[spec.attr] = spec.convert(tokens[spec.position])
            except ValueError as exc:
                errors.append(FieldError(spec.tag, str(exc)))

        if errors:
            return LineParseFailure(raw_line=line, errors=tuple(errors))

        return LogRecord(
            elb_name=_token(tokens, 1),
            request_method=strip_quotes(_token(tokens, METHOD_POS)),
            request_url=_token(tokens, URL_POS),
            request_http_version=strip_quotes(_token(tokens, VERSION_POS)),
            **values,
        )

    def __repr__(self) -> str:
        return f"ElbLineParser(quoted_request={self._quoted_request})"


_split_parser = ElbLineParser()
_quoted_parser = ElbLineParser(quoted_request=True)


def parse_line(line: str, *, quoted_request: bool = False) -> LogRecord | LineParseFailure:
    """Module-level shortcut for :meth:`ElbLineParser.parse_line`."""
    parser = _quoted_parser if quoted_request else _split_parser
    return parser.parse_line(line)
