"""Typed converters for the positional fields of an ELB access-log line.

Every converter takes the raw token and either returns the typed value or
raises ``ValueError`` with a human-readable cause. The line parser turns
those causes into ``FieldError`` entries.
"""
from __future__ import annotations

import ipaddress
import math
import re
import struct
from datetime import datetime, timezone
from decimal import Decimal
from fractions import Fraction
from typing import NamedTuple

# Canonical ELB timestamp, e.g. 2015-08-15T23:43:05.302180Z
TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"

_TIMESTAMP_RE = re.compile(
    r"(?P<seconds>\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2})(?:\.(?P<fraction>\d{1,6}))?Z", re.ASCII
)
_DIGITS_RE = re.compile(r"[0-9]+", re.ASCII)
_FLOAT_RE = re.compile(
    r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?"
    r"|[+-]?(?:inf|infinity|nan)",
    re.ASCII | re.IGNORECASE,
)
_ENDPOINT_RE = re.compile(r"(?P<address>[0-9.]+):(?P<port>[0-9]{1,5})", re.ASCII)

U16_MAX = 2**16 - 1
U64_MAX = 2**64 - 1
PORT_MAX = U16_MAX


class Endpoint(NamedTuple):
    """IPv4 socket endpoint as logged by the balancer (``a.b.c.d:port``)."""

    address: ipaddress.IPv4Address
    port: int

    def __str__(self) -> str:
        return f"{self.address}:{self.port}"

    @classmethod
    def parse(cls, raw: str) -> "Endpoint":
        m = _ENDPOINT_RE.fullmatch(raw)
        if not m:
            raise ValueError(f"invalid IPv4 endpoint {raw!r}")
        try:
            address = ipaddress.IPv4Address(m["address"])
        except ipaddress.AddressValueError as exc:
            raise ValueError(f"invalid IPv4 address in {raw!r}: {exc}") from exc
        port = int(m["port"])
        if port > PORT_MAX:
            raise ValueError(f"port {port} out of range in {raw!r}")
        return cls(address, port)


def parse_timestamp(raw: str) -> datetime:
    """Parse ``YYYY-MM-DDTHH:MM:SS[.f]Z`` into an aware UTC datetime.

    The fraction may have up to six digits (microseconds) or be absent.
    ``format_timestamp(parse_timestamp(t), digits=n) == t`` where ``n`` is
    the number of fractional digits in ``t``; ELB itself always writes six.
    """
    m = _TIMESTAMP_RE.fullmatch(raw)
    if not m:
        raise ValueError(f"timestamp {raw!r} does not match YYYY-MM-DDTHH:MM:SS.ffffffZ")
    canonical = f"{m['seconds']}.{(m['fraction'] or '').ljust(6, '0')}Z"
    try:
        parsed = datetime.strptime(canonical, TIMESTAMP_FORMAT)
    except ValueError as exc:
        raise ValueError(f"invalid timestamp {raw!r}: {exc}") from exc
    return parsed.replace(tzinfo=timezone.utc)


def format_timestamp(value: datetime, digits: int = 6) -> str:
    """Render a datetime in the ELB pattern (converted to UTC).

    *digits* is the width of the fractional part, 0 to 6; 0 drops it.
    """
    if not 0 <= digits <= 6:
        raise ValueError(f"digits must be between 0 and 6, got {digits}")
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    text = (
        f"{value.year:04d}-{value.month:02d}-{value.day:02d}"
        f"T{value.hour:02d}:{value.minute:02d}:{value.second:02d}"
    )
    if digits:
        text += "." + f"{value.microsecond:06d}"[:digits]
    return text + "Z"


def _f32_bits(value: float) -> int:
    return struct.unpack("<I", struct.pack("<f", value))[0]


def _f32_from_bits(bits: int) -> float:
    return struct.unpack("<f", struct.pack("<I", bits))[0]


def to_float32(value: float) -> float:
    """Round a Python float to the nearest IEEE-754 binary32 value."""
    if math.isnan(value):
        return math.nan
    if math.isinf(value):
        return value
    try:
        return struct.unpack("<f", struct.pack("<f", value))[0]
    except OverflowError:
        return math.copysign(math.inf, value)


def parse_float32(raw: str) -> float:
    """Parse a decimal literal into the binary32 value nearest to it.

    Decimal to double to binary32 rounds twice, which goes wrong only when
    the double lands exactly on the midpoint of two binary32 neighbours.
    That case is settled against the exact decimal value.
    """
    if not _FLOAT_RE.fullmatch(raw):
        raise ValueError(f"invalid float literal {raw!r}")
    value = float(raw)
    rounded = to_float32(value)
    if rounded == value or not math.isfinite(rounded):
        return rounded

    magnitude = abs(rounded)
    bits = _f32_bits(magnitude)
    other = _f32_from_bits(bits + 1 if magnitude < abs(value) else bits - 1)
    if abs(value) != (magnitude + other) / 2:
        return rounded

    exact = abs(Fraction(Decimal(raw)))
    midpoint = Fraction(abs(value))
    if exact == midpoint:
        return rounded
    nearest = max(magnitude, other) if exact > midpoint else min(magnitude, other)
    return math.copysign(nearest, value)


def _parse_unsigned(raw: str, maximum: int, kind: str) -> int:
    if not raw:
        raise ValueError(f"cannot parse {kind} from empty string")
    if not _DIGITS_RE.fullmatch(raw):
        raise ValueError(f"invalid digit found in {raw!r}")
    value = int(raw)
    if value > maximum:
        raise ValueError(f"{raw} is too large for {kind} (max {maximum})")
    return value


def parse_u16(raw: str) -> int:
    return _parse_unsigned(raw, U16_MAX, "u16")


def parse_u64(raw: str) -> int:
    return _parse_unsigned(raw, U64_MAX, "u64")


def parse_endpoint(raw: str) -> Endpoint:
    return Endpoint.parse(raw)
