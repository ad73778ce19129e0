"""Shared pytest fixtures for elblogs tests."""
from __future__ import annotations

from pathlib import Path

import pytest

SAMPLE_LINE = (
    "2015-08-15T23:43:05.302180Z elb-name 172.16.1.6:54814 "
    "172.16.1.5:9000 0.000039 0.145507 0.00003 200 200 0 7582 "
    '"GET http://some.domain.com:80/path0/path1?param0=p0&param1=p1 HTTP/1.1" '
)


@pytest.fixture()
def sample_line() -> str:
    return SAMPLE_LINE


@pytest.fixture()
def elb_log_lines() -> list[str]:
    return [
        SAMPLE_LINE,
        "2015-08-15T23:43:06.000001Z elb-name 10.0.0.1:4000 10.0.0.2:80 "
        '0.00002 0.5 0.000017 404 404 12 128 "POST http://api.example.com:80/v1/jobs HTTP/1.1"',
        "2015-08-15T23:43:07.123456Z elb-name 10.0.0.3:4001 10.0.0.2:80 "
        '0.00002 1.25 0.000017 502 502 0 0 "GET http://api.example.com:80/health HTTP/1.0"',
    ]


@pytest.fixture()
def tmp_log_file(tmp_path: Path):
    """Return a factory that creates temporary log files."""

    def _make(lines: list[str], name: str = "test.log") -> Path:
        p = tmp_path / name
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return p

    return _make


@pytest.fixture()
def log_tree(tmp_path: Path):
    """Return a factory that lays out {relative path: lines} under a fresh root."""

    def _make(files: dict[str, list[str]]) -> Path:
        root = tmp_path / "logs"
        root.mkdir(exist_ok=True)
        for rel, lines in files.items():
            p = root / rel
            p.parent.mkdir(parents=True, exist_ok=True)
            p.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return root

    return _make
