from __future__ import annotations

import calendar
import hashlib
import time
import typing as tp
from email.utils import formatdate, parsedate_tz
from pathlib import Path

HEADERS_ENCODING = "iso-8859-1"


class BaseClock:
    def now(self) -> int:
        raise NotImplementedError()


class Clock(BaseClock):
    def now(self) -> int:
        return int(time.time())


def parse_date(date: str) -> tp.Optional[int]:
    parsed = parsedate_tz(date)
    if parsed is None:
        return None
    timestamp = calendar.timegm(parsed[:6])
    return timestamp - (parsed[9] or 0)


def generate_http_date(timeval: tp.Optional[float] = None) -> str:
    """
    Generate a Date header value for HTTP responses.
    Returns date in RFC 1123 format (required by HTTP/1.1).

    Example output: 'Sun, 26 Oct 2025 12:34:56 GMT'
    """
    return formatdate(timeval=timeval, localtime=False, usegmt=True)


def generate_key(cache_key: str) -> str:
    return hashlib.sha256(cache_key.encode(HEADERS_ENCODING)).hexdigest()


def ensure_cache_dict(base_path: Path | None = None) -> Path:
    _base_path = base_path if base_path is not None else Path(".cache/acorncache")
    _gitignore_file = _base_path / ".gitignore"

    _base_path.mkdir(parents=True, exist_ok=True)

    if not _gitignore_file.is_file():
        with open(_gitignore_file, "w", encoding="utf-8") as f:
            f.write("# Automatically created by acorncache\n*")
    return _base_path
