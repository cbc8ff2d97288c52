from __future__ import annotations

import typing as tp

import pytest

from acorncache import BaseClock, CachedEntry, CacheOptions, Headers, IncomingRequest, StoredResponse

# Sat, 01 Jan 2000 00:00:01 GMT
T = 946684801
T_HTTP_DATE = "Sat, 01 Jan 2000 00:00:01 GMT"


class MockedClock(BaseClock):
    def __init__(self, now: int = T) -> None:
        self._now = now

    def now(self) -> int:
        return self._now

    def advance(self, seconds: int) -> None:
        self._now += seconds


def create_entry(
    headers: tp.Optional[tp.Dict[str, str]] = None,
    status: int = 200,
    body: bytes = b"test body",
    now: int = T,
    options: tp.Optional[CacheOptions] = None,
) -> CachedEntry:
    return CachedEntry(
        StoredResponse(status=status, headers=Headers(headers or {}), body=body),
        options=options,
        clock=MockedClock(now),
    )


def create_request(
    method: str = "GET",
    path: str = "/",
    headers: tp.Optional[tp.Dict[str, str]] = None,
) -> IncomingRequest:
    return IncomingRequest(method=method, path=path, headers=Headers(headers or {}))


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture()
def use_temp_dir(tmpdir: tp.Any) -> tp.Iterator[None]:
    with tmpdir.as_cwd():
        yield
