from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from acorncache._core._headers import CacheControl, Headers, parse_cache_control


@dataclass
class StoredResponse:
    """The status/headers/body triple exchanged with storage."""

    status: int
    headers: Headers = field(default_factory=lambda: Headers({}))
    body: bytes = b""

    @property
    def etag(self) -> Optional[str]:
        return self.headers.get("etag")

    @property
    def last_modified(self) -> Optional[str]:
        return self.headers.get("last-modified")

    def to_tuple(self) -> Tuple[int, Headers, List[bytes]]:
        return self.status, self.headers, [self.body]


@dataclass
class IncomingRequest:
    """
    The parts of an inbound request the cache compares against a stored entry.

    The Cache-Control header is parsed once, on construction.
    """

    method: str
    path: str
    headers: Headers = field(default_factory=lambda: Headers({}))
    cache_control: CacheControl = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self.cache_control = parse_cache_control(self.headers.get("cache-control"))

    @property
    def if_none_match(self) -> Optional[str]:
        return self.headers.get("if-none-match")

    @property
    def if_modified_since(self) -> Optional[str]:
        return self.headers.get("if-modified-since")

    @property
    def is_conditional(self) -> bool:
        return self.if_none_match is not None or self.if_modified_since is not None
