from __future__ import annotations

import logging
import typing as t

from typing_extensions import assert_never

from acorncache._core._headers import Headers, parse_cache_control
from acorncache._core._spec import CachedEntry, CacheOptions, Verdict, create_entry
from acorncache._core.models import IncomingRequest, StoredResponse
from acorncache._storages import AsyncBaseStorage, AsyncInMemoryStorage
from acorncache._utils import BaseClock, Clock, generate_http_date

logger = logging.getLogger(__name__)

NOT_MODIFIED_HEADERS = ("cache-control", "date", "etag", "expires", "last-modified")


class _ASGIScope(t.TypedDict, total=False):
    """ASGI HTTP scope type."""

    type: str
    asgi: dict[str, str]
    http_version: str
    method: str
    scheme: str
    path: str
    query_string: bytes
    root_path: str
    headers: list[tuple[bytes, bytes]]
    server: tuple[str, int | None] | None
    client: tuple[str, int] | None
    state: dict[str, t.Any]
    extensions: dict[str, t.Any]


_Scope = _ASGIScope
_Receive = t.Callable[[], t.Awaitable[dict[str, t.Any]]]
_Send = t.Callable[[dict[str, t.Any]], t.Awaitable[None]]
_ASGIApp = t.Callable[[_Scope, _Receive, _Send], t.Awaitable[None]]


class ASGICacheMiddleware:
    """
    ASGI middleware that answers GET requests from stored responses.

    For each cacheable request the stored entry is looked up by path and query
    string (prefixed with the method for anything but GET) and asked for a
    verdict:

    - SERVE: the stored response is sent, marked with the cache header.
    - REVALIDATE: the request is sent to the wrapped application with
      If-None-Match / If-Modified-Since built from the stored validators.
      A 304 (or a response with the same validators) refreshes the stored
      entry, anything else replaces it.
    - MISS: the request is sent to the wrapped application and a cacheable
      response is stored.

    Requests carrying their own conditional headers are answered with
    304 Not Modified when the entry proves the client's copy is current.

    Args:
        app: The ASGI application to wrap.
        storage: The storage backend to use for caching. Defaults to AsyncInMemoryStorage.
        paths: Paths whose responses may be cached. None allows every path.
        options: Cache decision options. Defaults to CacheOptions().
        clock: Source of the current time. Defaults to the system clock.

    Example:
        ```python
        from acorncache import AsyncFileStorage
        from acorncache.asgi import ASGICacheMiddleware

        app = ASGICacheMiddleware(
            app=my_asgi_app,
            storage=AsyncFileStorage(),
            paths=["/", "/articles"],
        )
        ```
    """

    def __init__(
        self,
        app: _ASGIApp,
        storage: AsyncBaseStorage | None = None,
        paths: t.Iterable[str] | None = None,
        options: CacheOptions | None = None,
        clock: BaseClock | None = None,
    ) -> None:
        self.app = app
        self.storage = storage if storage is not None else AsyncInMemoryStorage()
        self.paths = frozenset(paths) if paths is not None else None
        self.options = options if options is not None else CacheOptions()
        self.clock = clock if clock is not None else Clock()

        logger.info(
            "Initialized ASGICacheMiddleware with storage=%s, paths=%s",
            type(self.storage).__name__,
            sorted(self.paths) if self.paths is not None else "all",
        )

    async def __call__(self, scope: _Scope, receive: _Receive, send: _Send) -> None:
        """
        Handle an ASGI request.

        Args:
            scope: The ASGI scope dictionary.
            receive: The ASGI receive callable.
            send: The ASGI send callable.
        """
        if scope["type"] != "http":
            logger.debug("Skipping non-HTTP request: type=%s", scope["type"])
            await self.app(scope, receive, send)
            return

        request = self._asgi_to_request(scope)

        if not self._accepts_cached_response(request):
            logger.debug("Passing through uncacheable request: method=%s path=%s", request.method, request.path)
            await self.app(scope, receive, send)
            return

        key = self._cache_key(scope)
        entry = create_entry(await self.storage.get(key), options=self.options, clock=self.clock)
        verdict = entry.usable_for(request)

        logger.debug("Cache verdict: path=%s verdict=%s", key, verdict.value)

        if verdict is Verdict.SERVE:
            assert isinstance(entry, CachedEntry)
            await self._serve_entry(entry, request, send)
        elif verdict is Verdict.REVALIDATE:
            assert isinstance(entry, CachedEntry)
            await self._revalidate(key, entry, request, scope, receive, send)
        elif verdict is Verdict.MISS:
            response = await self._call_app(scope, receive)
            await self._store_if_cacheable(key, response)
            await self._send_response(response, send)
        else:
            assert_never(verdict)

        logger.info("Request processed: method=%s path=%s verdict=%s", request.method, key, verdict.value)

    def _accepts_cached_response(self, request: IncomingRequest) -> bool:
        if request.method.upper() not in {method.upper() for method in self.options.cacheable_methods}:
            return False

        if self.paths is not None and request.path not in self.paths:
            return False

        cache_control = request.cache_control
        return not (cache_control.no_store or cache_control.no_cache)

    def _cache_key(self, scope: _Scope) -> str:
        path = scope.get("path", "/")
        query_string = scope.get("query_string", b"")
        key = f"{path}?{query_string.decode('latin1')}" if query_string else path

        # a HEAD response has no body, so it must never be served to GET
        method = scope.get("method", "GET").upper()
        if method != "GET":
            return f"{method} {key}"
        return key

    def _asgi_to_request(self, scope: _Scope) -> IncomingRequest:
        headers = Headers({})
        for key, value in scope.get("headers", []):
            headers[key.decode("latin1")] = value.decode("latin1")

        return IncomingRequest(
            method=scope.get("method", "GET"),
            path=scope.get("path", "/"),
            headers=headers,
        )

    async def _serve_entry(self, entry: CachedEntry, request: IncomingRequest, send: _Send) -> None:
        if request.is_conditional and entry.not_modified_for(request):
            logger.debug("Answering conditional request locally: path=%s", request.path)
            await self._send_not_modified(entry, send)
            return

        await self._send_response(entry.with_cache_header().response, send)

    async def _revalidate(
        self,
        key: str,
        entry: CachedEntry,
        request: IncomingRequest,
        scope: _Scope,
        receive: _Receive,
        send: _Send,
    ) -> None:
        response = await self._call_app(self._conditional_scope(scope, entry), receive)

        if response.status == 304 or entry.matches(response):
            async with self.storage.lock(key):
                entry = entry.mark_revalidated()
                await self.storage.put(key, entry.response)
            logger.debug("Stored response revalidated: path=%s origin_status=%d", key, response.status)
            await self._serve_entry(entry, request, send)
            return

        logger.debug("Stored response replaced after revalidation: path=%s status=%d", key, response.status)
        await self._store_if_cacheable(key, response)
        await self._send_response(response, send)

    def _conditional_scope(self, scope: _Scope, entry: CachedEntry) -> _Scope:
        headers = [
            (key, value)
            for key, value in scope.get("headers", [])
            if key.lower() not in (b"if-none-match", b"if-modified-since")
        ]

        if entry.etag is not None:
            headers.append((b"if-none-match", entry.etag.encode("latin1")))
        if entry.last_modified is not None:
            headers.append((b"if-modified-since", entry.last_modified.encode("latin1")))

        conditional_scope = t.cast(_Scope, dict(scope))
        conditional_scope["headers"] = headers
        return conditional_scope

    async def _store_if_cacheable(self, key: str, response: StoredResponse) -> None:
        directives = parse_cache_control(response.headers.get("cache-control"))

        if response.status != 200 or directives.no_store or directives.private:
            logger.debug("Not storing response: path=%s status=%d", key, response.status)
            async with self.storage.lock(key):
                await self.storage.remove(key)
            return

        async with self.storage.lock(key):
            await self.storage.put(key, response)
        logger.debug("Stored response: path=%s", key)

    async def _call_app(self, scope: _Scope, receive: _Receive) -> StoredResponse:
        status_code = 200
        response_headers: list[tuple[bytes, bytes]] = []
        response_body_chunks: list[bytes] = []

        async def inner_send(message: dict[str, t.Any]) -> None:
            nonlocal status_code, response_headers
            if message["type"] == "http.response.start":
                status_code = message["status"]
                response_headers = list(message.get("headers", []))
            elif message["type"] == "http.response.body":
                body_chunk = message.get("body", b"")
                if body_chunk:
                    response_body_chunks.append(body_chunk)

        try:
            await self.app(scope, receive, inner_send)
        except Exception as e:
            logger.error(
                "Error calling wrapped application: path=%s error=%s",
                scope.get("path", "/"),
                str(e),
                exc_info=True,
            )
            raise

        headers = Headers({})
        for key, value in response_headers:
            if key.lower() != b"transfer-encoding":
                headers[key.decode("latin1")] = value.decode("latin1")

        if "date" not in headers:
            headers["Date"] = generate_http_date(self.clock.now())

        return StoredResponse(status=status_code, headers=headers, body=b"".join(response_body_chunks))

    async def _send_not_modified(self, entry: CachedEntry, send: _Send) -> None:
        headers = Headers({})
        for name in NOT_MODIFIED_HEADERS:
            if name in entry.headers:
                headers[name] = entry.headers[name]
        headers[self.options.cache_header] = self.options.cache_header_value

        await self._send_response(StoredResponse(status=304, headers=headers), send)

    async def _send_response(self, response: StoredResponse, send: _Send) -> None:
        headers: list[tuple[bytes, bytes]] = [
            (key.encode("latin1"), value.encode("latin1")) for key, value in response.headers.multi_items()
        ]

        await send(
            {
                "type": "http.response.start",
                "status": response.status,
                "headers": headers,
            }
        )
        await send(
            {
                "type": "http.response.body",
                "body": response.body,
                "more_body": False,
            }
        )
        logger.debug("Response sent: status=%d total_bytes=%d", response.status, len(response.body))

    async def aclose(self) -> None:
        """Close the storage backend and release resources."""
        logger.info("Closing ASGICacheMiddleware and storage backend")
        await self.storage.aclose()
