from __future__ import annotations

import logging
import typing as tp
from copy import deepcopy
from pathlib import Path

import anyio

from acorncache._core.models import StoredResponse
from acorncache._exceptions import SerializationError
from acorncache._serializers import BaseSerializer, JSONSerializer
from acorncache._synchronization import KeyLock, KeyLockRegistry
from acorncache._utils import ensure_cache_dict, generate_key

logger = logging.getLogger("acorncache.storages")

__all__ = ("AsyncBaseStorage", "AsyncFileStorage", "AsyncInMemoryStorage")


class AsyncBaseStorage:
    """
    Persists stored responses by cache key.

    `lock(key)` hands out one lock per key. Callers that read, update and
    write back an entry hold it so concurrent writers of the same key
    cannot overwrite each other.
    """

    def __init__(self, serializer: tp.Optional[BaseSerializer] = None) -> None:
        self._serializer = serializer or JSONSerializer()
        self._key_locks = KeyLockRegistry()

    def lock(self, key: str) -> KeyLock:
        return self._key_locks.lock(key)

    async def get(self, key: str) -> tp.Optional[StoredResponse]:
        raise NotImplementedError()

    async def put(self, key: str, response: StoredResponse) -> None:
        raise NotImplementedError()

    async def remove(self, key: str) -> None:
        raise NotImplementedError()

    async def aclose(self) -> None:
        raise NotImplementedError()


class AsyncFileStorage(AsyncBaseStorage):
    """
    A simple file storage, one file per cache key.

    :param serializer: Serializer capable of serializing and de-serializing stored responses, defaults to None
    :type serializer: tp.Optional[BaseSerializer], optional
    :param base_path: A storage base path where the responses should be saved, defaults to None
    :type base_path: tp.Optional[Path], optional
    """

    def __init__(
        self,
        serializer: tp.Optional[BaseSerializer] = None,
        base_path: tp.Optional[Path] = None,
    ) -> None:
        super().__init__(serializer)

        self._base_path = ensure_cache_dict(Path(base_path) if base_path is not None else None)

    def _path_for(self, key: str) -> anyio.Path:
        return anyio.Path(self._base_path / generate_key(key))

    async def put(self, key: str, response: StoredResponse) -> None:
        """
        Stores the response in the cache.

        :param key: The cache key, typically the request path
        :type key: str
        :param response: The response to store
        :type response: StoredResponse
        """
        data = self._serializer.dumps(response)
        path = self._path_for(key)

        if isinstance(data, bytes):
            await path.write_bytes(data)
        else:
            await path.write_text(data, encoding="utf-8")
        logger.debug(f"Stored the response for {key} in {path}.")

    async def get(self, key: str) -> tp.Optional[StoredResponse]:
        """
        Retrieves the response stored under the key.

        :param key: The cache key, typically the request path
        :type key: str
        :return: The stored response, or None when nothing usable is stored.
        :rtype: tp.Optional[StoredResponse]
        """
        path = self._path_for(key)

        if not await path.is_file():
            return None

        raw_data = await path.read_bytes()

        if len(raw_data) == 0:
            return None

        try:
            data: tp.Union[str, bytes] = raw_data if self._serializer.is_binary else raw_data.decode("utf-8")
            return self._serializer.loads(data)
        except (SerializationError, UnicodeDecodeError) as exc:
            logger.warning(f"Ignoring the unreadable cache record for {key}: {exc}")
            return None

    async def remove(self, key: str) -> None:
        await self._path_for(key).unlink(missing_ok=True)

    async def aclose(self) -> None:  # pragma: no cover
        return


class AsyncInMemoryStorage(AsyncBaseStorage):
    """
    A simple in-memory storage.

    Responses are deep-copied on the way in and out, so callers never share
    mutable state with the storage.
    """

    def __init__(self) -> None:
        super().__init__()
        self._cache: tp.Dict[str, StoredResponse] = {}

    async def put(self, key: str, response: StoredResponse) -> None:
        self._cache[key] = deepcopy(response)

    async def get(self, key: str) -> tp.Optional[StoredResponse]:
        stored_response = self._cache.get(key)
        return deepcopy(stored_response) if stored_response is not None else None

    async def remove(self, key: str) -> None:
        self._cache.pop(key, None)

    async def aclose(self) -> None:  # pragma: no cover
        return
