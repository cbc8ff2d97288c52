from __future__ import annotations

import types
import typing as tp

import anyio

__all__ = ("KeyLock", "KeyLockRegistry")


class _Slot:
    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = anyio.Lock()
        # tasks holding or waiting for the lock
        self.users = 0


class KeyLockRegistry:
    """
    Hands out one lock per cache key.

    A key is forgotten as soon as no task holds or waits for its lock, so
    the registry only grows with the number of keys in use at the same time.
    """

    def __init__(self) -> None:
        self._slots: tp.Dict[str, _Slot] = {}

    def __len__(self) -> int:
        return len(self._slots)

    def __contains__(self, key: object) -> bool:
        return key in self._slots

    def lock(self, key: str) -> KeyLock:
        return KeyLock(self, key)

    def locked(self, key: str) -> bool:
        slot = self._slots.get(key)
        return slot is not None and slot.lock.locked()

    def _checkout(self, key: str) -> _Slot:
        slot = self._slots.get(key)
        if slot is None:
            slot = self._slots[key] = _Slot()
        slot.users += 1
        return slot

    def _checkin(self, key: str, slot: _Slot) -> None:
        slot.users -= 1
        if slot.users == 0:
            del self._slots[key]


class KeyLock:
    """Async context manager that holds the registry lock for one key."""

    def __init__(self, registry: KeyLockRegistry, key: str) -> None:
        self._registry = registry
        self._key = key

    def __repr__(self) -> str:
        return f"<{type(self).__name__} key={self._key!r} locked={self.locked()}>"

    def locked(self) -> bool:
        return self._registry.locked(self._key)

    async def __aenter__(self) -> None:
        slot = self._registry._checkout(self._key)
        try:
            await slot.lock.acquire()
        except BaseException:
            self._registry._checkin(self._key, slot)
            raise

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None = None,
        exc_value: BaseException | None = None,
        traceback: types.TracebackType | None = None,
    ) -> None:
        slot = self._registry._slots[self._key]
        slot.lock.release()
        self._registry._checkin(self._key, slot)
