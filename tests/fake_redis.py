"""In-memory Redis fake for cache and reconciler unit tests.

Mimics the redis-py client interface (decode_responses=True) just enough
to test ActiveSetCache and the Reconciler without a server. Published
messages and key TTLs are recorded for assertions.
"""

from __future__ import annotations

from typing import Any

import redis


class FakeRedis:
    def __init__(self):
        self.store: dict[str, Any] = {}
        self.ttls: dict[str, int] = {}
        self.published: list[tuple[str, str]] = []
        self.fail = False

    def _check(self) -> None:
        if self.fail:
            raise redis.ConnectionError("Connection refused")

    def ping(self) -> bool:
        self._check()
        return True

    def get(self, name: str) -> str | None:
        self._check()
        value = self.store.get(name)
        return value if isinstance(value, str) else None

    def set(self, name: str, value: str, ex: int | None = None) -> bool:
        self._check()
        self.store[name] = str(value)
        if ex is None:
            self.ttls.pop(name, None)
        else:
            self.ttls[name] = ex
        return True

    def hset(self, name: str, mapping: dict[str, str]) -> int:
        self._check()
        current = self.store.setdefault(name, {})
        current.update({k: str(v) for k, v in mapping.items()})
        return len(mapping)

    def hgetall(self, name: str) -> dict[str, str]:
        self._check()
        return dict(self.store.get(name) or {})

    def expire(self, name: str, seconds: int) -> bool:
        self._check()
        if name not in self.store:
            return False
        self.ttls[name] = seconds
        return True

    def delete(self, *names: str) -> int:
        self._check()
        removed = 0
        for name in names:
            if self.store.pop(name, None) is not None:
                removed += 1
            self.ttls.pop(name, None)
        return removed

    def publish(self, channel: str, message: str) -> int:
        self._check()
        self.published.append((channel, message))
        return 0

    def messages(self, channel: str) -> list[str]:
        return [m for c, m in self.published if c == channel]
