# provider_gateway/auth/store.py
from __future__ import annotations

from typing import Protocol

from cachetools import TTLCache


class RefreshTokenStore(Protocol):
    def add(self, token: str, business_id: int) -> None: ...

    def contains(self, token: str) -> bool: ...

    def remove(self, token: str) -> bool: ...


class InMemoryRefreshTokenStore:
    """Refresh tokens held in process memory; entries expire with the token."""

    def __init__(self, ttl_seconds: float, maxsize: int = 10_000, timer=None):
        if timer is None:
            self._cache = TTLCache(maxsize=maxsize, ttl=ttl_seconds)
        else:
            self._cache = TTLCache(maxsize=maxsize, ttl=ttl_seconds, timer=timer)

    def add(self, token: str, business_id: int) -> None:
        self._cache[token] = business_id

    def contains(self, token: str) -> bool:
        return bool(token) and token in self._cache

    def remove(self, token: str) -> bool:
        if not token:
            return False
        return self._cache.pop(token, None) is not None

    def clear(self) -> None:
        """Clear all entries (used in tests)."""
        self._cache.clear()

    def __len__(self) -> int:
        return len(self._cache)
