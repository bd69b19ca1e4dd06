"""
Resolution cache used by the enrichment chains.

Each chain receives a cache instance through EnrichmentContext, so cached
lookups live exactly as long as one batch invocation.
"""

from typing import Any, Optional, Protocol


class ResolutionCache(Protocol):
    """Minimal cache interface the resolvers depend on."""

    def get(self, key: str) -> Optional[Any]:
        ...

    def set(self, key: str, value: Any) -> None:
        ...

    def clear(self) -> None:
        ...


class InMemoryCache:
    """
    Dict-backed cache scoped to one invocation.

    Keys are namespaced so one instance can back several chains:
        cache = InMemoryCache("logo")
        cache.set("stripe", url)  # stored as "logo:stripe"
    """

    def __init__(self, namespace: str = ""):
        self.namespace = namespace
        self._data: dict[str, Any] = {}
        self.hits = 0
        self.misses = 0

    def _key(self, key: str) -> str:
        return f"{self.namespace}:{key}" if self.namespace else key

    def get(self, key: str) -> Optional[Any]:
        value = self._data.get(self._key(key))
        if value is None:
            self.misses += 1
        else:
            self.hits += 1
        return value

    def set(self, key: str, value: Any) -> None:
        self._data[self._key(key)] = value

    def clear(self) -> None:
        self._data.clear()

    def __len__(self) -> int:
        return len(self._data)
