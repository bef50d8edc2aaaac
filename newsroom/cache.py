import time
from typing import Any, Optional, Protocol


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[Any]: ...

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryStore:
    """In-process key/value store with per-entry expiry."""

    def __init__(self, default_ttl=1800, clock=time.monotonic):
        self.default_ttl = default_ttl
        self._clock = clock
        self._entries = {}

    def get(self, key):
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and self._clock() >= expires_at:
            del self._entries[key]
            return None
        return value

    def set(self, key, value, ttl=None):
        ttl = self.default_ttl if ttl is None else ttl
        expires_at = self._clock() + ttl if ttl else None
        self._entries[key] = (value, expires_at)

    def delete(self, key):
        self._entries.pop(key, None)

    def clear(self):
        self._entries.clear()


class ExtractionCache:
    """Caches extraction results by text prefix. Off unless enabled."""

    PREFIX_LENGTH = 100

    def __init__(self, store: KeyValueStore, enabled=False, ttl=None):
        self.store = store
        self.enabled = enabled
        self.ttl = ttl

    def key_for(self, text):
        return f"extract_items_{text[:self.PREFIX_LENGTH]}"

    def get(self, text):
        if not self.enabled:
            return None
        return self.store.get(self.key_for(text))

    def put(self, text, items):
        if not self.enabled or not items:
            return
        self.store.set(self.key_for(text), items, self.ttl)
