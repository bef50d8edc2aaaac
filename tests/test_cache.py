from newsroom.cache import ExtractionCache, MemoryStore


class Clock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def test_memory_store_expires_entries():
    clock = Clock()
    store = MemoryStore(default_ttl=10, clock=clock)
    store.set("a", 1)
    store.set("b", 2, ttl=100)
    clock.now = 11
    assert store.get("a") is None
    assert store.get("b") == 2
    store.delete("b")
    assert store.get("b") is None


def test_extraction_cache_is_off_by_default():
    store = MemoryStore()
    cache = ExtractionCache(store)
    cache.put("text", ["item"])
    assert cache.get("text") is None
    assert store.get(cache.key_for("text")) is None


def test_extraction_cache_keys_by_prefix_and_skips_empty():
    cache = ExtractionCache(MemoryStore(), enabled=True)
    cache.put("x" * 100 + "tail one", ["item"])
    assert cache.get("x" * 100 + "tail two") == ["item"]
    cache.put("nothing", [])
    assert cache.get("nothing") is None
