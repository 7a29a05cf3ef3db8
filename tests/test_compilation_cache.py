from wasmbench.service.engine.compilation_cache import CompilationCache


def test_key_depends_on_bytes_and_fingerprint():
    key = CompilationCache.key_for(b"abc", "wasmtime-1")
    assert key == CompilationCache.key_for(b"abc", "wasmtime-1")
    assert key != CompilationCache.key_for(b"abd", "wasmtime-1")
    assert key != CompilationCache.key_for(b"abc", "wasmtime-2")


def test_in_memory_cache():
    cache = CompilationCache()
    assert not cache.persistent
    assert cache.get("k") is None
    cache.put("k", b"native")
    assert cache.get("k") == b"native"
    assert cache.stats() == {"hits": 1, "misses": 1, "evictions": 0}
    assert len(cache) == 1


def test_directory_cache_persists_across_instances(tmp_path):
    first = CompilationCache(tmp_path)
    first.put("k", b"native")
    assert (tmp_path / "k.cwasm").read_bytes() == b"native"
    assert not list(tmp_path.glob("*.tmp"))

    second = CompilationCache(tmp_path)
    assert second.get("k") == b"native"
    assert second.hits == 1
    assert len(second) == 1


def test_evict(tmp_path):
    cache = CompilationCache(tmp_path)
    cache.put("k", b"stale")
    cache.evict("k")
    assert cache.get("k") is None
    assert cache.evictions == 1
    assert len(cache) == 0
