import json
from dataclasses import dataclass
from datetime import datetime, timedelta

import pytest

from stackup.cache import (
    Cache,
    CacheEntry,
    decode_entry,
    expires_at,
    new_cache_entry,
)


@pytest.fixture
def cache(tmp_path):
    c = Cache("stackup-test", tmp_path, 60)
    yield c
    c.close(True)


def test_cache_set_and_get(cache):
    expires = datetime.now() - timedelta(minutes=5)
    entry = cache.create_entry("test", expires, "", "", None)

    cache.set("test", entry, -2)
    assert cache.get("test") is None
    assert cache.is_expired("test")

    expires = datetime.now() + timedelta(minutes=5)
    entry2 = cache.create_entry("test2", expires, "", "", None)

    cache.set("test2", entry2, 5)
    assert cache.has("test2")


def test_cache_remove(cache):
    expires = datetime.now() + timedelta(minutes=5)
    entry = cache.create_entry("test3", expires, "", "", None)

    cache.set("test3", entry, 5)
    assert cache.has("test3")

    cache.remove("test3")
    assert not cache.has("test3")


def test_get_returns_stored_fields(cache):
    entry = cache.create_entry("hello\nworld", None, "abc", "sha256", None)
    cache.set("k", entry, 5)
    loaded = cache.get("k")
    assert loaded == entry
    assert entry.value == "hello\nworld"


def test_get_strips_key_suffixes(cache):
    cache.set("item", cache.create_entry("v"), 5)
    assert cache.get("item_hash").value == "v"
    assert cache.get("item_expires_at").value == "v"


def test_missing_key(cache):
    assert cache.get("nope") is None
    assert cache.is_expired("nope")
    assert not cache.has("nope")


def test_purge_removes_expired(cache):
    cache.set("old", cache.create_entry("x", datetime.now() - timedelta(minutes=1)), 0)
    cache.set("new", cache.create_entry("y", datetime.now() + timedelta(minutes=1)), 0)
    cache.purge_expired()
    assert cache._keys() == ["new"]


def test_persists_across_instances(tmp_path):
    first = Cache("persist", tmp_path, 10)
    first.set("k", first.create_entry("kept"), 10)
    first.close()

    second = Cache("persist", tmp_path, 10)
    try:
        assert second.get("k").value == "kept"
    finally:
        second.close(True)


def test_filename_and_default_name(tmp_path):
    c = Cache("", tmp_path, 5)
    try:
        assert c.name == "stackup"
        assert c.filename == str(tmp_path / "stackup.db")
        assert c.enabled
    finally:
        c.close(True)
    assert not (tmp_path / "stackup.db").exists()


def test_make_cache_key(cache):
    assert cache.make_cache_key("gateway:", "url") == "gateway:url"
    assert cache.make_cache_key("gateway", "url") == "gateway:url"
    assert cache.make_cache_key("", "url") == "url"


def test_entry_encode_decode_round_trip():
    entry = CacheEntry("contents", "h", "sha256", expires_at(5), "")
    encoded = entry.encode()
    assert json.loads(encoded)["value"] != "contents"
    assert decode_entry(encoded) == entry


def test_decode_invalid_raises():
    with pytest.raises(ValueError):
        decode_entry("not json")


def test_entry_without_expiry_is_expired():
    assert CacheEntry(value="x").is_expired()
    assert not CacheEntry(value="x", expires_at=expires_at(5)).is_expired()
    assert CacheEntry(value="x", expires_at=expires_at(-5)).is_expired()


def test_new_cache_entry_serialises_object():
    entry = new_cache_entry({"url": "u", "code": 200}, 5)
    assert json.loads(entry.value) == {"url": "u", "code": 200}
    assert not entry.is_expired()


def test_new_cache_entry_from_dataclass():
    @dataclass
    class Response:
        url: str
        code: int

    entry = new_cache_entry(Response("u", 404), 5)
    assert json.loads(entry.value) == {"url": "u", "code": 404}


def test_context_manager_closes(tmp_path):
    with Cache("ctx", tmp_path, 5) as c:
        c.set("k", c.create_entry("v"), 5)
        assert c.has("k")
    assert c.get("k") is None