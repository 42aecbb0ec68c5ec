from huddle.core.cache import ViewCache


def test_entries_are_per_user_and_variant():
    cache = ViewCache()
    cache.set("/groups", "u1", ["a"])
    cache.set("/groups", "u1", ["b"], variant="page-2")
    assert cache.get("/groups", "u1") == ["a"]
    assert cache.get("/groups", "u1", variant="page-2") == ["b"]
    assert cache.get("/groups", "u2") is None


def test_invalidate_drops_every_user_for_a_path():
    cache = ViewCache()
    cache.set("/groups", "u1", 1)
    cache.set("/groups", "u2", 2)
    cache.set("/events", "u1", 3)
    cache.invalidate("/groups")
    assert cache.get("/groups", "u1") is None
    assert cache.get("/groups", "u2") is None
    assert cache.get("/events", "u1") == 3


def test_empty_values_are_cached():
    cache = ViewCache()
    cache.set("/events", "u1", [])
    assert cache.get("/events", "u1") == []
    cache.invalidate("/events", "/unknown")
    assert cache.get("/events", "u1") is None
