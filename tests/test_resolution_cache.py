import pytest

from team_resolver.cache.resolution_cache import CacheError, ResolutionCache, get_cache_key
from team_resolver.models.enums import Confidence, ResolutionSource
from team_resolver.models.resolution import ResolvedTeam


def _team(name="Natus Vincere"):
    return ResolvedTeam(
        canonical_id="123",
        canonical_name=name,
        query_name=name,
        confidence=Confidence.EXACT,
        source=ResolutionSource.ALIAS,
    )


def test_miss_then_hit(cache):
    assert cache.get("k") == (False, None)
    cache.set("k", _team())
    found, value = cache.get("k")
    assert found
    assert value.canonical_name == "Natus Vincere"


def test_negative_entries_are_distinguishable(cache):
    cache.set("unknown", None)
    assert cache.get("unknown") == (True, None)


def test_entries_expire_after_fixed_ttl(cache, clock):
    cache.set("k", _team())
    clock.advance(23 * 60 * 60)
    assert cache.get("k")[0]
    # Reads do not extend the lifetime
    clock.advance(60 * 60)
    assert cache.get("k") == (False, None)
    assert cache.size == 0


def test_size_bound_evicts_oldest(clock):
    cache = ResolutionCache(ttl_seconds=60, max_size=2, clock=clock)
    cache.set("a", _team("A"))
    cache.set("b", _team("B"))
    cache.get("a")
    cache.set("c", _team("C"))
    assert cache.size == 2
    assert cache.get("b") == (False, None)
    assert cache.get("a")[0]


def test_empty_key_is_rejected(cache):
    with pytest.raises(CacheError):
        cache.get("")
    with pytest.raises(CacheError):
        cache.set("", None)


def test_cache_key_depends_on_game():
    assert get_cache_key("NaVi", "cs2") != get_cache_key("NaVi", "dota2")
    assert get_cache_key("NaVi", "cs2") == get_cache_key("navi", "cs2")


def test_clear(cache):
    cache.set("k", None)
    cache.clear()
    assert cache.size == 0
