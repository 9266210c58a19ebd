"""Tests for the client resource cache."""

from __future__ import annotations

from signage.client.cache import DEFAULT_TTLS, Resource, ResourceCache


class _Clock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def test_default_ttls_per_resource() -> None:
    assert DEFAULT_TTLS[Resource.PROFILE] == 300
    assert DEFAULT_TTLS[Resource.STATS] == 180
    assert DEFAULT_TTLS[Resource.COMPLETED_LESSONS] == 300


def test_entry_is_fresh_until_ttl_elapses() -> None:
    clock = _Clock()
    cache = ResourceCache(clock=clock)
    cache.set(Resource.STATS, {"streak": 2})

    clock.now += 179
    assert cache.get(Resource.STATS) == {"streak": 2}

    clock.now += 1
    assert cache.get(Resource.STATS) is None


def test_invalidate_one_resource() -> None:
    cache = ResourceCache(clock=_Clock())
    cache.set(Resource.STATS, {"streak": 2})
    cache.set(Resource.PROFILE, {"displayName": "Sam"})

    cache.invalidate(Resource.STATS)

    assert cache.get(Resource.STATS) is None
    assert cache.get(Resource.PROFILE) == {"displayName": "Sam"}


def test_invalidate_everything() -> None:
    cache = ResourceCache(clock=_Clock())
    for resource in Resource:
        cache.set(resource, ["x"])

    cache.invalidate()

    assert all(cache.get(resource) is None for resource in Resource)


def test_custom_ttls_override_defaults() -> None:
    clock = _Clock()
    cache = ResourceCache(clock=clock, ttls={Resource.PROFILE: 10})
    cache.set(Resource.PROFILE, {"a": 1})

    clock.now += 10
    assert cache.get(Resource.PROFILE) is None
    assert cache.ttl(Resource.STATS) == 180


def test_cached_values_are_isolated_copies() -> None:
    cache = ResourceCache(clock=_Clock())
    lessons = ["lesson_1"]
    cache.set(Resource.COMPLETED_LESSONS, lessons)

    lessons.append("lesson_2")
    cached = cache.get(Resource.COMPLETED_LESSONS)
    cached.append("lesson_3")

    assert cache.get(Resource.COMPLETED_LESSONS) == ["lesson_1"]


def test_stats_report() -> None:
    clock = _Clock()
    cache = ResourceCache(clock=clock)
    cache.set(Resource.STATS, {})
    clock.now += 200

    report = cache.stats()

    assert report["stats"] == {"cached": True, "age": 200, "valid": False}
    assert report["profile"] == {"cached": False, "age": None, "valid": False}


def test_store_refused_after_invalidation() -> None:
    cache = ResourceCache(clock=_Clock())
    generation = cache.generation(Resource.STATS)

    cache.invalidate(Resource.STATS)

    assert cache.set(Resource.STATS, {"streak": 1}, generation=generation) is False
    assert cache.get(Resource.STATS) is None
    assert cache.set(Resource.STATS, {"streak": 2}, generation=cache.generation(Resource.STATS)) is True
    assert cache.get(Resource.STATS) == {"streak": 2}


def test_invalidate_everything_bumps_every_generation() -> None:
    cache = ResourceCache(clock=_Clock())
    before = {resource: cache.generation(resource) for resource in Resource}

    cache.invalidate()

    assert all(cache.generation(resource) == before[resource] + 1 for resource in Resource)
