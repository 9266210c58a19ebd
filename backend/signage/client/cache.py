"""Short-lived cache for progress resources read by the client."""

import copy
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Mapping


class Resource(str, Enum):
    """Cached resource kinds."""

    PROFILE = "profile"
    STATS = "stats"
    COMPLETED_LESSONS = "completed_lessons"


DEFAULT_TTLS: dict[Resource, float] = {
    Resource.PROFILE: 5 * 60,
    Resource.STATS: 3 * 60,
    Resource.COMPLETED_LESSONS: 5 * 60,
}


@dataclass
class CacheEntry:
    data: Any
    timestamp: float
    ttl: float

    def is_fresh(self, now: float) -> bool:
        return now - self.timestamp < self.ttl


class ResourceCache:
    """
    Per-resource cache with a fixed TTL for each kind.

    ``clock`` returns seconds; it defaults to ``time.monotonic``. Every
    invalidation bumps the resource's generation, so a fetch that started
    before it can be refused when it tries to store its result.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        ttls: Mapping[Resource, float] | None = None,
    ) -> None:
        self._clock = clock
        self._ttls = dict(DEFAULT_TTLS)
        if ttls:
            self._ttls.update(ttls)
        self._entries: dict[Resource, CacheEntry] = {}
        self._generations: dict[Resource, int] = dict.fromkeys(Resource, 0)

    def ttl(self, resource: Resource) -> float:
        return self._ttls[resource]

    def generation(self, resource: Resource) -> int:
        return self._generations[resource]

    def get(self, resource: Resource) -> Any | None:
        entry = self._entries.get(resource)
        if entry is None or not entry.is_fresh(self._clock()):
            return None
        return copy.deepcopy(entry.data)

    def set(self, resource: Resource, data: Any, generation: int | None = None) -> bool:
        """
        Store ``data`` for ``resource``.

        When ``generation`` is given and the resource has been invalidated
        since, nothing is stored and False is returned.
        """
        if generation is not None and generation != self._generations[resource]:
            return False
        self._entries[resource] = CacheEntry(
            data=copy.deepcopy(data),
            timestamp=self._clock(),
            ttl=self._ttls[resource],
        )
        return True

    def invalidate(self, *resources: Resource) -> None:
        """Drop the given resources, or every resource when none are given."""
        for resource in resources or tuple(Resource):
            self._entries.pop(resource, None)
            self._generations[resource] += 1

    def stats(self) -> dict[str, dict[str, Any]]:
        now = self._clock()
        report: dict[str, dict[str, Any]] = {}
        for resource in Resource:
            entry = self._entries.get(resource)
            report[resource.value] = {
                "cached": entry is not None,
                "age": now - entry.timestamp if entry else None,
                "valid": entry is not None and entry.is_fresh(now),
            }
        return report
