"""Cached data access for the client: reads go through the cache, writes invalidate it."""

import asyncio
from typing import Any, Awaitable, Callable

from signage.client.api_client import SignAgeClient
from signage.client.cache import Resource, ResourceCache
from signage.core.logging import get_logger

logger = get_logger(__name__)

# Resources a successful write can make stale
LESSON_WRITE = (Resource.PROFILE, Resource.STATS, Resource.COMPLETED_LESSONS)
STATS_WRITE = (Resource.PROFILE, Resource.STATS)
PROFILE_WRITE = (Resource.PROFILE,)


class DataService:
    """
    Client-side data layer in front of the progress API.

    Failed fetches raise ``SignAgeAPIError`` and leave the cache untouched;
    a write invalidates the affected resources before it returns.
    """

    def __init__(self, client: SignAgeClient, cache: ResourceCache | None = None):
        self.client = client
        self.cache = cache or ResourceCache()

    async def _cached(self, resource: Resource, fetch: Callable[[], Awaitable[Any]]) -> Any:
        data = self.cache.get(resource)
        if data is not None:
            return data
        generation = self.cache.generation(resource)
        data = await fetch()
        # A write that finished while we were fetching may have made data stale
        if not self.cache.set(resource, data, generation=generation):
            logger.debug(f"Not caching {resource.value}: invalidated during fetch")
        return data

    # ========== Reads ==========

    async def get_profile(self) -> dict:
        """Full user record."""

        async def fetch() -> dict:
            return (await self.client.get_profile())["data"]

        return await self._cached(Resource.PROFILE, fetch)

    async def get_stats(self) -> dict:
        """The progress sub-record: counters, streaks and practice time."""

        async def fetch() -> dict:
            return (await self.client.get_progress())["data"]

        return await self._cached(Resource.STATS, fetch)

    async def get_completed_lessons(self) -> list[str]:
        async def fetch() -> list[str]:
            return (await self.client.get_completed_lessons())["lessons"]

        return await self._cached(Resource.COMPLETED_LESSONS, fetch)

    async def is_lesson_completed(self, lesson_id: str) -> bool:
        return lesson_id in await self.get_completed_lessons()

    async def get_streak_count(self) -> int:
        return (await self.get_stats()).get("streak", 0)

    async def batch_fetch(
        self,
        include_profile: bool = True,
        include_stats: bool = True,
        include_lessons: bool = True,
    ) -> dict[str, Any]:
        """Fetch several resources concurrently."""
        wanted: dict[str, Callable[[], Awaitable[Any]]] = {}
        if include_profile:
            wanted["profile"] = self.get_profile
        if include_stats:
            wanted["stats"] = self.get_stats
        if include_lessons:
            wanted["lessons"] = self.get_completed_lessons

        results = await asyncio.gather(*(fetch() for fetch in wanted.values()))
        return dict(zip(wanted.keys(), results))

    # ========== Writes ==========

    async def mark_lesson_completed(
        self,
        lesson_id: str,
        score: int = 0,
        stars: int = 0,
        signs_learned: int = 0,
    ) -> dict:
        result = await self.client.complete_lesson(lesson_id, score, stars, signs_learned)
        self.cache.invalidate(*LESSON_WRITE)
        return result

    async def update_today_progress(self, progress: float) -> dict:
        result = await self.client.update_today_progress(progress)
        self.cache.invalidate(*STATS_WRITE)
        return result

    async def update_streak(self) -> dict:
        result = await self.client.update_streak()
        self.cache.invalidate(*STATS_WRITE)
        return result

    async def add_practice_time(self, minutes: float) -> dict:
        result = await self.client.add_practice_time(minutes)
        self.cache.invalidate(*STATS_WRITE)
        return result

    async def update_settings(self, **settings: Any) -> dict:
        result = await self.client.update_settings(**settings)
        self.cache.invalidate(*PROFILE_WRITE)
        return result

    async def update_profile(self, display_name: str | None = None, photo_url: str | None = None) -> dict:
        result = await self.client.update_profile(display_name=display_name, photo_url=photo_url)
        self.cache.invalidate(*PROFILE_WRITE)
        return result

    # ========== Cache control ==========

    def invalidate(self, resource: Resource | None = None) -> None:
        """Drop one resource, or everything (e.g. on logout or user switch)."""
        if resource is None:
            logger.debug("Clearing client cache")
            self.cache.invalidate()
        else:
            self.cache.invalidate(resource)

    def cache_stats(self) -> dict[str, dict[str, Any]]:
        return self.cache.stats()
