"""Document store for user records (Redis with in-memory fallback)."""

import asyncio
from typing import Callable, TypeVar

import redis.asyncio as redis
from redis.exceptions import RedisError, WatchError

from signage.core.config import StorageBackend, get_settings
from signage.core.errors import StorageError, UserNotFoundError
from signage.core.logging import get_logger
from signage.models.user import UserRecord

logger = get_logger(__name__)

T = TypeVar("T")


class UserStore:
    """
    One JSON document per user.

    Mutations are read-modify-write cycles: under Redis they run inside an
    optimistic WATCH/MULTI/EXEC transaction, in memory under a process lock.
    """

    def __init__(
        self,
        redis_url: str | None = None,
        key_prefix: str = "user",
        max_retries: int = 5,
    ):
        self.redis_url = redis_url
        self.key_prefix = key_prefix
        self.max_retries = max_retries
        self._redis: redis.Redis | None = None
        self._redis_checked = False

        # In-memory fallback if Redis unavailable
        self._documents: dict[str, str] = {}
        self._lock = asyncio.Lock()

    @classmethod
    def from_settings(cls) -> "UserStore":
        settings = get_settings()
        redis_url = settings.redis_url if settings.storage_backend == StorageBackend.REDIS else None
        return cls(
            redis_url=redis_url,
            key_prefix=settings.store_key_prefix,
            max_retries=settings.store_max_retries,
        )

    def _key(self, user_id: str) -> str:
        return f"{self.key_prefix}:{user_id}"

    async def _get_redis(self) -> redis.Redis | None:
        """Get Redis connection (lazy init, checked once)."""
        if self._redis_checked:
            return self._redis
        self._redis_checked = True
        if not self.redis_url:
            return None
        try:
            self._redis = redis.from_url(self.redis_url, decode_responses=True)
            await self._redis.ping()
        except RedisError as e:
            logger.warning(f"Redis unavailable, using in-memory store: {e}")
            self._redis = None
        return self._redis

    async def ping(self) -> str:
        """Report which backend is serving records."""
        r = await self._get_redis()
        if r is None:
            return "memory"
        try:
            await r.ping()
        except RedisError:
            return "disconnected"
        return "connected"

    async def get(self, user_id: str) -> UserRecord | None:
        """Load a user record, or None if it does not exist."""
        r = await self._get_redis()
        if r is None:
            raw = self._documents.get(self._key(user_id))
        else:
            try:
                raw = await r.get(self._key(user_id))
            except RedisError as e:
                raise StorageError(f"Failed to read user record: {e}") from e
        if raw is None:
            return None
        return UserRecord.model_validate_json(raw)

    async def create_if_absent(self, record: UserRecord) -> bool:
        """Store ``record`` unless one already exists. Returns True if created."""
        key = self._key(record.user_id)
        payload = record.model_dump_json(by_alias=True)

        r = await self._get_redis()
        if r is None:
            async with self._lock:
                if key in self._documents:
                    return False
                self._documents[key] = payload
                return True

        try:
            return bool(await r.set(key, payload, nx=True))
        except RedisError as e:
            raise StorageError(f"Failed to create user record: {e}") from e

    async def update(
        self,
        user_id: str,
        mutator: Callable[[UserRecord], T],
    ) -> tuple[UserRecord, T]:
        """
        Apply ``mutator`` to the stored record atomically.

        The mutator edits the record in place and may return a value that is
        passed back to the caller. It may run more than once when a
        concurrent writer wins the race, so it must not have side effects
        beyond the record. Raises UserNotFoundError if the record is absent.
        """
        key = self._key(user_id)

        r = await self._get_redis()
        if r is None:
            async with self._lock:
                raw = self._documents.get(key)
                if raw is None:
                    raise UserNotFoundError(user_id)
                record = UserRecord.model_validate_json(raw)
                result = mutator(record)
                self._documents[key] = record.model_dump_json(by_alias=True)
                return record, result

        try:
            async with r.pipeline(transaction=True) as pipe:
                for attempt in range(1, self.max_retries + 1):
                    try:
                        await pipe.watch(key)
                        raw = await pipe.get(key)
                        if raw is None:
                            raise UserNotFoundError(user_id)
                        record = UserRecord.model_validate_json(raw)
                        result = mutator(record)
                        pipe.multi()
                        pipe.set(key, record.model_dump_json(by_alias=True))
                        await pipe.execute()
                        return record, result
                    except WatchError:
                        logger.debug(
                            f"Concurrent write on {key}, retrying ({attempt}/{self.max_retries})"
                        )
                        await pipe.reset()
        except RedisError as e:
            raise StorageError(f"Failed to update user record: {e}") from e

        raise StorageError(f"Gave up updating user record after {self.max_retries} conflicts")

    async def close(self):
        if self._redis is not None:
            await self._redis.aclose()
