"""Progress aggregation service: lesson completion, streaks, practice stats."""

import math
from datetime import datetime, timezone, tzinfo
from functools import lru_cache
from typing import Callable

from signage.core.config import get_settings
from signage.core.errors import InvalidInputError, UserNotFoundError
from signage.core.logging import get_logger
from signage.models.progress import (
    LessonCompletionResult,
    StreakInfo,
    StreakUpdate,
)
from signage.models.user import SettingsUpdate, UserProgress, UserRecord, UserSettings
from signage.services.store import UserStore
from signage.services.streak import compute_streak

logger = get_logger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ProgressService:
    """Applies learning events to per-user progress records."""

    def __init__(
        self,
        store: UserStore,
        clock: Callable[[], datetime] = _utc_now,
        streak_tz: tzinfo = timezone.utc,
    ):
        self.store = store
        self.clock = clock
        self.streak_tz = streak_tz

    # ========== Users ==========

    async def create_or_touch_user(
        self,
        user_id: str,
        email: str | None,
        display_name: str | None,
        email_verified: bool = False,
    ) -> tuple[UserRecord, bool]:
        """Create the user with default progress, or refresh its login time if it exists."""
        now = self.clock()
        record = UserRecord.new(user_id, email, display_name, now, email_verified=email_verified)
        if await self.store.create_if_absent(record):
            logger.info("Created user record", extra={"user_id": user_id})
            return record, True

        def touch(existing: UserRecord) -> None:
            existing.last_login_at = now
            existing.updated_at = now

        record, _ = await self.store.update(user_id, touch)
        return record, False

    async def get_user(self, user_id: str) -> UserRecord:
        record = await self.store.get(user_id)
        if record is None:
            raise UserNotFoundError(user_id)
        return record

    async def update_profile(
        self,
        user_id: str,
        display_name: str | None = None,
        photo_url: str | None = None,
    ) -> UserRecord:
        """Update display name and/or photo. Empty values are ignored."""
        if not display_name and not photo_url:
            raise InvalidInputError("No profile fields to update")
        now = self.clock()

        def apply(record: UserRecord) -> None:
            if display_name:
                record.display_name = display_name
            if photo_url:
                record.photo_url = photo_url
            record.updated_at = now

        record, _ = await self.store.update(user_id, apply)
        return record

    async def update_settings(self, user_id: str, patch: SettingsUpdate) -> UserSettings:
        """Merge the explicitly provided settings into the stored ones."""
        changes = patch.model_dump(exclude_unset=True)
        if not changes:
            raise InvalidInputError("No settings to update")
        now = self.clock()

        def apply(record: UserRecord) -> UserSettings:
            record.settings = UserSettings.model_validate({**record.settings.model_dump(), **changes})
            record.updated_at = now
            return record.settings

        _, settings = await self.store.update(user_id, apply)
        logger.info(f"Updated settings: {sorted(changes)}", extra={"user_id": user_id})
        return settings

    # ========== Progress ==========

    async def get_progress(self, user_id: str) -> UserProgress:
        return (await self.get_user(user_id)).progress

    async def get_completed_lessons(self, user_id: str) -> list[str]:
        """Completed lesson ids in completion order; empty for unknown users."""
        record = await self.store.get(user_id)
        if record is None:
            return []
        return list(record.progress.completed_lessons)

    async def mark_lesson_completed(
        self,
        user_id: str,
        lesson_id: str,
        score: int = 0,
        stars: int = 0,
        signs_learned: int = 0,
    ) -> LessonCompletionResult:
        """
        Record a lesson completion.

        Counter increments and the streak recomputation are written in the
        same transaction; the streak is derived from the last practice date
        as it was before this completion. Completing a lesson that is
        already recorded changes nothing.
        """
        if not lesson_id:
            raise InvalidInputError("lessonId is required")
        if min(score, stars, signs_learned) < 0:
            raise InvalidInputError("score, stars and signsLearned must not be negative")
        now = self.clock()

        def apply(record: UserRecord) -> LessonCompletionResult:
            progress = record.progress
            if lesson_id in progress.completed_lessons:
                return LessonCompletionResult(
                    already_completed=True,
                    streak=progress.streak,
                    longest_streak=progress.longest_streak,
                )

            progress.completed_lessons.append(lesson_id)
            progress.total_score += score
            progress.total_stars += stars
            progress.signs_learned += signs_learned
            progress.lessons_completed = len(progress.completed_lessons)

            update = self._advance_streak(progress, now)
            record.updated_at = now
            return LessonCompletionResult(
                already_completed=False,
                streak=update.streak,
                longest_streak=update.longest_streak,
            )

        _, result = await self.store.update(user_id, apply)
        if result.already_completed:
            logger.info("Lesson already completed", extra={"user_id": user_id, "lesson_id": lesson_id})
        else:
            logger.info(
                f"Lesson completed, streak={result.streak}",
                extra={"user_id": user_id, "lesson_id": lesson_id},
            )
        return result

    async def update_today_progress(self, user_id: str, percent: float) -> int:
        """Set today's progress percentage, clamped to 0..100."""
        if isinstance(percent, bool) or not isinstance(percent, (int, float)):
            raise InvalidInputError("progress must be a number")
        if isinstance(percent, int):
            # Ints of any size clamp without a float conversion
            value = max(0, min(percent, 100))
        elif math.isfinite(percent):
            value = max(0, min(round(percent), 100))
        else:
            raise InvalidInputError("progress must be a number")
        now = self.clock()

        def apply(record: UserRecord) -> None:
            record.progress.today_progress = value
            record.updated_at = now

        await self.store.update(user_id, apply)
        return value

    async def add_practice_time(self, user_id: str, minutes: float) -> UserProgress:
        """Add one practice session of ``minutes`` to the running totals."""
        if isinstance(minutes, bool) or not isinstance(minutes, (int, float)):
            raise InvalidInputError("minutes must be a non-negative number")
        try:
            amount = float(minutes)
        except OverflowError:
            raise InvalidInputError("minutes is too large") from None
        if not math.isfinite(amount) or amount < 0:
            raise InvalidInputError("minutes must be a non-negative number")
        now = self.clock()

        def apply(record: UserRecord) -> UserProgress:
            total = record.progress.total_practice_time + amount
            if not math.isfinite(total):
                raise InvalidInputError("minutes is too large")
            record.progress.total_practice_time = total
            record.progress.practice_sessions_count += 1
            record.updated_at = now
            return record.progress

        _, progress = await self.store.update(user_id, apply)
        return progress

    # ========== Streak ==========

    async def update_streak(self, user_id: str) -> StreakUpdate:
        """Register a practice event now and recompute the streak."""
        now = self.clock()

        def apply(record: UserRecord) -> StreakUpdate:
            update = self._advance_streak(record.progress, now)
            record.updated_at = now
            return update

        _, update = await self.store.update(user_id, apply)
        logger.info(
            f"Streak updated: {update.streak} (longest {update.longest_streak})",
            extra={"user_id": user_id},
        )
        return update

    async def get_streak(self, user_id: str) -> StreakInfo:
        progress = await self.get_progress(user_id)
        return StreakInfo(
            streak=progress.streak,
            longest_streak=progress.longest_streak,
            last_practice_date=progress.last_practice_date,
        )

    def _advance_streak(self, progress: UserProgress, now: datetime) -> StreakUpdate:
        update = compute_streak(
            progress.last_practice_date,
            progress.streak,
            progress.longest_streak,
            now,
            self.streak_tz,
        )
        progress.streak = update.streak
        progress.longest_streak = update.longest_streak
        progress.last_practice_date = now
        return update


@lru_cache
def get_progress_service() -> ProgressService:
    """Get the process-wide service instance."""
    settings = get_settings()
    return ProgressService(UserStore.from_settings(), streak_tz=settings.streak_zone)
