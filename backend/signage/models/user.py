"""User record data models."""

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Theme(str, Enum):
    LIGHT = "light"
    DARK = "dark"


class DifficultyLevel(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class CamelModel(BaseModel):
    """Base model stored and served with camelCase field names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UserProgress(CamelModel):
    """Learning counters for one user."""

    completed_lessons: list[str] = Field(default_factory=list)
    current_lesson: str = "lesson_1"
    in_progress_lessons: list[str] = Field(default_factory=list)

    # Aggregate counters
    total_score: int = 0
    total_stars: int = 0
    lessons_completed: int = 0
    signs_learned: int = 0

    # Streak tracking
    streak: int = 0
    longest_streak: int = 0
    last_practice_date: datetime | None = None

    # Daily and practice time
    today_progress: int = 0
    total_practice_time: float = 0
    practice_sessions_count: int = 0

    average_accuracy: float = 0
    best_accuracy: float = 0


class UserSettings(CamelModel):
    """Per-user preferences."""

    practice_reminders: bool = True
    achievement_notifications: bool = True
    sound_enabled: bool = True
    music_enabled: bool = False
    haptic_enabled: bool = True
    theme: Theme = Theme.LIGHT
    language: str = "en"
    daily_goal: int = 20
    difficulty_level: DifficultyLevel = DifficultyLevel.BEGINNER


class SettingsUpdate(CamelModel):
    """Partial settings patch. Unknown keys and wrong types are rejected."""

    model_config = ConfigDict(extra="forbid", strict=True)

    practice_reminders: bool | None = None
    achievement_notifications: bool | None = None
    sound_enabled: bool | None = None
    music_enabled: bool | None = None
    haptic_enabled: bool | None = None
    theme: Theme | None = Field(None, strict=False)
    language: str | None = Field(None, min_length=2, max_length=16)
    daily_goal: int | None = Field(None, ge=1, le=1440)
    difficulty_level: DifficultyLevel | None = Field(None, strict=False)

    @model_validator(mode="after")
    def reject_nulls(self) -> "SettingsUpdate":
        # None only marks a field as absent; an explicit null is not a setting
        nulls = sorted(name for name in self.model_fields_set if getattr(self, name) is None)
        if nulls:
            raise ValueError(f"settings cannot be null: {', '.join(to_camel(n) for n in nulls)}")
        return self


class UserRecord(CamelModel):
    """Persisted user document."""

    user_id: str
    email: str = ""
    display_name: str = "User"
    photo_url: str | None = Field(None, alias="photoURL")

    # Timestamps
    created_at: datetime = Field(default_factory=utc_now)
    last_login_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    progress: UserProgress = Field(default_factory=UserProgress)
    settings: UserSettings = Field(default_factory=UserSettings)

    # Account metadata
    account_type: str = "email"
    is_email_verified: bool = False
    is_premium: bool = False
    premium_until: datetime | None = None

    @classmethod
    def new(
        cls,
        user_id: str,
        email: str | None,
        display_name: str | None,
        now: datetime,
        email_verified: bool = False,
    ) -> "UserRecord":
        """Build a record with the default schema and all timestamps set to ``now``."""
        return cls(
            user_id=user_id,
            email=email or "",
            display_name=display_name or "User",
            created_at=now,
            last_login_at=now,
            updated_at=now,
            is_email_verified=email_verified,
        )
