"""Progress request, result and response models."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, StrictFloat, StrictInt

from signage.models.user import CamelModel, UserProgress, UserRecord, UserSettings


# ========== Requests ==========

class RegisterRequest(CamelModel):
    display_name: str | None = None


class ProfileUpdateRequest(CamelModel):
    display_name: str | None = None
    photo_url: str | None = Field(None, alias="photoURL")


class LessonCompletionRequest(CamelModel):
    lesson_id: str = Field(min_length=1)
    score: int = Field(0, ge=0)
    stars: int = Field(0, ge=0)
    signs_learned: int = Field(0, ge=0)


class TodayProgressRequest(BaseModel):
    progress: StrictInt | StrictFloat


class PracticeTimeRequest(BaseModel):
    minutes: StrictInt | StrictFloat


# ========== Service results ==========

class StreakUpdate(BaseModel):
    """Outcome of a streak recomputation."""

    streak: int
    longest_streak: int


class StreakInfo(StreakUpdate):
    last_practice_date: datetime | None = None


class LessonCompletionResult(BaseModel):
    already_completed: bool
    streak: int
    longest_streak: int


# ========== Responses ==========

class Envelope(CamelModel):
    success: bool = True


class MessageResponse(Envelope):
    message: str


class RecordResponse(Envelope):
    data: UserRecord


class UserResponse(RecordResponse):
    message: str


class ProgressResponse(Envelope):
    data: UserProgress


class SettingsResponse(MessageResponse):
    settings: UserSettings


class CompletedLessonsResponse(Envelope):
    lessons: list[str] = Field(default_factory=list)
    error: str | None = None


class LessonCompletionResponse(MessageResponse):
    streak: int
    longest_streak: int


class TodayProgressResponse(Envelope):
    today_progress: int


class PracticeTimeResponse(Envelope):
    total_practice_time: float
    practice_sessions_count: int


class StreakResponse(Envelope):
    streak: int
    longest_streak: int
    last_practice_date: datetime | None = None


def error_body(message: str, **extra: Any) -> dict[str, Any]:
    """Uniform failure envelope."""
    return {"success": False, "error": message, **extra}
