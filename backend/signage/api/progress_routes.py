"""API routes for learning progress."""

from fastapi import APIRouter

from signage.api.dependencies import Progress
from signage.core.errors import StorageError
from signage.core.logging import get_logger
from signage.core.security import CurrentUser
from signage.models.progress import (
    CompletedLessonsResponse,
    LessonCompletionRequest,
    LessonCompletionResponse,
    PracticeTimeRequest,
    PracticeTimeResponse,
    ProgressResponse,
    TodayProgressRequest,
    TodayProgressResponse,
)

router = APIRouter(prefix="/progress", tags=["progress"])
logger = get_logger(__name__)


@router.get("", response_model=ProgressResponse)
async def get_progress(user: CurrentUser, service: Progress):
    """Get the user's complete learning progress."""
    return ProgressResponse(data=await service.get_progress(user.uid))


@router.get(
    "/completed-lessons",
    response_model=CompletedLessonsResponse,
    response_model_exclude_none=True,
)
async def get_completed_lessons(user: CurrentUser, service: Progress):
    """List completed lesson ids. Always answers with a list, even on storage errors."""
    try:
        lessons = await service.get_completed_lessons(user.uid)
    except StorageError as e:
        logger.error(f"Error getting completed lessons: {e}", extra={"user_id": user.uid})
        return CompletedLessonsResponse(success=False, error=e.message, lessons=[])
    return CompletedLessonsResponse(lessons=lessons)


@router.post("/lesson", response_model=LessonCompletionResponse)
async def complete_lesson(user: CurrentUser, service: Progress, request: LessonCompletionRequest):
    """Mark a lesson as completed."""
    result = await service.mark_lesson_completed(
        user.uid,
        request.lesson_id,
        score=request.score,
        stars=request.stars,
        signs_learned=request.signs_learned,
    )
    message = "Lesson already completed" if result.already_completed else "Lesson completed successfully"
    return LessonCompletionResponse(
        message=message,
        streak=result.streak,
        longest_streak=result.longest_streak,
    )


@router.put("/today", response_model=TodayProgressResponse)
async def update_today_progress(user: CurrentUser, service: Progress, request: TodayProgressRequest):
    """Set today's progress percentage."""
    value = await service.update_today_progress(user.uid, request.progress)
    return TodayProgressResponse(today_progress=value)


@router.post("/practice-time", response_model=PracticeTimeResponse)
async def add_practice_time(user: CurrentUser, service: Progress, request: PracticeTimeRequest):
    """Add practice time in minutes."""
    progress = await service.add_practice_time(user.uid, request.minutes)
    return PracticeTimeResponse(
        total_practice_time=progress.total_practice_time,
        practice_sessions_count=progress.practice_sessions_count,
    )
