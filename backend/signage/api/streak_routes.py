"""API routes for practice streaks."""

from fastapi import APIRouter

from signage.api.dependencies import Progress
from signage.core.security import CurrentUser
from signage.models.progress import StreakResponse

router = APIRouter(prefix="/streak", tags=["streak"])


@router.get("", response_model=StreakResponse)
async def get_streak(user: CurrentUser, service: Progress):
    """Get current streak info."""
    info = await service.get_streak(user.uid)
    return StreakResponse(
        streak=info.streak,
        longest_streak=info.longest_streak,
        last_practice_date=info.last_practice_date,
    )


@router.post("/update", response_model=StreakResponse, response_model_exclude={"last_practice_date"})
async def update_streak(user: CurrentUser, service: Progress):
    """Register a practice event for today and recompute the streak."""
    update = await service.update_streak(user.uid)
    return StreakResponse(streak=update.streak, longest_streak=update.longest_streak)
