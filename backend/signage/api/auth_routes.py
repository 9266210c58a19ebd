"""API routes for user records: registration, profile and settings."""

from typing import Any

from fastapi import APIRouter, Body, status
from pydantic import ValidationError

from signage.api.dependencies import Progress
from signage.core.errors import InvalidInputError
from signage.core.security import CurrentUser
from signage.models.progress import (
    MessageResponse,
    ProfileUpdateRequest,
    RecordResponse,
    RegisterRequest,
    SettingsResponse,
    UserResponse,
)
from signage.models.user import SettingsUpdate

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(
    user: CurrentUser,
    service: Progress,
    body: RegisterRequest | None = None,
):
    """Create the user's record on signup, or refresh its last login time."""
    display_name = (body.display_name if body else None) or user.name or "User"
    record, created = await service.create_or_touch_user(
        user.uid,
        user.email,
        display_name,
        email_verified=user.email_verified,
    )
    message = "User created successfully" if created else "User already exists, updated login time"
    return UserResponse(message=message, data=record)


@router.get("/profile", response_model=RecordResponse)
async def get_profile(user: CurrentUser, service: Progress):
    """Get the current user's record."""
    return RecordResponse(data=await service.get_user(user.uid))


@router.put("/profile", response_model=MessageResponse)
async def update_profile(user: CurrentUser, service: Progress, request: ProfileUpdateRequest):
    """Update display name and/or photo URL."""
    await service.update_profile(
        user.uid,
        display_name=request.display_name,
        photo_url=request.photo_url,
    )
    return MessageResponse(message="Profile updated")


@router.put("/settings", response_model=SettingsResponse)
async def update_settings(
    user: CurrentUser,
    service: Progress,
    patch: dict[str, Any] = Body(...),
):
    """Merge a partial settings patch. Unknown setting names are rejected."""
    try:
        update = SettingsUpdate.model_validate(patch)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" if err["loc"] else err["msg"]
            for err in e.errors()
        )
        raise InvalidInputError(f"Invalid settings: {problems}") from None

    settings = await service.update_settings(user.uid, update)
    return SettingsResponse(message="Settings updated", settings=settings)
