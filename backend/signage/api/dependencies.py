"""Shared FastAPI dependencies."""

from typing import Annotated

from fastapi import Depends

from signage.services.progress import ProgressService, get_progress_service

Progress = Annotated[ProgressService, Depends(get_progress_service)]
