"""
Progress API endpoints - user stats and achievements
"""
from fastapi import APIRouter, Depends, status

from phrasecoach.core.dependencies import get_progress_service
from phrasecoach.schemas.base import Envelope
from phrasecoach.schemas.progress import (
    AchievementCreate,
    AchievementRead,
    UserStatsRead,
    UserStatsUpdate,
)
from phrasecoach.services.progress_service import ProgressService

router = APIRouter(prefix="/stats", tags=["progress"])


@router.get("", response_model=Envelope[UserStatsRead])
def get_stats(service: ProgressService = Depends(get_progress_service)):
    """
    Get user statistics (created with zero defaults on first access)
    """
    return Envelope(data=UserStatsRead.model_validate(service.get_stats()))


@router.put("", response_model=Envelope[UserStatsRead])
def update_stats(
    data: UserStatsUpdate,
    service: ProgressService = Depends(get_progress_service),
):
    stats = service.update_stats(data)
    return Envelope(data=UserStatsRead.model_validate(stats))


@router.get("/achievements", response_model=Envelope[list[AchievementRead]])
def list_achievements(service: ProgressService = Depends(get_progress_service)):
    achievements = service.list_achievements()
    return Envelope(data=[AchievementRead.model_validate(a) for a in achievements])


@router.post("/achievements", response_model=Envelope[AchievementRead], status_code=status.HTTP_201_CREATED)
def create_achievement(
    data: AchievementCreate,
    service: ProgressService = Depends(get_progress_service),
):
    """
    Add an achievement

    - **type**: streak, perfect, learner or conversationalist
    """
    achievement = service.create_achievement(data)
    return Envelope(data=AchievementRead.model_validate(achievement))
