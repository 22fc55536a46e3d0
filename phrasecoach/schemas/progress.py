from pydantic import Field
from datetime import datetime
from typing import Optional

from phrasecoach.models.progress import AchievementType
from phrasecoach.schemas.base import CamelModel


class UserStatsRead(CamelModel):
    total_sessions: int = 0
    current_streak: int = 0
    last_practice_date: Optional[datetime] = None
    overall_accuracy: float = 0.0


class UserStatsUpdate(CamelModel):
    total_sessions: Optional[int] = Field(None, ge=0)
    current_streak: Optional[int] = Field(None, ge=0)
    last_practice_date: Optional[datetime] = None
    overall_accuracy: Optional[float] = Field(None, ge=0.0, le=100.0)


class AchievementCreate(CamelModel):
    type: AchievementType
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)


class AchievementRead(CamelModel):
    id: int
    type: AchievementType
    title: str
    description: str
    unlocked_at: datetime
