"""
User progress models - aggregate stats and achievement badges
"""
from sqlalchemy import Column, Integer, String, Text, Float, DateTime, Enum as SQLEnum, func
import enum

from phrasecoach.core.db import Base


class AchievementType(str, enum.Enum):
    """Badge families"""
    STREAK = "streak"
    PERFECT = "perfect"
    LEARNER = "learner"
    CONVERSATIONALIST = "conversationalist"


class UserStats(Base):
    """Single-row aggregate of practice activity"""
    __tablename__ = "user_stats"

    id = Column(Integer, primary_key=True)
    total_sessions = Column(Integer, nullable=False, default=0)
    current_streak = Column(Integer, nullable=False, default=0)
    last_practice_date = Column(DateTime(timezone=True), nullable=True)
    overall_accuracy = Column(Float, nullable=False, default=0.0)


class Achievement(Base):
    __tablename__ = "achievements"

    id = Column(Integer, primary_key=True, index=True)
    type = Column(SQLEnum(AchievementType), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    unlocked_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Achievement id={self.id} type={self.type}>"
