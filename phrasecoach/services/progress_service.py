"""
Progress Service - user stats, practice streak and achievement badges
"""
import logging
from typing import Optional, List
from datetime import datetime, timedelta
from sqlalchemy.orm import Session
from sqlalchemy import select, func

from phrasecoach.models.expression import Expression
from phrasecoach.models.progress import UserStats, Achievement, AchievementType
from phrasecoach.schemas.progress import UserStatsUpdate, AchievementCreate

logger = logging.getLogger(__name__)

STREAK_BADGE_DAYS = 7
LEARNER_BADGE_CORRECT = 10
CONVERSATIONALIST_BADGE_SESSIONS = 5
PERFECT_BADGE_ATTEMPTS = 5

CLEARABLE_STATS_FIELDS = {"last_practice_date"}

BADGES = {
    AchievementType.STREAK: (
        "On Fire",
        f"Practiced {STREAK_BADGE_DAYS} days in a row",
    ),
    AchievementType.LEARNER: (
        "Eager Learner",
        f"Answered {LEARNER_BADGE_CORRECT} practice prompts correctly",
    ),
    AchievementType.CONVERSATIONALIST: (
        "Conversationalist",
        f"Completed {CONVERSATIONALIST_BADGE_SESSIONS} chat sessions",
    ),
    AchievementType.PERFECT: (
        "Perfect Score",
        f"Got an expression right {PERFECT_BADGE_ATTEMPTS} times out of {PERFECT_BADGE_ATTEMPTS}",
    ),
}


class ProgressService:
    """Tracks aggregate practice progress and unlocks badges"""

    def __init__(self, db: Session):
        self.db = db

    def get_stats(self) -> UserStats:
        """Get the stats row, creating zeroed defaults on first access"""
        stats = self.db.execute(select(UserStats).order_by(UserStats.id).limit(1)).scalar_one_or_none()
        if stats is None:
            stats = UserStats(
                total_sessions=0,
                current_streak=0,
                last_practice_date=None,
                overall_accuracy=0.0,
            )
            self.db.add(stats)
            self.db.commit()
            self.db.refresh(stats)
        return stats

    def update_stats(self, data: UserStatsUpdate) -> UserStats:
        stats = self.get_stats()
        for field, value in data.model_dump(exclude_unset=True).items():
            # null clears the practice date; the counters cannot be null
            if value is not None or field in CLEARABLE_STATS_FIELDS:
                setattr(stats, field, value)
        self.db.commit()
        self.db.refresh(stats)
        return stats

    def increment_sessions(self) -> List[Achievement]:
        stats = self.get_stats()
        stats.total_sessions += 1
        self.db.commit()
        return self.check_achievements()

    def record_practice(self, now: Optional[datetime] = None) -> List[Achievement]:
        """
        Update streak and accuracy after a practice attempt

        The streak grows when the previous practice was the day before,
        holds within the same day and otherwise restarts at 1.

        Returns:
            Achievements unlocked by this attempt
        """
        now = now or datetime.utcnow()
        stats = self.get_stats()

        last = stats.last_practice_date
        if last is None:
            stats.current_streak = 1
        else:
            gap = (now.date() - last.date()).days
            if gap == 0:
                stats.current_streak = max(stats.current_streak, 1)
            elif gap == 1:
                stats.current_streak += 1
            else:
                stats.current_streak = 1
        stats.last_practice_date = now
        stats.overall_accuracy = self._overall_accuracy()

        self.db.commit()
        return self.check_achievements()

    def _overall_accuracy(self) -> float:
        total, correct = self.db.execute(
            select(
                func.coalesce(func.sum(Expression.total_count), 0),
                func.coalesce(func.sum(Expression.correct_count), 0),
            )
        ).one()
        return (correct / total * 100) if total else 0.0

    # Achievements

    def list_achievements(self) -> List[Achievement]:
        stmt = select(Achievement).order_by(Achievement.unlocked_at.desc(), Achievement.id.desc())
        return list(self.db.execute(stmt).scalars().all())

    def create_achievement(self, data: AchievementCreate) -> Achievement:
        achievement = Achievement(
            type=data.type,
            title=data.title,
            description=data.description,
        )
        self.db.add(achievement)
        self.db.commit()
        self.db.refresh(achievement)
        return achievement

    def _has_achievement(self, achievement_type: AchievementType) -> bool:
        stmt = select(func.count(Achievement.id)).where(Achievement.type == achievement_type)
        return (self.db.execute(stmt).scalar() or 0) > 0

    def check_achievements(self) -> List[Achievement]:
        """Unlock every badge whose rule now holds; each type unlocks once."""
        stats = self.get_stats()
        total_correct = self.db.execute(
            select(func.coalesce(func.sum(Expression.correct_count), 0))
        ).scalar() or 0
        perfect_expressions = self.db.execute(
            select(func.count(Expression.id)).where(
                Expression.total_count >= PERFECT_BADGE_ATTEMPTS,
                Expression.correct_count == Expression.total_count,
            )
        ).scalar() or 0

        earned = {
            AchievementType.STREAK: stats.current_streak >= STREAK_BADGE_DAYS,
            AchievementType.LEARNER: total_correct >= LEARNER_BADGE_CORRECT,
            AchievementType.CONVERSATIONALIST: stats.total_sessions >= CONVERSATIONALIST_BADGE_SESSIONS,
            AchievementType.PERFECT: perfect_expressions > 0,
        }

        unlocked = []
        for achievement_type, is_earned in earned.items():
            if not is_earned or self._has_achievement(achievement_type):
                continue
            title, description = BADGES[achievement_type]
            achievement = Achievement(type=achievement_type, title=title, description=description)
            self.db.add(achievement)
            unlocked.append(achievement)
            logger.info(f"Achievement unlocked: {achievement_type.value}")

        if unlocked:
            self.db.commit()
            for achievement in unlocked:
                self.db.refresh(achievement)
        return unlocked
