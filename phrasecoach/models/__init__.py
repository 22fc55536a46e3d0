"""
ORM models for the Phrase Coach backend.

Importing this package registers every table on the shared declarative base.
"""

from .category import Category, DEFAULT_CATEGORY_ICON, DEFAULT_CATEGORY_COLOR
from .expression import Expression
from .chat import ChatSession, ChatMessage, SessionTarget, FREE_MODE, GUIDED_MODE
from .progress import UserStats, Achievement, AchievementType

__all__ = [
    "Category",
    "DEFAULT_CATEGORY_ICON",
    "DEFAULT_CATEGORY_COLOR",
    "Expression",
    "ChatSession",
    "ChatMessage",
    "SessionTarget",
    "FREE_MODE",
    "GUIDED_MODE",
    "UserStats",
    "Achievement",
    "AchievementType",
]
