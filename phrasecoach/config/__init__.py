"""
Configuration package for the Phrase Coach backend.
"""

from .settings import (
    Settings,
    Environment,
    LogLevel,
    SimilarityAlgorithm,
    DatabaseSettings,
    LLMSettings,
    PracticeSettings,
    SecuritySettings,
    get_settings,
    reload_settings,
)

__all__ = [
    "Settings",
    "Environment",
    "LogLevel",
    "SimilarityAlgorithm",
    "DatabaseSettings",
    "LLMSettings",
    "PracticeSettings",
    "SecuritySettings",
    "get_settings",
    "reload_settings",
]
