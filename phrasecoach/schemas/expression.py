"""
Expression and category schemas for API requests/responses
"""
from pydantic import Field
from datetime import datetime
from typing import Optional

from phrasecoach.schemas.base import CamelModel


class CategoryCreate(CamelModel):
    """Schema for creating a category"""
    name: str = Field(..., min_length=1, max_length=128)
    icon: Optional[str] = Field(None, max_length=32)
    color: Optional[str] = Field(None, max_length=64)


class CategoryUpdate(CamelModel):
    """Schema for updating a category"""
    name: Optional[str] = Field(None, min_length=1, max_length=128)
    icon: Optional[str] = Field(None, max_length=32)
    color: Optional[str] = Field(None, max_length=64)


class CategoryRead(CamelModel):
    id: int
    name: str
    icon: str
    color: str
    created_at: datetime


class ExpressionCreate(CamelModel):
    """Schema for creating an expression"""
    text: str = Field(..., min_length=1)
    category_id: Optional[int] = None


class ExpressionUpdate(CamelModel):
    """Schema for updating an expression; only provided fields change"""
    text: Optional[str] = Field(None, min_length=1)
    category_id: Optional[int] = None


class ExpressionRead(CamelModel):
    id: int
    text: str
    category_id: Optional[int] = None
    correct_count: int = 0
    total_count: int = 0
    last_used: Optional[datetime] = None
    created_at: datetime


class AttemptRecord(CamelModel):
    """Outcome of one practice attempt"""
    is_correct: bool


class ExpressionStatistics(CamelModel):
    """Aggregated usage across all expressions"""
    total_expressions: int = 0
    total_usage: int = 0
    total_correct: int = 0
    overall_accuracy: float = 0.0
    most_used: list[ExpressionRead] = []
    recently_used: list[ExpressionRead] = []
