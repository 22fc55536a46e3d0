"""
Chat session schemas
"""
from pydantic import Field
from datetime import datetime
from typing import Optional

from phrasecoach.schemas.base import CamelModel
from phrasecoach.schemas.expression import ExpressionRead


class ChatSessionCreate(CamelModel):
    scenario: str = Field(..., min_length=1)


class ChatSessionRead(CamelModel):
    id: int
    scenario: str
    mode: str = "free"
    is_active: bool
    created_at: datetime
    ended_at: Optional[datetime] = None


class ChatMessageCreate(CamelModel):
    session_id: int
    content: str = Field(..., min_length=1)
    is_user: bool
    expression_used: Optional[int] = None
    is_correct: Optional[bool] = None


class ChatMessageRead(CamelModel):
    id: int
    session_id: int
    content: str
    is_user: bool
    expression_used: Optional[int] = None
    is_correct: Optional[bool] = None
    created_at: datetime


class ChatRespondRequest(CamelModel):
    session_id: int
    message: str = Field(..., min_length=1)


class ChatRespondResponse(CamelModel):
    """Tutor reply plus expression-usage detection for one user message"""
    response: str
    suggestion_prompt: str
    used_expression: Optional[int] = None
    is_correct: bool = False


# Guided sessions

class GuidedSessionCreate(CamelModel):
    """Expressions to practice, in order"""
    expression_ids: list[int] = Field(..., min_length=1)


class SessionProgress(CamelModel):
    completed: int
    total: int
    current_expression: Optional[ExpressionRead] = None
    expressions: list[ExpressionRead] = []


class SessionSummary(CamelModel):
    completed_expressions: int
    total_expressions: int
    correct_usages: int
    total_attempts: int
    accuracy: float
    session_duration_seconds: Optional[float] = None


class GuidedSessionStarted(CamelModel):
    session_id: int
    scenario: str
    initial_message: str
    message_id: int
    progress: SessionProgress


class GuidedRespondRequest(CamelModel):
    session_id: int
    message: str = Field(..., min_length=1)


class GuidedRespondResponse(CamelModel):
    """Partner reply to one answer, plus the next target or the final summary"""
    response: str
    message_id: int
    used_expression: Optional[int] = None
    is_correct: bool
    session_complete: bool
    next_expression: Optional[ExpressionRead] = None
    next_scenario: Optional[str] = None
    next_message: Optional[str] = None
    progress: SessionProgress
    summary: Optional[SessionSummary] = None


class GuidedSessionReport(CamelModel):
    progress: SessionProgress
    summary: Optional[SessionSummary] = None
