"""
Expression API endpoints - expression CRUD, practice counters and usage stats
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query, status

from phrasecoach.core.dependencies import get_expression_service, get_progress_service
from phrasecoach.schemas.base import Envelope, Message
from phrasecoach.schemas.expression import (
    AttemptRecord,
    ExpressionCreate,
    ExpressionRead,
    ExpressionStatistics,
    ExpressionUpdate,
)
from phrasecoach.services.expression_service import ExpressionService
from phrasecoach.services.progress_service import ProgressService

router = APIRouter(prefix="/expressions", tags=["expressions"])


@router.get("", response_model=Envelope[list[ExpressionRead]])
def list_expressions(
    category_id: Optional[int] = Query(None, alias="categoryId"),
    service: ExpressionService = Depends(get_expression_service),
):
    """
    List expressions, newest first

    - **categoryId**: Optional category filter
    """
    expressions = service.list_expressions(category_id)
    return Envelope(data=[ExpressionRead.model_validate(e) for e in expressions])


@router.post("", response_model=Envelope[ExpressionRead], status_code=status.HTTP_201_CREATED)
def create_expression(
    data: ExpressionCreate,
    service: ExpressionService = Depends(get_expression_service),
):
    """
    Create a new expression

    - **text**: Phrase to practice
    - **categoryId**: Optional category
    """
    expression = service.create_expression(data)
    return Envelope(data=ExpressionRead.model_validate(expression))


@router.get("/stats", response_model=Envelope[ExpressionStatistics])
def get_expression_statistics(
    service: ExpressionService = Depends(get_expression_service),
):
    """
    Aggregate usage: totals, accuracy, most and recently used expressions
    """
    return Envelope(data=service.expression_statistics())


@router.get("/{expression_id}", response_model=Envelope[ExpressionRead])
def get_expression(
    expression_id: int,
    service: ExpressionService = Depends(get_expression_service),
):
    expression = service.get_expression(expression_id)
    return Envelope(data=ExpressionRead.model_validate(expression))


@router.put("/{expression_id}", response_model=Envelope[ExpressionRead])
def update_expression(
    expression_id: int,
    data: ExpressionUpdate,
    service: ExpressionService = Depends(get_expression_service),
):
    """
    Update an expression

    All fields optional - only provided fields will be updated
    """
    expression = service.update_expression(expression_id, data)
    return Envelope(data=ExpressionRead.model_validate(expression))


@router.delete("/{expression_id}", response_model=Envelope[Message])
def delete_expression(
    expression_id: int,
    service: ExpressionService = Depends(get_expression_service),
):
    service.delete_expression(expression_id)
    return Envelope(data=Message(message="Expression deleted"))


@router.patch("/{expression_id}/stats", response_model=Envelope[ExpressionRead])
def record_expression_attempt(
    expression_id: int,
    attempt: AttemptRecord,
    service: ExpressionService = Depends(get_expression_service),
    progress: ProgressService = Depends(get_progress_service),
):
    """
    Record one practice attempt for an expression

    - **isCorrect**: Whether the attempt was correct
    """
    expression = service.record_attempt(expression_id, attempt.is_correct)
    progress.record_practice()
    return Envelope(data=ExpressionRead.model_validate(expression))
