"""
Category API endpoints
"""
from fastapi import APIRouter, Depends, status

from phrasecoach.core.dependencies import get_expression_service
from phrasecoach.schemas.base import Envelope
from phrasecoach.schemas.expression import CategoryCreate, CategoryRead, CategoryUpdate
from phrasecoach.services.expression_service import ExpressionService

router = APIRouter(prefix="/categories", tags=["categories"])


@router.get("", response_model=Envelope[list[CategoryRead]])
def list_categories(service: ExpressionService = Depends(get_expression_service)):
    categories = service.list_categories()
    return Envelope(data=[CategoryRead.model_validate(c) for c in categories])


@router.post("", response_model=Envelope[CategoryRead], status_code=status.HTTP_201_CREATED)
def create_category(
    data: CategoryCreate,
    service: ExpressionService = Depends(get_expression_service),
):
    """
    Create a category

    - **name**: Display name
    - **icon**: Optional emoji icon (default 📝)
    - **color**: Optional gradient classes
    """
    category = service.create_category(data)
    return Envelope(data=CategoryRead.model_validate(category))


@router.put("/{category_id}", response_model=Envelope[CategoryRead])
def update_category(
    category_id: int,
    data: CategoryUpdate,
    service: ExpressionService = Depends(get_expression_service),
):
    category = service.update_category(category_id, data)
    return Envelope(data=CategoryRead.model_validate(category))


@router.delete("/{category_id}", response_model=Envelope[dict])
def delete_category(
    category_id: int,
    service: ExpressionService = Depends(get_expression_service),
):
    """
    Delete a category

    Its expressions are kept and become uncategorized.
    """
    reassigned = service.delete_category(category_id)
    return Envelope(data={"deleted": category_id, "reassignedExpressions": reassigned})
