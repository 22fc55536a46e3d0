"""
Expression Service - expressions, categories and practice counters
"""
from typing import Optional, List
from datetime import datetime
from sqlalchemy.orm import Session
from sqlalchemy import select, update, func

from phrasecoach.core.exceptions import InvalidArgumentError, NotFoundError
from phrasecoach.models.category import Category, DEFAULT_CATEGORY_ICON, DEFAULT_CATEGORY_COLOR
from phrasecoach.models.expression import Expression
from phrasecoach.schemas.expression import (
    CategoryCreate,
    CategoryUpdate,
    ExpressionCreate,
    ExpressionUpdate,
    ExpressionRead,
    ExpressionStatistics,
)

DEFAULT_CATEGORIES = [
    ("Greetings & Introductions", "👋", "from-blue-500 to-purple-500"),
    ("Restaurant & Food", "🍽️", "from-green-500 to-teal-500"),
    ("Questions & Requests", "❓", "from-purple-500 to-pink-500"),
    ("Compliments & Praise", "🌟", "from-yellow-500 to-orange-500"),
    ("Business & Work", "💼", "from-gray-500 to-slate-500"),
    ("Travel & Directions", "🗺️", "from-indigo-500 to-blue-500"),
]


class ExpressionService:
    """Manages expression/category CRUD and attempt counters"""

    def __init__(self, db: Session):
        self.db = db

    # Categories

    def list_categories(self) -> List[Category]:
        stmt = select(Category).order_by(Category.created_at, Category.id)
        return list(self.db.execute(stmt).scalars().all())

    def get_category(self, category_id: int) -> Category:
        category = self.db.get(Category, category_id)
        if category is None:
            raise NotFoundError("Category", category_id)
        return category

    def create_category(self, data: CategoryCreate) -> Category:
        name = data.name.strip()
        if not name:
            raise InvalidArgumentError("Category name is required", details={"field": "name"})
        category = Category(
            name=name,
            icon=data.icon or DEFAULT_CATEGORY_ICON,
            color=data.color or DEFAULT_CATEGORY_COLOR,
        )
        self.db.add(category)
        self.db.commit()
        self.db.refresh(category)
        return category

    def update_category(self, category_id: int, data: CategoryUpdate) -> Category:
        category = self.get_category(category_id)
        update_fields = data.model_dump(exclude_unset=True)
        if update_fields.get("name") is not None:
            update_fields["name"] = update_fields["name"].strip()
            if not update_fields["name"]:
                raise InvalidArgumentError("Category name is required", details={"field": "name"})

        for field, value in update_fields.items():
            if value is not None:
                setattr(category, field, value)
        self.db.commit()
        self.db.refresh(category)
        return category

    def delete_category(self, category_id: int) -> int:
        """
        Delete a category and move its expressions to uncategorized

        Returns:
            Number of expressions that were reassigned
        """
        category = self.get_category(category_id)
        result = self.db.execute(
            update(Expression)
            .where(Expression.category_id == category_id)
            .values(category_id=None)
        )
        self.db.delete(category)
        self.db.commit()
        return result.rowcount or 0

    def seed_default_categories(self) -> int:
        """Insert the default categories when none exist yet."""
        existing = self.db.execute(select(func.count(Category.id))).scalar() or 0
        if existing:
            return 0
        self.db.add_all(
            Category(name=name, icon=icon, color=color)
            for name, icon, color in DEFAULT_CATEGORIES
        )
        self.db.commit()
        return len(DEFAULT_CATEGORIES)

    # Expressions

    def list_expressions(self, category_id: Optional[int] = None) -> List[Expression]:
        """List expressions newest first, optionally within one category."""
        stmt = select(Expression)
        if category_id is not None:
            stmt = stmt.where(Expression.category_id == category_id)
        stmt = stmt.order_by(Expression.created_at.desc(), Expression.id.desc())
        return list(self.db.execute(stmt).scalars().all())

    def get_expressions(self, expression_ids: List[int]) -> List[Expression]:
        """Fetch expressions in the order of ``expression_ids``; unknown ids are skipped."""
        if not expression_ids:
            return []
        stmt = select(Expression).where(Expression.id.in_(expression_ids))
        by_id = {e.id: e for e in self.db.execute(stmt).scalars().all()}
        return [by_id[i] for i in expression_ids if i in by_id]

    def get_expression(self, expression_id: int) -> Expression:
        expression = self.db.get(Expression, expression_id)
        if expression is None:
            raise NotFoundError("Expression", expression_id)
        return expression

    def create_expression(self, data: ExpressionCreate) -> Expression:
        text = data.text.strip()
        if not text:
            raise InvalidArgumentError("Expression text is required", details={"field": "text"})
        if data.category_id is not None:
            self.get_category(data.category_id)

        expression = Expression(
            text=text,
            category_id=data.category_id,
            correct_count=0,
            total_count=0,
        )
        self.db.add(expression)
        self.db.commit()
        self.db.refresh(expression)
        return expression

    def update_expression(self, expression_id: int, data: ExpressionUpdate) -> Expression:
        expression = self.get_expression(expression_id)
        update_fields = data.model_dump(exclude_unset=True)

        if "text" in update_fields:
            text = (update_fields["text"] or "").strip()
            if not text:
                raise InvalidArgumentError("Expression text is required", details={"field": "text"})
            update_fields["text"] = text
        if update_fields.get("category_id") is not None:
            self.get_category(update_fields["category_id"])

        for field, value in update_fields.items():
            setattr(expression, field, value)

        self.db.commit()
        self.db.refresh(expression)
        return expression

    def delete_expression(self, expression_id: int) -> None:
        expression = self.get_expression(expression_id)
        self.db.delete(expression)
        self.db.commit()

    def record_attempt(self, expression_id: int, is_correct: bool) -> Expression:
        """
        Count one practice attempt

        Always increments total_count; correct_count only when correct.
        """
        expression = self.get_expression(expression_id)
        expression.total_count = (expression.total_count or 0) + 1
        if is_correct:
            expression.correct_count = (expression.correct_count or 0) + 1
        expression.last_used = datetime.utcnow()

        self.db.commit()
        self.db.refresh(expression)
        return expression

    def expression_statistics(self, limit: int = 5) -> ExpressionStatistics:
        totals = self.db.execute(
            select(
                func.count(Expression.id),
                func.coalesce(func.sum(Expression.total_count), 0),
                func.coalesce(func.sum(Expression.correct_count), 0),
            )
        ).one()
        total_expressions, total_usage, total_correct = totals

        most_used = self.db.execute(
            select(Expression)
            .where(Expression.total_count > 0)
            .order_by(Expression.total_count.desc(), Expression.id)
            .limit(limit)
        ).scalars().all()

        recently_used = self.db.execute(
            select(Expression)
            .where(Expression.last_used.is_not(None))
            .order_by(Expression.last_used.desc(), Expression.id.desc())
            .limit(limit)
        ).scalars().all()

        return ExpressionStatistics(
            total_expressions=total_expressions,
            total_usage=total_usage,
            total_correct=total_correct,
            overall_accuracy=(total_correct / total_usage * 100) if total_usage else 0.0,
            most_used=[ExpressionRead.model_validate(e) for e in most_used],
            recently_used=[ExpressionRead.model_validate(e) for e in recently_used],
        )
