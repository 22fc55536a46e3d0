"""
Expression model - a phrase the learner is practicing
"""
from sqlalchemy import Column, Integer, Text, DateTime, ForeignKey, CheckConstraint, func
from sqlalchemy.orm import relationship

from phrasecoach.core.db import Base


class Expression(Base):
    """
    Expression tracks practice counters for one phrase.
    correct_count never exceeds total_count.
    """
    __tablename__ = "expressions"
    __table_args__ = (
        CheckConstraint("correct_count <= total_count", name="ck_expressions_correct_le_total"),
    )

    id = Column(Integer, primary_key=True, index=True)
    text = Column(Text, nullable=False)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=True, index=True)
    correct_count = Column(Integer, nullable=False, default=0)
    total_count = Column(Integer, nullable=False, default=0)
    last_used = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    category = relationship("Category")

    @property
    def accuracy(self) -> float:
        if not self.total_count:
            return 0.0
        return self.correct_count / self.total_count

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Expression id={self.id} text={self.text[:30]!r}>"
