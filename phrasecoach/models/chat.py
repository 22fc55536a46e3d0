"""
Chat session and message log models
"""
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, UniqueConstraint, func
from sqlalchemy.orm import relationship

from phrasecoach.core.db import Base

FREE_MODE = "free"
GUIDED_MODE = "guided"


class ChatSession(Base):
    """A practice conversation; at most one session is active at a time"""
    __tablename__ = "chat_sessions"

    id = Column(Integer, primary_key=True, index=True)
    scenario = Column(Text, nullable=False)
    mode = Column(String(16), nullable=False, default=FREE_MODE)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    ended_at = Column(DateTime(timezone=True), nullable=True)

    messages = relationship(
        "ChatMessage",
        back_populates="session",
        cascade="all, delete-orphan",
        order_by="ChatMessage.id",
    )
    targets = relationship(
        "SessionTarget",
        back_populates="session",
        cascade="all, delete-orphan",
        order_by="SessionTarget.position",
    )


class ChatMessage(Base):
    __tablename__ = "chat_messages"

    id = Column(Integer, primary_key=True, index=True)
    session_id = Column(Integer, ForeignKey("chat_sessions.id"), nullable=False, index=True)
    content = Column(Text, nullable=False)
    is_user = Column(Boolean, nullable=False)
    expression_used = Column(Integer, ForeignKey("expressions.id", ondelete="SET NULL"), nullable=True)
    is_correct = Column(Boolean, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    session = relationship("ChatSession", back_populates="messages")


class SessionTarget(Base):
    """
    One selected expression in a guided session, practiced in position order.
    A target is completed after one answer, right or wrong.
    """
    __tablename__ = "chat_session_targets"
    __table_args__ = (
        UniqueConstraint("session_id", "expression_id", name="uq_session_target_expression"),
    )

    id = Column(Integer, primary_key=True, index=True)
    session_id = Column(Integer, ForeignKey("chat_sessions.id"), nullable=False, index=True)
    expression_id = Column(Integer, ForeignKey("expressions.id", ondelete="CASCADE"), nullable=False)
    position = Column(Integer, nullable=False)
    scenario = Column(Text, nullable=True)
    attempts = Column(Integer, nullable=False, default=0)
    is_completed = Column(Boolean, nullable=False, default=False)
    is_correct = Column(Boolean, nullable=True)

    session = relationship("ChatSession", back_populates="targets")
    expression = relationship("Expression")
