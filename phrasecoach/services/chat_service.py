"""
Chat Service - practice conversation log and expression-usage detection
"""
import logging
from typing import Optional, List
from datetime import datetime
from sqlalchemy.orm import Session
from sqlalchemy import select, update, func

from phrasecoach.core.exceptions import NotFoundError
from phrasecoach.models.chat import FREE_MODE, ChatSession, ChatMessage
from phrasecoach.schemas.chat import ChatSessionCreate, ChatMessageCreate, ChatRespondResponse
from phrasecoach.services.expression_service import ExpressionService
from phrasecoach.services.progress_service import ProgressService
from phrasecoach.services.similarity import SimilarityScorer

logger = logging.getLogger(__name__)

# Tutor replies by conversation stage: fewer than 3, fewer than 6, then later
STAGE_REPLIES = (
    (3, (
        "That's a great start! Tell me more about what you're thinking.",
        "Perfect! I can see you're comfortable with conversation. What would you like to discuss next?",
        "Excellent! Now, let's continue this conversation. How would you respond in this situation?",
    )),
    (6, (
        "Wonderful! You're really getting into the flow. What's your opinion on this topic?",
        "Great! Now let's try a different angle. How would you express agreement or disagreement?",
        "Nice work! Let's practice asking questions. What would you like to know more about?",
    )),
    (None, (
        "Amazing progress! You're having a natural conversation. Let's wrap up - how would you say goodbye?",
        "Fantastic! You've used several expressions well. How would you summarize our conversation?",
        "Excellent practice session! What did you learn from our conversation today?",
    )),
)

NO_SUGGESTION = "Great conversation! Keep practicing with your expressions."


def stage_reply(message_count: int) -> str:
    for limit, replies in STAGE_REPLIES:
        if limit is None or message_count < limit:
            break
    return replies[message_count % len(replies)]


class ChatService:
    """Manages chat sessions and their message log"""

    def __init__(self, db: Session, scorer: SimilarityScorer, usage_threshold: float = 0.6):
        self.db = db
        self.scorer = scorer
        self.usage_threshold = usage_threshold
        self.expressions = ExpressionService(db)
        self.progress = ProgressService(db)

    def list_sessions(self, limit: int = 20) -> List[ChatSession]:
        stmt = (
            select(ChatSession)
            .order_by(ChatSession.created_at.desc(), ChatSession.id.desc())
            .limit(limit)
        )
        return list(self.db.execute(stmt).scalars().all())

    def get_session(self, session_id: int) -> ChatSession:
        session = self.db.get(ChatSession, session_id)
        if session is None:
            raise NotFoundError("Chat session", session_id)
        return session

    def get_active_session(self) -> Optional[ChatSession]:
        stmt = (
            select(ChatSession)
            .where(ChatSession.is_active.is_(True))
            .order_by(ChatSession.id.desc())
            .limit(1)
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def create_session(self, data: ChatSessionCreate, mode: str = FREE_MODE) -> ChatSession:
        """Start a session; any other active session is ended first."""
        self.db.execute(
            update(ChatSession)
            .where(ChatSession.is_active.is_(True))
            .values(is_active=False, ended_at=datetime.utcnow())
        )
        session = ChatSession(scenario=data.scenario, mode=mode, is_active=True)
        self.db.add(session)
        self.db.commit()
        self.db.refresh(session)

        self.progress.increment_sessions()
        logger.info(f"Chat session {session.id} started")
        return session

    def end_session(self, session_id: int) -> ChatSession:
        session = self.get_session(session_id)
        if session.is_active:
            session.is_active = False
            session.ended_at = datetime.utcnow()
            self.db.commit()
            self.db.refresh(session)
        return session

    def list_messages(self, session_id: int) -> List[ChatMessage]:
        self.get_session(session_id)
        stmt = (
            select(ChatMessage)
            .where(ChatMessage.session_id == session_id)
            .order_by(ChatMessage.created_at, ChatMessage.id)
        )
        return list(self.db.execute(stmt).scalars().all())

    def add_message(self, data: ChatMessageCreate) -> ChatMessage:
        self.get_session(data.session_id)
        if data.expression_used is not None:
            self.expressions.get_expression(data.expression_used)

        message = ChatMessage(
            session_id=data.session_id,
            content=data.content,
            is_user=data.is_user,
            expression_used=data.expression_used,
            is_correct=data.is_correct,
        )
        self.db.add(message)
        self.db.commit()
        self.db.refresh(message)
        return message

    def respond(self, session_id: int, message: str) -> ChatRespondResponse:
        """
        Handle one learner message in free chat

        Detects which stored expression the message uses, counts it as a
        correct attempt, logs both sides of the exchange and suggests an
        expression the session has not used yet.
        """
        self.get_session(session_id)
        prior_count = self.db.execute(
            select(func.count(ChatMessage.id)).where(ChatMessage.session_id == session_id)
        ).scalar() or 0

        expressions = self.expressions.list_expressions()
        used_id = self.scorer.detect_usage(
            message,
            [(e.id, e.text) for e in expressions],
            threshold=self.usage_threshold,
        )
        is_correct = used_id is not None

        self.db.add(ChatMessage(
            session_id=session_id,
            content=message,
            is_user=True,
            expression_used=used_id,
            is_correct=is_correct if used_id is not None else None,
        ))
        reply = stage_reply(prior_count)
        self.db.add(ChatMessage(session_id=session_id, content=reply, is_user=False))
        self.db.commit()

        if used_id is not None:
            self.expressions.record_attempt(used_id, True)
            self.progress.record_practice()

        used_ids = set(self.db.execute(
            select(ChatMessage.expression_used).where(
                ChatMessage.session_id == session_id,
                ChatMessage.expression_used.is_not(None),
            )
        ).scalars().all())
        unused = [e for e in expressions if e.id not in used_ids]
        suggestion = f'Try using: "{unused[0].text}"' if unused else NO_SUGGESTION

        return ChatRespondResponse(
            response=reply,
            suggestion_prompt=suggestion,
            used_expression=used_id,
            is_correct=is_correct,
        )
