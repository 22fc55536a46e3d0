"""
Guided Session Service - role-play practice through a chosen list of expressions

Each selected expression becomes a session target. Targets are practiced in
the order they were selected: the learner gets a generated scenario and
opening line, answers once, and the session moves to the next target. The
session ends itself after the last target and reports a summary.

Database work runs in the threadpool so the event loop is never blocked by
the synchronous session; only the text-generation calls are awaited directly.
"""
import logging
from datetime import datetime
from typing import List, NamedTuple, Optional, Sequence, Tuple

from sqlalchemy import select
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from phrasecoach.core.exceptions import InvalidArgumentError
from phrasecoach.models.chat import GUIDED_MODE, ChatMessage, ChatSession, SessionTarget
from phrasecoach.models.expression import Expression
from phrasecoach.schemas.chat import (
    ChatSessionCreate,
    GuidedRespondResponse,
    GuidedSessionReport,
    GuidedSessionStarted,
    SessionProgress,
    SessionSummary,
)
from phrasecoach.schemas.expression import ExpressionRead
from phrasecoach.schemas.practice import Scenario
from phrasecoach.services.chat_service import ChatService
from phrasecoach.services.practice_service import PracticeService, require_text
from phrasecoach.services.similarity import SimilarityScorer

logger = logging.getLogger(__name__)

GUIDED_SESSION_TITLE = "Conversation practice with selected expressions"


class Turn(NamedTuple):
    """Plain values for one learner answer, read from the database before the reply is generated"""
    target_id: int
    expression_id: int
    expression_text: str
    scenario: str
    is_correct: bool
    history: List[Tuple[bool, str]]


def _naive(value: Optional[datetime]) -> Optional[datetime]:
    return value.replace(tzinfo=None) if value is not None else None


class GuidedSessionService:
    """Runs guided practice sessions on top of the chat log"""

    def __init__(
        self,
        db: Session,
        practice: PracticeService,
        scorer: SimilarityScorer,
        correct_threshold: float = 0.8,
        history_turns: int = 6,
    ):
        self.db = db
        self.practice = practice
        self.scorer = scorer
        self.correct_threshold = correct_threshold
        self.history_turns = history_turns
        self.chat = ChatService(db, scorer)

    async def start_session(self, expression_ids: Sequence[int]) -> GuidedSessionStarted:
        """
        Start a guided session for the given expressions

        Duplicate ids are practiced once and unknown ids are skipped; the
        request fails only when no known expression remains. Any active
        session is ended first.
        """
        if not expression_ids:
            raise InvalidArgumentError(
                "At least one expression must be selected",
                details={"field": "expressionIds"},
            )
        session_id, first_text = await run_in_threadpool(
            self._open_session, list(dict.fromkeys(expression_ids))
        )
        scenario = await self.practice.generate_scenario(first_text)
        message_id, _ = await run_in_threadpool(self._begin_target, session_id, scenario)
        report = await run_in_threadpool(self.report, session_id)

        logger.info(f"Guided session {session_id} started with {report.progress.total} expression(s)")
        return GuidedSessionStarted(
            session_id=session_id,
            scenario=scenario.scenario,
            initial_message=scenario.initial_message,
            message_id=message_id,
            progress=report.progress,
        )

    async def respond(self, session_id: int, message: str) -> GuidedRespondResponse:
        """
        Handle the learner's answer for the current target

        The answer counts as correct when it uses the target expression. The
        target is completed either way and the next one is introduced with a
        fresh scenario; after the last target the session is ended.
        """
        message = require_text(message, "message")
        turn = await run_in_threadpool(self._open_turn, session_id, message)
        reply = await self.practice.continue_conversation(
            turn.scenario, turn.expression_text, message, turn.history
        )
        message_id, next_text = await run_in_threadpool(self._close_turn, session_id, turn, reply)

        next_scenario: Optional[Scenario] = None
        next_expression: Optional[ExpressionRead] = None
        if next_text is not None:
            next_scenario = await self.practice.generate_scenario(next_text)
            _, next_expression = await run_in_threadpool(self._begin_target, session_id, next_scenario)

        report = await run_in_threadpool(self.report, session_id)
        return GuidedRespondResponse(
            response=reply,
            message_id=message_id,
            used_expression=turn.expression_id if turn.is_correct else None,
            is_correct=turn.is_correct,
            session_complete=next_text is None,
            next_expression=next_expression,
            next_scenario=next_scenario.scenario if next_scenario else None,
            next_message=next_scenario.initial_message if next_scenario else None,
            progress=report.progress,
            summary=report.summary,
        )

    def report(self, session_id: int) -> GuidedSessionReport:
        """Progress of a guided session, with a summary once it has ended"""
        session = self._guided_session(session_id)
        summary = None if session.is_active else self._summary(session)
        return GuidedSessionReport(progress=self._progress(session), summary=summary)

    # Database steps

    def _guided_session(self, session_id: int) -> ChatSession:
        session = self.chat.get_session(session_id)
        if session.mode != GUIDED_MODE:
            raise InvalidArgumentError(
                "Chat session is not a guided session",
                details={"session_id": session_id},
            )
        return session

    def _open_session(self, expression_ids: List[int]) -> Tuple[int, str]:
        expressions = self.chat.expressions.get_expressions(expression_ids)
        if not expressions:
            raise InvalidArgumentError(
                "Invalid expression IDs provided",
                details={"expression_ids": expression_ids},
            )
        session = self.chat.create_session(ChatSessionCreate(scenario=GUIDED_SESSION_TITLE), mode=GUIDED_MODE)
        self.db.add_all(
            SessionTarget(session_id=session.id, expression_id=e.id, position=i, attempts=0, is_completed=False)
            for i, e in enumerate(expressions)
        )
        self.db.commit()
        return session.id, expressions[0].text

    def _begin_target(self, session_id: int, scenario: Scenario) -> Tuple[int, ExpressionRead]:
        """Attach the scenario to the current target and log its opening line"""
        session = self._guided_session(session_id)
        target = self._current_target(session)
        target.scenario = scenario.scenario
        session.scenario = scenario.scenario

        opening = ChatMessage(session_id=session_id, content=scenario.initial_message, is_user=False)
        self.db.add(opening)
        self.db.commit()
        self.db.refresh(opening)
        return opening.id, ExpressionRead.model_validate(target.expression)

    def _open_turn(self, session_id: int, message: str) -> Turn:
        session = self._guided_session(session_id)
        target = self._current_target(session) if session.is_active else None
        if target is None:
            raise InvalidArgumentError(
                "Guided session has no expression left to practice",
                details={"session_id": session_id},
            )

        expression = target.expression
        used = self.scorer.detect_usage(
            message, [(expression.id, expression.text)], threshold=self.correct_threshold
        )
        is_correct = used is not None
        history = self._recent_history(session_id)

        self.db.add(ChatMessage(
            session_id=session_id,
            content=message,
            is_user=True,
            expression_used=expression.id if is_correct else None,
            is_correct=is_correct,
        ))
        self.db.commit()
        return Turn(
            target_id=target.id,
            expression_id=expression.id,
            expression_text=expression.text,
            scenario=target.scenario or session.scenario,
            is_correct=is_correct,
            history=history,
        )

    def _close_turn(self, session_id: int, turn: Turn, reply: str) -> Tuple[int, Optional[str]]:
        """
        Record the attempt, complete the target and log the reply

        Returns:
            Reply message id and the text of the next target, if any
        """
        self.chat.expressions.record_attempt(turn.expression_id, turn.is_correct)
        self.chat.progress.record_practice()

        target = self.db.get(SessionTarget, turn.target_id)
        target.attempts = (target.attempts or 0) + 1
        target.is_completed = True
        target.is_correct = turn.is_correct

        reply_message = ChatMessage(
            session_id=session_id,
            content=reply,
            is_user=False,
            expression_used=turn.expression_id,
            is_correct=turn.is_correct,
        )
        self.db.add(reply_message)
        self.db.commit()
        self.db.refresh(reply_message)

        next_target = self._current_target(self._guided_session(session_id))
        if next_target is None:
            self.chat.end_session(session_id)
            logger.info(f"Guided session {session_id} completed")
            return reply_message.id, None
        return reply_message.id, next_target.expression.text

    def _recent_history(self, session_id: int) -> List[Tuple[bool, str]]:
        if self.history_turns <= 0:
            return []
        rows = self.db.execute(
            select(ChatMessage.is_user, ChatMessage.content)
            .where(ChatMessage.session_id == session_id)
            .order_by(ChatMessage.id.desc())
            .limit(self.history_turns)
        ).all()
        return [(is_user, content) for is_user, content in reversed(rows)]

    # Progress

    def _live_targets(self, session: ChatSession) -> List[SessionTarget]:
        # Targets whose expression was deleted drop out of the session
        stmt = (
            select(SessionTarget)
            .join(Expression, SessionTarget.expression_id == Expression.id)
            .where(SessionTarget.session_id == session.id)
            .order_by(SessionTarget.position)
        )
        return list(self.db.execute(stmt).scalars().all())

    def _current_target(self, session: ChatSession) -> Optional[SessionTarget]:
        return next((t for t in self._live_targets(session) if not t.is_completed), None)

    def _progress(self, session: ChatSession) -> SessionProgress:
        targets = self._live_targets(session)
        current = self._current_target(session) if session.is_active else None
        return SessionProgress(
            completed=sum(1 for t in targets if t.is_completed),
            total=len(targets),
            current_expression=ExpressionRead.model_validate(current.expression) if current else None,
            expressions=[ExpressionRead.model_validate(t.expression) for t in targets],
        )

    def _summary(self, session: ChatSession) -> SessionSummary:
        targets = self._live_targets(session)
        completed = [t for t in targets if t.is_completed]
        correct = sum(1 for t in completed if t.is_correct)

        duration = None
        started, ended = _naive(session.created_at), _naive(session.ended_at)
        if started is not None and ended is not None:
            duration = max((ended - started).total_seconds(), 0.0)

        return SessionSummary(
            completed_expressions=len(completed),
            total_expressions=len(targets),
            correct_usages=correct,
            total_attempts=sum(t.attempts or 0 for t in targets),
            accuracy=round(correct / len(completed) * 100, 1) if completed else 0.0,
            session_duration_seconds=duration,
        )
