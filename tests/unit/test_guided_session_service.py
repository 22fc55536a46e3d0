"""
Unit tests for guided practice sessions
"""
import json

import pytest

from phrasecoach.core.exceptions import InvalidArgumentError
from phrasecoach.models.chat import GUIDED_MODE
from phrasecoach.schemas.chat import ChatSessionCreate
from phrasecoach.schemas.expression import ExpressionCreate
from phrasecoach.services.chat_service import ChatService
from phrasecoach.services.expression_service import ExpressionService
from phrasecoach.services.guided_session_service import GuidedSessionService
from phrasecoach.services.practice_service import (
    CONVERSATION_FALLBACK,
    CONVERSATION_SYSTEM_PROMPT,
    FALLBACK_OPENING,
    SCENARIO_SYSTEM_PROMPT,
)
from phrasecoach.services.progress_service import ProgressService


def scenario_for(user_prompt):
    expression = user_prompt.split('"')[1]
    return json.dumps({
        "scenario": f"Role-play for {expression}",
        "initialMessage": f"Opening for {expression}",
    })


@pytest.fixture
def guided(db_session, practice_service, scorer):
    return GuidedSessionService(db_session, practice_service, scorer)


@pytest.fixture
def expressions(db_session):
    service = ExpressionService(db_session)
    return [
        service.create_expression(ExpressionCreate(text="I'd like a refund")),
        service.create_expression(ExpressionCreate(text="No worries")),
    ]


@pytest.mark.asyncio
async def test_start_session(guided, expressions, fake_client, db_session):
    fake_client.script(scenario=scenario_for)
    refund, no_worries = expressions

    started = await guided.start_session([refund.id, 999, refund.id, no_worries.id])

    assert started.scenario == "Role-play for I'd like a refund"
    assert started.initial_message == "Opening for I'd like a refund"
    assert started.progress.completed == 0
    assert started.progress.total == 2
    assert started.progress.current_expression.id == refund.id
    assert [e.id for e in started.progress.expressions] == [refund.id, no_worries.id]
    assert fake_client.calls[0][2] == pytest.approx(0.7)

    chat = ChatService(db_session, guided.scorer)
    session = chat.get_session(started.session_id)
    assert session.mode == GUIDED_MODE
    assert session.is_active
    messages = chat.list_messages(started.session_id)
    assert [(m.id, m.is_user, m.content) for m in messages] == [
        (started.message_id, False, "Opening for I'd like a refund"),
    ]
    assert ProgressService(db_session).get_stats().total_sessions == 1


@pytest.mark.asyncio
async def test_start_session_uses_fallback_scenario(guided, expressions):
    started = await guided.start_session([expressions[1].id])

    assert started.scenario == 'Practice using: "No worries"'
    assert started.initial_message == FALLBACK_OPENING


@pytest.mark.asyncio
async def test_start_session_ends_previous_session(guided, expressions, db_session):
    chat = ChatService(db_session, guided.scorer)
    free = chat.create_session(ChatSessionCreate(scenario="Free chat"))

    started = await guided.start_session([expressions[0].id])

    assert chat.get_active_session().id == started.session_id
    assert not chat.get_session(free.id).is_active


@pytest.mark.asyncio
@pytest.mark.parametrize("ids", [[], [998, 999]])
async def test_start_session_rejects_missing_expressions(guided, expressions, fake_client, db_session, ids):
    with pytest.raises(InvalidArgumentError):
        await guided.start_session(ids)

    assert fake_client.calls == []
    assert ChatService(db_session, guided.scorer).list_sessions() == []


@pytest.mark.asyncio
async def test_respond_moves_to_next_expression(guided, expressions, fake_client, db_session):
    fake_client.script(scenario=scenario_for, conversation="Of course, do you have the receipt?")
    refund, no_worries = expressions
    started = await guided.start_session([refund.id, no_worries.id])

    result = await guided.respond(started.session_id, "Hi, I'd like a refund for this jacket.")

    assert result.response == "Of course, do you have the receipt?"
    assert result.is_correct
    assert result.used_expression == refund.id
    assert not result.session_complete
    assert result.next_expression.id == no_worries.id
    assert result.next_scenario == "Role-play for No worries"
    assert result.next_message == "Opening for No worries"
    assert result.progress.completed == 1
    assert result.progress.current_expression.id == no_worries.id
    assert result.summary is None

    conversation_prompt = next(call[1] for call in fake_client.calls if call[0] == CONVERSATION_SYSTEM_PROMPT)
    assert "Role-play for I'd like a refund" in conversation_prompt
    assert "Partner: Opening for I'd like a refund" in conversation_prompt

    stored = ExpressionService(db_session).get_expression(refund.id)
    assert (stored.correct_count, stored.total_count) == (1, 1)
    assert ProgressService(db_session).get_stats().current_streak == 1


@pytest.mark.asyncio
async def test_respond_completes_session_with_summary(guided, expressions, fake_client, db_session):
    fake_client.script(scenario=scenario_for, conversation="Sounds good.")
    refund, no_worries = expressions
    started = await guided.start_session([refund.id, no_worries.id])

    await guided.respond(started.session_id, "I'd like a refund, please.")
    result = await guided.respond(started.session_id, "That's fine, thanks.")

    assert not result.is_correct
    assert result.used_expression is None
    assert result.session_complete
    assert result.next_expression is None
    assert result.progress.completed == 2
    assert result.progress.current_expression is None

    summary = result.summary
    assert summary.completed_expressions == 2
    assert summary.total_expressions == 2
    assert summary.correct_usages == 1
    assert summary.total_attempts == 2
    assert summary.accuracy == pytest.approx(50.0)
    assert summary.session_duration_seconds >= 0

    assert not ChatService(db_session, guided.scorer).get_session(started.session_id).is_active
    stored = ExpressionService(db_session).get_expression(no_worries.id)
    assert (stored.correct_count, stored.total_count) == (0, 1)


@pytest.mark.asyncio
async def test_respond_after_completion_is_rejected(guided, expressions, fake_client):
    fake_client.script(scenario=scenario_for, conversation="Great.")
    started = await guided.start_session([expressions[1].id])
    await guided.respond(started.session_id, "No worries at all.")

    with pytest.raises(InvalidArgumentError):
        await guided.respond(started.session_id, "No worries again.")


@pytest.mark.asyncio
async def test_respond_falls_back_when_generation_fails(guided, expressions, fake_client):
    fake_client.script(scenario=scenario_for)
    started = await guided.start_session([expressions[1].id])

    result = await guided.respond(started.session_id, "No worries!")

    assert result.response == CONVERSATION_FALLBACK
    assert result.is_correct
    assert result.session_complete


@pytest.mark.asyncio
async def test_respond_rejects_free_chat_session(guided, expressions, fake_client, db_session):
    session = ChatService(db_session, guided.scorer).create_session(ChatSessionCreate(scenario="Free chat"))

    with pytest.raises(InvalidArgumentError):
        await guided.respond(session.id, "No worries")
    assert fake_client.calls == []


@pytest.mark.asyncio
async def test_report_skips_deleted_expressions(guided, expressions, fake_client, db_session):
    fake_client.script(scenario=scenario_for)
    refund, no_worries = expressions
    started = await guided.start_session([refund.id, no_worries.id])

    ExpressionService(db_session).delete_expression(refund.id)
    report = guided.report(started.session_id)

    assert report.progress.total == 1
    assert report.progress.current_expression.id == no_worries.id
    assert report.summary is None
