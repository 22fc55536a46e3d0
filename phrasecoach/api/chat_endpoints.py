"""
Chat API endpoints - practice sessions and message log
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query, status

from phrasecoach.core.dependencies import get_chat_service, get_guided_session_service
from phrasecoach.schemas.base import Envelope
from phrasecoach.schemas.chat import (
    ChatMessageCreate,
    ChatMessageRead,
    ChatRespondRequest,
    ChatRespondResponse,
    ChatSessionCreate,
    ChatSessionRead,
    GuidedRespondRequest,
    GuidedRespondResponse,
    GuidedSessionCreate,
    GuidedSessionReport,
    GuidedSessionStarted,
)
from phrasecoach.services.chat_service import ChatService
from phrasecoach.services.guided_session_service import GuidedSessionService

router = APIRouter(prefix="/chat", tags=["chat"])


@router.get("/sessions", response_model=Envelope[list[ChatSessionRead]])
def list_sessions(
    limit: int = Query(20, ge=1, le=100),
    service: ChatService = Depends(get_chat_service),
):
    sessions = service.list_sessions(limit)
    return Envelope(data=[ChatSessionRead.model_validate(s) for s in sessions])


@router.post("/sessions", response_model=Envelope[ChatSessionRead], status_code=status.HTTP_201_CREATED)
def create_session(
    data: ChatSessionCreate,
    service: ChatService = Depends(get_chat_service),
):
    """
    Start a chat session

    Any currently active session is ended first.
    """
    session = service.create_session(data)
    return Envelope(data=ChatSessionRead.model_validate(session))


@router.get("/sessions/active", response_model=Envelope[Optional[ChatSessionRead]])
def get_active_session(service: ChatService = Depends(get_chat_service)):
    session = service.get_active_session()
    if not session:
        return Envelope(data=None)
    return Envelope(data=ChatSessionRead.model_validate(session))


@router.patch("/sessions/{session_id}/end", response_model=Envelope[ChatSessionRead])
def end_session(
    session_id: int,
    service: ChatService = Depends(get_chat_service),
):
    session = service.end_session(session_id)
    return Envelope(data=ChatSessionRead.model_validate(session))


@router.get("/sessions/{session_id}/messages", response_model=Envelope[list[ChatMessageRead]])
def list_messages(
    session_id: int,
    service: ChatService = Depends(get_chat_service),
):
    messages = service.list_messages(session_id)
    return Envelope(data=[ChatMessageRead.model_validate(m) for m in messages])


@router.post("/messages", response_model=Envelope[ChatMessageRead], status_code=status.HTTP_201_CREATED)
def create_message(
    data: ChatMessageCreate,
    service: ChatService = Depends(get_chat_service),
):
    message = service.add_message(data)
    return Envelope(data=ChatMessageRead.model_validate(message))


@router.post("/respond", response_model=Envelope[ChatRespondResponse])
def respond(
    data: ChatRespondRequest,
    service: ChatService = Depends(get_chat_service),
):
    """
    Reply to a learner message in free chat

    Detects stored expressions used in the message and updates their counters.
    """
    return Envelope(data=service.respond(data.session_id, data.message))


@router.post("/start-session", response_model=Envelope[GuidedSessionStarted], status_code=status.HTTP_201_CREATED)
async def start_guided_session(
    data: GuidedSessionCreate,
    service: GuidedSessionService = Depends(get_guided_session_service),
):
    """
    Start a guided practice session

    The selected expressions are practiced in order, each with a generated
    role-play scenario. Unknown ids are skipped.
    """
    return Envelope(data=await service.start_session(data.expression_ids))


@router.post("/guided/respond", response_model=Envelope[GuidedRespondResponse])
async def respond_guided(
    data: GuidedRespondRequest,
    service: GuidedSessionService = Depends(get_guided_session_service),
):
    return Envelope(data=await service.respond(data.session_id, data.message))


@router.get("/sessions/{session_id}/progress", response_model=Envelope[GuidedSessionReport])
def get_session_progress(
    session_id: int,
    service: GuidedSessionService = Depends(get_guided_session_service),
):
    return Envelope(data=service.report(session_id))
