"""
Shared fixtures: in-memory SQLite, a scripted text-generation client and an
API client wired to both.
"""
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["DATABASE_SEED_DEFAULTS"] = "false"
os.environ["LLM_API_KEY"] = ""
os.environ["LOG_FORMAT"] = "text"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool

from phrasecoach import models  # noqa: F401
from phrasecoach.config import LLMSettings, PracticeSettings
from phrasecoach.core.db import Base, SessionLocal, configure_engine
from phrasecoach.core.exceptions import ExternalServiceError
from phrasecoach.core.metrics import reset_metrics
from phrasecoach.services.practice_service import (
    CONVERSATION_SYSTEM_PROMPT,
    DIALOGUE_SYSTEM_PROMPT,
    GRADING_SYSTEM_PROMPT,
    SCENARIO_SYSTEM_PROMPT,
    SEARCH_QUERY_SYSTEM_PROMPT,
    PracticeService,
)
from phrasecoach.services.similarity import SimilarityScorer
from phrasecoach.services.text_generation import TextGenerationClient

engine = configure_engine(
    "sqlite://",
    poolclass=StaticPool,
    connect_args={"check_same_thread": False},
)


class FakeTextGenerationClient(TextGenerationClient):
    """
    Replies keyed by system prompt. A reply may be a string or an exception
    instance; unscripted prompts fail like an unreachable service.
    """

    def __init__(self, replies=None):
        self.replies = dict(replies or {})
        self.calls = []

    def script(self, search_query=None, dialogue=None, grading=None, scenario=None, conversation=None):
        for prompt, reply in (
            (SEARCH_QUERY_SYSTEM_PROMPT, search_query),
            (DIALOGUE_SYSTEM_PROMPT, dialogue),
            (GRADING_SYSTEM_PROMPT, grading),
            (SCENARIO_SYSTEM_PROMPT, scenario),
            (CONVERSATION_SYSTEM_PROMPT, conversation),
        ):
            if reply is not None:
                self.replies[prompt] = reply

    async def complete(self, system_prompt, user_prompt, temperature):
        self.calls.append((system_prompt, user_prompt, temperature))
        reply = self.replies.get(system_prompt)
        if reply is None:
            raise ExternalServiceError("Text generation request failed")
        if isinstance(reply, Exception):
            raise reply
        if callable(reply):
            return reply(user_prompt)
        return reply


@pytest.fixture(autouse=True)
def _clean_metrics():
    reset_metrics()
    yield
    reset_metrics()


@pytest.fixture
def db_session():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def fake_client():
    return FakeTextGenerationClient()


@pytest.fixture
def scorer():
    return SimilarityScorer(score_cap=0.99)


@pytest.fixture
def practice_service(fake_client, scorer):
    return PracticeService(fake_client, scorer, PracticeSettings(), LLMSettings())


@pytest.fixture
def client(db_session, fake_client):
    from phrasecoach.core.dependencies import get_text_generation_client
    from phrasecoach.main import app

    app.dependency_overrides[get_text_generation_client] = lambda: fake_client
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
