"""
Dependency injection setup for FastAPI.
Provides dependency providers for core services with lifecycle management.
"""

from fastapi import Depends, Request
from sqlalchemy.orm import Session
from typing import Optional
import logging
import asyncio

from phrasecoach.config import Settings, get_settings
from phrasecoach.core.db import get_db
from phrasecoach.services import (
    ChatService,
    ExpressionService,
    GuidedSessionService,
    OpenAIChatClient,
    PracticeService,
    ProgressService,
    SimilarityScorer,
    TextGenerationClient,
)


logger = logging.getLogger(__name__)


class ServiceContainer:
    """
    Container for application-wide services.
    Owns the text-generation client so its connection pool lives as long as the app.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self._settings = settings
        self._text_client: Optional[TextGenerationClient] = None
        self._initialized = False
        self._initialization_lock = asyncio.Lock()

    @property
    def settings(self) -> Settings:
        return self._settings or get_settings()

    async def initialize_services(self) -> None:
        async with self._initialization_lock:
            if self._initialized:
                return

            logger.info("Initializing service container")
            self._text_client = OpenAIChatClient(self.settings.llm)
            self._initialized = True
            logger.info("Service container initialization completed")

    async def cleanup_services(self) -> None:
        logger.info("Cleaning up service container")
        try:
            if self._text_client:
                await self._text_client.aclose()
        except Exception as e:
            logger.error(f"Service container cleanup failed: {e}", exc_info=True)
        finally:
            self._text_client = None
            self._initialized = False

    def get_text_client(self) -> TextGenerationClient:
        if not self._initialized or self._text_client is None:
            raise RuntimeError("Service container not initialized")
        return self._text_client


# Global service container
service_container = ServiceContainer()


def get_service_container(request: Request) -> ServiceContainer:
    return getattr(request.app.state, "service_container", service_container)


def get_text_generation_client(
    container: ServiceContainer = Depends(get_service_container),
) -> TextGenerationClient:
    return container.get_text_client()


def get_similarity_scorer(settings: Settings = Depends(get_settings)) -> SimilarityScorer:
    practice = settings.practice
    return SimilarityScorer(practice.similarity_algorithm, practice.score_cap)


def get_practice_service(
    client: TextGenerationClient = Depends(get_text_generation_client),
    scorer: SimilarityScorer = Depends(get_similarity_scorer),
    settings: Settings = Depends(get_settings),
) -> PracticeService:
    return PracticeService(client, scorer, settings.practice, settings.llm)


def get_expression_service(db: Session = Depends(get_db)) -> ExpressionService:
    return ExpressionService(db)


def get_progress_service(db: Session = Depends(get_db)) -> ProgressService:
    return ProgressService(db)


def get_chat_service(
    db: Session = Depends(get_db),
    scorer: SimilarityScorer = Depends(get_similarity_scorer),
    settings: Settings = Depends(get_settings),
) -> ChatService:
    return ChatService(db, scorer, settings.practice.usage_threshold)


def get_guided_session_service(
    db: Session = Depends(get_db),
    practice: PracticeService = Depends(get_practice_service),
    scorer: SimilarityScorer = Depends(get_similarity_scorer),
    settings: Settings = Depends(get_settings),
) -> GuidedSessionService:
    return GuidedSessionService(
        db,
        practice,
        scorer,
        correct_threshold=settings.practice.guided_correct_threshold,
        history_turns=settings.practice.conversation_history_turns,
    )
