# Business logic services

from .similarity import SimilarityScorer, overlap_ratio, jaccard, tokenize
from .text_generation import TextGenerationClient, OpenAIChatClient, Result, capture
from .practice_service import PracticeService
from .expression_service import ExpressionService
from .chat_service import ChatService
from .progress_service import ProgressService
from .guided_session_service import GuidedSessionService

__all__ = [
    'SimilarityScorer',
    'overlap_ratio',
    'jaccard',
    'tokenize',
    'TextGenerationClient',
    'OpenAIChatClient',
    'Result',
    'capture',
    'PracticeService',
    'ExpressionService',
    'ChatService',
    'ProgressService',
    'GuidedSessionService',
]
