"""
Practice-round schemas. Everything here is transient and never persisted.
"""
from typing import Literal, Optional

from phrasecoach.schemas.base import CamelModel


class SearchResult(CamelModel):
    text: str
    score: float
    expression_id: Optional[int] = None


class DialoguePair(CamelModel):
    speaker: Literal["A", "B"]
    content: str


class PracticeDialogue(CamelModel):
    target_sentence: str
    dialogue_pairs: list[DialoguePair]
    final_prompt: str


class PracticeRound(CamelModel):
    search_query: str
    target_sentence: str
    dialogue_script: str
    is_correct: Optional[bool] = None
    feedback: Optional[str] = None


class Evaluation(CamelModel):
    is_correct: bool
    feedback: str
    target_sentence: str


class ExpressionRef(CamelModel):
    """An expression supplied inline by the caller"""
    id: Optional[int] = None
    text: str


class ExpressionPreview(CamelModel):
    expression: ExpressionRef
    search_query: str
    top_results: list[SearchResult]


# Requests

class SearchQueryRequest(CamelModel):
    user_input: str


class SearchQueryResponse(CamelModel):
    user_input: str
    search_query: str


class DialogueRequest(CamelModel):
    target_sentence: str


class EvaluateRequest(CamelModel):
    user_response: str
    target_sentence: str
    expression_id: Optional[int] = None


class PracticeRoundRequest(CamelModel):
    user_input: str


class PreviewRequest(CamelModel):
    expressions: Optional[list[ExpressionRef]] = None


class SearchRequest(CamelModel):
    user_input: str
    expressions: Optional[list[ExpressionRef]] = None
    top_k: Optional[int] = None


class SearchResponse(CamelModel):
    search_query: str
    results: list[SearchResult]


class Scenario(CamelModel):
    """Role-play setting that invites the learner to use one expression"""
    scenario: str
    initial_message: str
