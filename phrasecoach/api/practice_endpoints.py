"""
Practice API endpoints - search queries, lead-in dialogues and grading

These endpoints never fail because of the text-generation service; they
return documented fallbacks instead.
Database calls run in the threadpool, off the event loop.
"""
from typing import Optional
from fastapi import APIRouter, Depends
from starlette.concurrency import run_in_threadpool

from phrasecoach.core.dependencies import (
    get_expression_service,
    get_practice_service,
    get_progress_service,
)
from phrasecoach.schemas.base import Envelope
from phrasecoach.schemas.practice import (
    DialogueRequest,
    EvaluateRequest,
    Evaluation,
    ExpressionPreview,
    ExpressionRef,
    PracticeDialogue,
    PracticeRound,
    PracticeRoundRequest,
    PreviewRequest,
    SearchQueryRequest,
    SearchQueryResponse,
    SearchRequest,
    SearchResponse,
)
from phrasecoach.services.expression_service import ExpressionService
from phrasecoach.services.practice_service import PracticeService
from phrasecoach.services.progress_service import ProgressService

router = APIRouter(prefix="/chat/practice", tags=["practice"])


async def _resolve_expressions(
    supplied: Optional[list[ExpressionRef]],
    expressions: ExpressionService,
) -> list[ExpressionRef]:
    if supplied is not None:
        return supplied
    stored = await run_in_threadpool(expressions.list_expressions)
    return [ExpressionRef(id=e.id, text=e.text) for e in stored]


@router.post("/search-query", response_model=Envelope[SearchQueryResponse])
async def generate_search_query(
    data: SearchQueryRequest,
    service: PracticeService = Depends(get_practice_service),
):
    """
    Reduce learner input to the reusable expression it practices

    Falls back to the input itself when generation fails.
    """
    query = await service.generate_search_query(data.user_input)
    return Envelope(data=SearchQueryResponse(user_input=data.user_input, search_query=query))


@router.post("/dialogue", response_model=Envelope[PracticeDialogue])
async def generate_dialogue(
    data: DialogueRequest,
    service: PracticeService = Depends(get_practice_service),
):
    """
    Three A/B turns leading up to the target sentence, ending with the learner's cue
    """
    dialogue = await service.generate_practice_dialogue(data.target_sentence)
    return Envelope(data=dialogue)


@router.post("/evaluate", response_model=Envelope[Evaluation])
async def evaluate_response(
    data: EvaluateRequest,
    service: PracticeService = Depends(get_practice_service),
    expressions: ExpressionService = Depends(get_expression_service),
    progress: ProgressService = Depends(get_progress_service),
):
    """
    Grade a learner's attempt

    - **userResponse**: What the learner said
    - **targetSentence**: Expression being practiced
    - **expressionId**: Optional stored expression whose counters are updated
    """
    if data.expression_id is not None:
        await run_in_threadpool(expressions.get_expression, data.expression_id)

    evaluation = await service.evaluate_response(data.user_response, data.target_sentence)

    if data.expression_id is not None:
        await run_in_threadpool(expressions.record_attempt, data.expression_id, evaluation.is_correct)
        await run_in_threadpool(progress.record_practice)
    return Envelope(data=evaluation)


@router.post("/round", response_model=Envelope[PracticeRound])
async def practice_round(
    data: PracticeRoundRequest,
    service: PracticeService = Depends(get_practice_service),
):
    round_ = await service.practice_round(data.user_input)
    return Envelope(data=round_)


@router.post("/preview", response_model=Envelope[list[ExpressionPreview]])
async def preview_expressions(
    data: PreviewRequest,
    service: PracticeService = Depends(get_practice_service),
    expressions: ExpressionService = Depends(get_expression_service),
):
    """
    Search query and closest stored matches for each expression

    - **expressions**: Expressions to preview; defaults to all stored expressions
    """
    previews = await service.preview_expressions(await _resolve_expressions(data.expressions, expressions))
    return Envelope(data=previews)


@router.post("/search", response_model=Envelope[SearchResponse])
async def search_expressions(
    data: SearchRequest,
    service: PracticeService = Depends(get_practice_service),
    expressions: ExpressionService = Depends(get_expression_service),
):
    """
    Rank expressions against learner input

    - **userInput**: Free text from the learner
    - **expressions**: Candidates; defaults to all stored expressions
    - **topK**: Maximum number of results
    """
    result = await service.search_expressions(
        data.user_input,
        await _resolve_expressions(data.expressions, expressions),
        data.top_k,
    )
    return Envelope(data=result)
