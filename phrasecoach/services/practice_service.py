"""
Practice-Round Service - LLM-backed dialogue generation and grading

Every external call is best effort: a failed or unusable completion is
replaced by a deterministic fallback and never raised to the caller.
"""
import asyncio
import json
import logging
from typing import Awaitable, Optional, Sequence, TypeVar

from phrasecoach.config.settings import LLMSettings, PracticeSettings
from phrasecoach.core.exceptions import ExternalServiceError, InvalidArgumentError
from phrasecoach.core.metrics import increment
from phrasecoach.schemas.practice import (
    DialoguePair,
    Evaluation,
    ExpressionPreview,
    ExpressionRef,
    PracticeDialogue,
    PracticeRound,
    Scenario,
    SearchResponse,
)
from phrasecoach.services.similarity import SimilarityScorer, validate_top_k
from phrasecoach.services.text_generation import Result, TextGenerationClient, capture

logger = logging.getLogger(__name__)

T = TypeVar("T")

YOUR_TURN_PROMPT = "👉 Your turn to speak:"
CORRECT_SENTINEL = "Correct!"
INCORRECT_LABEL = "Incorrect:"
EVALUATION_ERROR_FEEDBACK = "We couldn't evaluate your answer right now. Please try again."

SEARCH_QUERY_SYSTEM_PROMPT = "You are an assistant that writes short search queries for language learners."

SEARCH_QUERY_PROMPT = """You are an assistant helping an English learner search for example sentences in a spoken dialogue database.

The learner typed: "{user_input}"

Please generate a **concise search query** that focuses on the **key English expression or grammar pattern** they are trying to practice (e.g. "I wish", "It turns out", "I should have", etc.).

- Focus ONLY on reusable English expressions, grammar phrases, or sentence structures.
- Do NOT use specific nouns (e.g. "doctor", "coffee", "car") as the main focus of the search query.
- Your query should work even if the topic or noun is changed.

Return only the clean search query (1 sentence or phrase). No explanations."""

DIALOGUE_SYSTEM_PROMPT = "You are a dialogue writer crafting natural conversations."

DIALOGUE_PROMPT = """Target sentence: "{target_sentence}"

Generate exactly three pairs of dialogue turns between speakers A(system) and B(user) that build up to the student needing to say the target sentence.
Prefix every line with "A:" or "B:".
Do NOT include the target sentence itself in the dialogue.
Output only the lines, with a blank line between each pair,
then output exactly '{your_turn}' on the final line."""

GRADING_SYSTEM_PROMPT = "You are a friendly language coach."

GRADING_PROMPT = """Target sentence: "{target_sentence}"
Student response: "{user_response}"

If the student used the target sentence correctly, reply ONLY with '{correct}'.
Otherwise, reply with '{incorrect}' followed by a brief note in {language}."""

SCENARIO_SYSTEM_PROMPT = "You are a conversation scenario generator."

SCENARIO_PROMPT = """Create a realistic scenario where someone would naturally use the expression "{expression}".

Respond with JSON in this format:
{{
  "scenario": "Brief one-sentence description of the situation",
  "initialMessage": "What the other person (staff, friend, etc.) would say to start the conversation"
}}

Make it natural and conversational in English."""

CONVERSATION_SYSTEM_PROMPT = "You are a friendly conversation partner in a language-practice role-play."

CONVERSATION_PROMPT = """Scenario: {scenario}
The learner needs to practice using this expression: "{target_sentence}"

Conversation so far:
{history}
Learner: {user_message}

Continue the conversation naturally to encourage them to use the target expression.
Keep your reply short and conversational. Reply with your next line only."""

FALLBACK_OPENING = "Hello! How can I help you today?"
DEFAULT_OPENING = "Hello, how can I help you?"
CONVERSATION_FALLBACK = "Could you try that again?"


def require_text(value, name: str) -> str:
    if not isinstance(value, str):
        raise InvalidArgumentError(
            f"{name} must be a string",
            details={"field": name, "type": type(value).__name__},
        )
    if not value.strip():
        raise InvalidArgumentError(f"{name} must not be empty", details={"field": name})
    return value


def parse_dialogue(text: str) -> list[DialoguePair]:
    """
    Split a generated script into speaker turns.

    Blank lines and the closing prompt line are dropped. Explicit "A:" / "B:"
    prefixes win; unprefixed lines alternate A, B, A... by their position
    among non-blank lines.
    """
    pairs = []
    lines = [line.strip() for line in text.splitlines() if line.strip()]
    for index, line in enumerate(lines):
        if "👉" in line:
            continue
        if line.startswith("A:"):
            pairs.append(DialoguePair(speaker="A", content=line[2:].strip()))
        elif line.startswith("B:"):
            pairs.append(DialoguePair(speaker="B", content=line[2:].strip()))
        else:
            pairs.append(DialoguePair(speaker="A" if index % 2 == 0 else "B", content=line))
    return [pair for pair in pairs if pair.content]


def is_correct_verdict(text: str) -> bool:
    """True only when the first non-blank line is exactly the sentinel."""
    for line in text.splitlines():
        if line.strip():
            return line.strip() == CORRECT_SENTINEL
    return False


def parse_scenario(text: str) -> dict:
    """
    Extract the JSON object from a scenario completion.

    Text around the outermost braces (such as a code fence) is ignored.
    """
    start, end = text.find("{"), text.rfind("}")
    if start == -1 or end <= start:
        raise ExternalServiceError("No JSON object in scenario response")
    try:
        payload = json.loads(text[start:end + 1])
    except ValueError as e:
        raise ExternalServiceError("Malformed scenario response", details={"error": str(e)}) from e
    if not isinstance(payload, dict):
        raise ExternalServiceError("Scenario response is not an object")
    return payload


def _text_field(payload: dict, key: str) -> str:
    value = payload.get(key)
    return value.strip() if isinstance(value, str) else ""


async def run_concurrently(*awaitables: Awaitable[T]) -> list[T]:
    """
    Gather awaitables as tasks, preserving argument order in the result.

    If the caller is cancelled or any task fails, unfinished tasks are
    cancelled instead of being left running.
    """
    tasks = [asyncio.ensure_future(aw) for aw in awaitables]
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            if not task.done():
                task.cancel()
        raise


class PracticeService:
    """Builds practice rounds for stored or caller-supplied expressions"""

    def __init__(
        self,
        client: TextGenerationClient,
        scorer: SimilarityScorer,
        practice_settings: PracticeSettings,
        llm_settings: LLMSettings,
    ):
        self.client = client
        self.scorer = scorer
        self.practice_settings = practice_settings
        self.llm_settings = llm_settings

    async def _complete(self, system_prompt: str, user_prompt: str, temperature: float) -> Result[str]:
        result = await capture(self.client.complete(system_prompt, user_prompt, temperature))
        if result.ok and not result.value.strip():
            return Result(error=ExternalServiceError("Empty text generation response"))
        return result

    def _fallback(self, operation: str, error: ExternalServiceError) -> None:
        increment(f"practice.fallback.{operation}")
        logger.warning(
            f"{operation} fell back to default: {error.message}",
            extra={"error_code": error.error_code.value},
        )

    async def generate_search_query(self, user_input: str) -> str:
        """
        Turn free learner input into a focused search query.

        Returns the input unchanged when the external call fails.
        """
        require_text(user_input, "user_input")
        result = await self._complete(
            SEARCH_QUERY_SYSTEM_PROMPT,
            SEARCH_QUERY_PROMPT.format(user_input=user_input),
            self.llm_settings.search_query_temperature,
        )
        if not result.ok:
            self._fallback("search_query", result.error)
            return user_input
        return result.value.strip()

    async def _dialogue_text(self, target_sentence: str) -> Result[str]:
        return await self._complete(
            DIALOGUE_SYSTEM_PROMPT,
            DIALOGUE_PROMPT.format(target_sentence=target_sentence, your_turn=YOUR_TURN_PROMPT),
            self.llm_settings.dialogue_temperature,
        )

    @staticmethod
    def fallback_dialogue(target_sentence: str) -> PracticeDialogue:
        return PracticeDialogue(
            target_sentence=target_sentence,
            dialogue_pairs=[
                DialoguePair(speaker="A", content=f'Let\'s practice using: "{target_sentence}"'),
                DialoguePair(speaker="A", content="How would you respond in this situation?"),
            ],
            final_prompt=YOUR_TURN_PROMPT,
        )

    async def generate_practice_dialogue(self, target_sentence: str) -> PracticeDialogue:
        require_text(target_sentence, "target_sentence")
        result = await self._dialogue_text(target_sentence)
        if result.ok:
            pairs = parse_dialogue(result.value)
            if pairs:
                return PracticeDialogue(
                    target_sentence=target_sentence,
                    dialogue_pairs=pairs,
                    final_prompt=YOUR_TURN_PROMPT,
                )
            result = Result(error=ExternalServiceError("No dialogue lines in response"))

        self._fallback("dialogue", result.error)
        return self.fallback_dialogue(target_sentence)

    async def evaluate_response(self, user_response: str, target_sentence: str) -> Evaluation:
        """
        Grade a learner's attempt at the target sentence.

        Correct only on an exact "Correct!" first line; an explanation that
        merely mentions the word is graded incorrect.
        """
        require_text(user_response, "user_response")
        require_text(target_sentence, "target_sentence")
        result = await self._complete(
            GRADING_SYSTEM_PROMPT,
            GRADING_PROMPT.format(
                target_sentence=target_sentence,
                user_response=user_response,
                correct=CORRECT_SENTINEL,
                incorrect=INCORRECT_LABEL,
                language=self.practice_settings.feedback_language,
            ),
            self.llm_settings.grading_temperature,
        )
        if not result.ok:
            self._fallback("evaluation", result.error)
            return Evaluation(
                is_correct=False,
                feedback=EVALUATION_ERROR_FEEDBACK,
                target_sentence=target_sentence,
            )

        text = result.value.strip()
        if is_correct_verdict(text):
            return Evaluation(is_correct=True, feedback=CORRECT_SENTINEL, target_sentence=target_sentence)

        feedback = text[len(INCORRECT_LABEL):].strip() if text.startswith(INCORRECT_LABEL) else text
        return Evaluation(
            is_correct=False,
            feedback=feedback or text,
            target_sentence=target_sentence,
        )

    async def practice_round(self, user_input: str) -> PracticeRound:
        """Search query and lead-in script for an already selected expression."""
        require_text(user_input, "user_input")
        search_query, dialogue = await run_concurrently(
            self.generate_search_query(user_input),
            self._dialogue_text(user_input),
        )
        if dialogue.ok:
            script = dialogue.value.strip()
        else:
            self._fallback("dialogue", dialogue.error)
            script = f'Target sentence: "{user_input}"\n\n{YOUR_TURN_PROMPT}'

        return PracticeRound(
            search_query=search_query,
            target_sentence=user_input,
            dialogue_script=script,
        )

    async def preview_expressions(self, expressions: Sequence[ExpressionRef]) -> list[ExpressionPreview]:
        """
        Search query plus closest matches for each expression.

        Queries are generated concurrently and paired back by position.
        """
        if not expressions:
            return []
        for expr in expressions:
            require_text(expr.text, "expression.text")

        queries = await run_concurrently(*(self.generate_search_query(e.text) for e in expressions))
        candidates = [(e.id, e.text) for e in expressions]

        return [
            ExpressionPreview(
                expression=expr,
                search_query=query,
                top_results=self.scorer.rank(query, candidates, self.practice_settings.preview_top_k),
            )
            for expr, query in zip(expressions, queries)
        ]

    async def search_expressions(
        self,
        user_input: str,
        expressions: Sequence[ExpressionRef],
        top_k: Optional[int] = None,
    ) -> SearchResponse:
        """Generate a search query from learner input and rank expressions against it."""
        top_k = validate_top_k(top_k if top_k is not None else self.practice_settings.default_top_k)
        search_query = await self.generate_search_query(user_input)
        results = self.scorer.rank(search_query, [(e.id, e.text) for e in expressions], top_k)
        return SearchResponse(search_query=search_query, results=results)

    async def generate_scenario(self, expression_text: str) -> Scenario:
        """
        Role-play setting and opening line for practicing one expression.

        Missing fields in the generated JSON get neutral defaults; a failed
        or unparseable completion gives the fixed practice fallback.
        """
        require_text(expression_text, "expression_text")
        result = await self._complete(
            SCENARIO_SYSTEM_PROMPT,
            SCENARIO_PROMPT.format(expression=expression_text),
            self.llm_settings.scenario_temperature,
        )
        if result.ok:
            try:
                payload = parse_scenario(result.value)
            except ExternalServiceError as e:
                result = Result(error=e)
            else:
                return Scenario(
                    scenario=_text_field(payload, "scenario")
                    or f'Situation where you might say "{expression_text}"',
                    initial_message=_text_field(payload, "initialMessage") or DEFAULT_OPENING,
                )

        self._fallback("scenario", result.error)
        return Scenario(
            scenario=f'Practice using: "{expression_text}"',
            initial_message=FALLBACK_OPENING,
        )

    async def continue_conversation(
        self,
        scenario: str,
        target_sentence: str,
        user_message: str,
        history: Sequence[tuple[bool, str]] = (),
    ) -> str:
        """
        Next partner line in a guided role-play.

        Args:
            scenario: Setting of the role-play
            target_sentence: Expression the learner is practicing
            user_message: The learner's latest line
            history: Earlier (is_user, content) turns, oldest first

        Returns:
            The generated reply, or a request to try again when generation fails
        """
        require_text(target_sentence, "target_sentence")
        require_text(user_message, "user_message")
        limit = self.practice_settings.conversation_history_turns
        turns = list(history)[-limit:] if limit else []
        transcript = "\n".join(
            f"{'Learner' if is_user else 'Partner'}: {content}" for is_user, content in turns
        ) or "(no earlier messages)"

        result = await self._complete(
            CONVERSATION_SYSTEM_PROMPT,
            CONVERSATION_PROMPT.format(
                scenario=scenario or f'Practice using: "{target_sentence}"',
                target_sentence=target_sentence,
                history=transcript,
                user_message=user_message,
            ),
            self.llm_settings.conversation_temperature,
        )
        if not result.ok:
            self._fallback("conversation", result.error)
            return CONVERSATION_FALLBACK
        return result.value.strip()
