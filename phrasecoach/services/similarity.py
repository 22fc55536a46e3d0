"""
Similarity Scorer - token-overlap relevance between a query and expressions

Two formulas are available and a deployment uses exactly one of them:

- overlap: query tokens (with repetition) found in the candidate, divided by
  the longer token list. Not symmetric when a side repeats tokens.
- jaccard: shared distinct tokens divided by the distinct-token union.
  Symmetric.

For "thank you very much" vs "thank you so much" overlap gives 0.75 and
jaccard gives 0.6.
"""
from typing import Iterable, Optional, Sequence

from phrasecoach.config.settings import SimilarityAlgorithm
from phrasecoach.core.exceptions import InvalidArgumentError
from phrasecoach.schemas.practice import SearchResult


def tokenize(text: str) -> list[str]:
    """Lowercase and split on whitespace."""
    return text.lower().split()


def _require_str(value, name: str) -> str:
    if not isinstance(value, str):
        raise InvalidArgumentError(
            f"{name} must be a string",
            details={"field": name, "type": type(value).__name__},
        )
    return value


def validate_top_k(k: Optional[int]) -> Optional[int]:
    """None means no limit; anything else must be a positive int."""
    if k is not None and (isinstance(k, bool) or not isinstance(k, int) or k < 1):
        raise InvalidArgumentError("top_k must be a positive integer", details={"top_k": k})
    return k


def overlap_ratio(query: str, candidate: str) -> float:
    query_tokens = tokenize(_require_str(query, "query"))
    candidate_tokens = tokenize(_require_str(candidate, "candidate"))
    if not query_tokens or not candidate_tokens:
        return 0.0

    common = sum(1 for token in query_tokens if token in candidate_tokens)
    return common / max(len(query_tokens), len(candidate_tokens))


def jaccard(query: str, candidate: str) -> float:
    query_tokens = set(tokenize(_require_str(query, "query")))
    candidate_tokens = set(tokenize(_require_str(candidate, "candidate")))
    if not query_tokens or not candidate_tokens:
        return 0.0

    return len(query_tokens & candidate_tokens) / len(query_tokens | candidate_tokens)


_ALGORITHMS = {
    SimilarityAlgorithm.OVERLAP: overlap_ratio,
    SimilarityAlgorithm.JACCARD: jaccard,
}


class SimilarityScorer:
    """Scores and ranks candidate strings with one fixed formula"""

    def __init__(
        self,
        algorithm: SimilarityAlgorithm = SimilarityAlgorithm.OVERLAP,
        score_cap: float = 1.0,
    ):
        self.algorithm = SimilarityAlgorithm(algorithm)
        self.score_cap = score_cap
        self._score = _ALGORITHMS[self.algorithm]

    def score(self, query: str, candidate: str) -> float:
        """Raw similarity in [0, 1]; identical non-empty strings score 1.0."""
        return self._score(query, candidate)

    def score_all(self, query: str, candidates: Sequence[str]) -> list[float]:
        _require_str(query, "query")
        return [self.score(query, candidate) for candidate in candidates]

    def top_k(
        self,
        query: str,
        candidates: Sequence[str],
        k: Optional[int] = None,
    ) -> list[SearchResult]:
        """
        Rank candidates by score, highest first.

        Args:
            query: Query text
            candidates: Candidate texts in caller order (ties keep this order)
            k: Maximum number of results; None returns every candidate

        Returns:
            SearchResult list with scores capped at ``score_cap``
        """
        return self.rank(query, [(None, text) for text in candidates], k)

    def rank(
        self,
        query: str,
        candidates: Iterable[tuple[Optional[int], str]],
        k: Optional[int] = None,
    ) -> list[SearchResult]:
        """Like top_k, for (expression_id, text) pairs."""
        _require_str(query, "query")
        validate_top_k(k)

        results = [
            SearchResult(
                text=text,
                score=min(self.score_cap, self.score(query, text)),
                expression_id=expression_id,
            )
            for expression_id, text in candidates
        ]
        # sorted() is stable with reverse=True, so ties keep input order
        results = sorted(results, key=lambda r: r.score, reverse=True)
        return results if k is None else results[:k]

    def detect_usage(
        self,
        message: str,
        candidates: Iterable[tuple[int, str]],
        threshold: float = 0.6,
    ) -> Optional[int]:
        """
        Return the id of the first expression the message uses.

        An expression counts as used when its text appears verbatim
        (case-insensitive) in the message or its similarity to the message
        exceeds ``threshold``.
        """
        lowered = _require_str(message, "message").lower()
        for expression_id, text in candidates:
            candidate = text.lower().strip()
            if candidate and candidate in lowered:
                return expression_id
            if self.score(lowered, candidate) > threshold:
                return expression_id
        return None
