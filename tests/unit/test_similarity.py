"""
Unit tests for similarity scoring and ranking
"""
import pytest

from phrasecoach.config import SimilarityAlgorithm
from phrasecoach.core.exceptions import InvalidArgumentError
from phrasecoach.services.similarity import SimilarityScorer, jaccard, overlap_ratio, tokenize


def test_tokenize_lowercases_and_splits_on_whitespace():
    assert tokenize("  Thank   YOU\tvery much ") == ["thank", "you", "very", "much"]


@pytest.mark.parametrize("score", [overlap_ratio, jaccard])
def test_identical_strings_score_one(score):
    assert score("nice to meet you", "Nice to meet you") == 1.0


@pytest.mark.parametrize("score", [overlap_ratio, jaccard])
def test_disjoint_strings_score_zero(score):
    assert score("good morning", "see you later") == 0.0


@pytest.mark.parametrize("score", [overlap_ratio, jaccard])
def test_single_shared_token_out_of_five(score):
    assert score("I would like to order", "order") == pytest.approx(0.2)


def test_overlap_and_jaccard_differ_on_partial_match():
    assert overlap_ratio("thank you very much", "thank you so much") == pytest.approx(0.75)
    assert jaccard("thank you very much", "thank you so much") == pytest.approx(0.6)


@pytest.mark.parametrize("score", [overlap_ratio, jaccard])
def test_empty_side_scores_zero(score):
    assert score("", "hello") == 0.0
    assert score("hello", "   ") == 0.0


def test_overlap_counts_repeated_query_tokens():
    # both "very" tokens are found in the candidate
    assert overlap_ratio("very very good", "very good") == pytest.approx(1.0)
    assert overlap_ratio("very good", "very very good") == pytest.approx(2 / 3)


@pytest.mark.parametrize("bad", [None, 42, ["hello"]])
def test_non_string_input_rejected(bad):
    with pytest.raises(InvalidArgumentError):
        overlap_ratio(bad, "hello")
    with pytest.raises(InvalidArgumentError):
        jaccard("hello", bad)


def test_top_k_sorted_descending_and_truncated():
    scorer = SimilarityScorer()
    results = scorer.top_k(
        "how are you",
        ["see you", "how are you", "how is it going", "are you ok"],
        k=2,
    )

    assert [r.text for r in results] == ["how are you", "are you ok"]
    assert results[0].score >= results[1].score


def test_top_k_ties_keep_input_order():
    scorer = SimilarityScorer()
    results = scorer.top_k("coffee", ["tea please", "water please", "juice please"])

    assert [r.text for r in results] == ["tea please", "water please", "juice please"]
    assert all(r.score == 0.0 for r in results)


def test_top_k_with_fewer_candidates_than_k():
    scorer = SimilarityScorer()
    assert len(scorer.top_k("hello", ["hello there"], k=5)) == 1


def test_top_k_empty_candidates():
    assert SimilarityScorer().top_k("hello", [], k=3) == []


@pytest.mark.parametrize("k", [0, -1, True, 1.5])
def test_top_k_rejects_invalid_k(k):
    with pytest.raises(InvalidArgumentError):
        SimilarityScorer().top_k("hello", ["hello"], k=k)


def test_rank_caps_scores_and_keeps_ids():
    scorer = SimilarityScorer(score_cap=0.99)
    results = scorer.rank("see you later", [(7, "See you later"), (8, "later")], k=3)

    assert results[0].expression_id == 7
    assert results[0].score == pytest.approx(0.99)
    assert results[1].expression_id == 8


def test_raw_score_is_not_capped():
    scorer = SimilarityScorer(score_cap=0.99)
    assert scorer.score("see you later", "see you later") == 1.0


def test_jaccard_scorer_selected_by_setting():
    scorer = SimilarityScorer("jaccard")

    assert scorer.algorithm == SimilarityAlgorithm.JACCARD
    assert scorer.score("thank you very much", "thank you so much") == pytest.approx(0.6)


def test_detect_usage_by_containment():
    scorer = SimilarityScorer()
    candidates = [(1, "It turns out"), (2, "I wish")]

    assert scorer.detect_usage("Well, it turns out I was wrong", candidates) == 1


def test_detect_usage_by_similarity_threshold():
    scorer = SimilarityScorer()
    candidates = [(3, "thank you so much")]

    assert scorer.detect_usage("thank you very much", candidates, threshold=0.6) == 3
    assert scorer.detect_usage("thank you very much", candidates, threshold=0.8) is None


def test_detect_usage_first_match_wins():
    scorer = SimilarityScorer()
    candidates = [(1, "nice"), (2, "nice to meet you")]

    assert scorer.detect_usage("nice to meet you", candidates) == 1
