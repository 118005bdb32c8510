"""Tests for cosine similarity."""

import pytest

from utils.vector_math import cosine_similarities, cosine_similarity


@pytest.mark.parametrize("vector", [
    [0.3, 0.4, 0.5],
    [0.3, 0.7, 0.11, 5.0],
    [1e-3, 7.0, -2.5],
])
def test_identical_vectors_score_exactly_one(vector):
    assert cosine_similarity(vector, vector) == 1.0
    assert cosine_similarities(vector, [vector])[0] == 1.0


def test_zero_vector_gives_zero():
    assert cosine_similarity([0.0, 0.0], [1.0, 2.0]) == 0.0
    assert cosine_similarity([1.0, 2.0], [0.0, 0.0]) == 0.0


def test_symmetry():
    a, b = [1.0, 2.0, 3.0], [-2.0, 0.5, 4.0]
    assert cosine_similarity(a, b) == pytest.approx(cosine_similarity(b, a))


def test_orthogonal_and_opposite():
    assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.0)
    assert cosine_similarity([1.0, 0.0], [-1.0, 0.0]) == -1.0
    assert cosine_similarity([0.3, 0.7, 0.11, 5.0], [-0.3, -0.7, -0.11, -5.0]) >= -1.0


def test_dimension_mismatch_raises():
    with pytest.raises(ValueError):
        cosine_similarity([1.0, 0.0], [1.0, 0.0, 0.0])


def test_batch_scores_match_pairwise():
    query = [1.0, 1.0]
    vectors = [[1.0, 1.0], [1.0, 0.0], [0.0, 0.0]]
    scores = cosine_similarities(query, vectors)
    assert scores[0] == pytest.approx(1.0)
    assert scores[1] == pytest.approx(cosine_similarity(query, vectors[1]))
    assert scores[2] == 0.0
