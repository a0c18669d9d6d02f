import math

import pytest

from shared.helper.vector_math import (
    cosine_similarity,
    is_valid_embedding,
    normalize_vector,
    pack_float32,
    rank_by_similarity,
    unpack_float32,
)


def test_cosine_similarity_is_symmetric():
    a, b = [0.3, -1.2, 4.0], [2.0, 0.5, -0.7]

    assert cosine_similarity(a, b) == pytest.approx(cosine_similarity(b, a))


def test_cosine_similarity_of_parallel_vectors_is_one():
    assert cosine_similarity([1.0, 2.0, 3.0], [2.0, 4.0, 6.0]) == pytest.approx(1.0)
    assert cosine_similarity([1.0, 0.0], [-3.0, 0.0]) == pytest.approx(-1.0)
    assert cosine_similarity([1.0, 0.0], [0.0, 5.0]) == pytest.approx(0.0)


def test_cosine_similarity_is_nan_for_zero_or_mismatched_vectors():
    assert math.isnan(cosine_similarity([0.0, 0.0], [1.0, 1.0]))
    assert math.isnan(cosine_similarity([1.0, 2.0], [1.0, 2.0, 3.0]))


def test_normalize_vector_has_unit_length():
    vector = normalize_vector([3.0, 4.0])

    assert vector == pytest.approx([0.6, 0.8])
    assert normalize_vector([0.0, 0.0]) == [0.0, 0.0]


@pytest.mark.parametrize(
    "value, expected",
    [
        ([0.1, 2, -3.5], True),
        ((1.0,), True),
        ([], False),
        (None, False),
        ("0.1,0.2", False),
        ([0.1, "0.2"], False),
        ([True, False], False),
        ([1.0, math.nan], False),
        ([math.inf], False),
    ],
)
def test_is_valid_embedding(value, expected):
    assert is_valid_embedding(value) is expected


def test_rank_orders_by_descending_score():
    candidates = [("low", [0.0, 1.0]), ("high", [1.0, 0.0]), ("mid", [1.0, 1.0])]

    ranked = rank_by_similarity([1.0, 0.0], candidates, top_k=3)

    assert [item for item, _ in ranked] == ["high", "mid", "low"]
    scores = [score for _, score in ranked]
    assert scores == sorted(scores, reverse=True)


def test_rank_keeps_scan_order_for_ties():
    candidates = [("first", [1.0, 0.0]), ("second", [2.0, 0.0]), ("third", [0.5, 0.0])]

    ranked = rank_by_similarity([1.0, 0.0], candidates, top_k=3)

    assert [item for item, _ in ranked] == ["first", "second", "third"]


def test_rank_puts_nan_scores_last():
    candidates = [("zero", [0.0, 0.0]), ("opposite", [-1.0, 0.0]), ("short", [1.0]), ("same", [1.0, 0.0])]

    ranked = rank_by_similarity([1.0, 0.0], candidates, top_k=4)

    assert [item for item, _ in ranked[:2]] == ["same", "opposite"]
    assert all(math.isnan(score) for _, score in ranked[2:])


@pytest.mark.parametrize("top_k, expected", [(0, 0), (-1, 0), (2, 2), (10, 3)])
def test_rank_truncates_to_top_k(top_k, expected):
    candidates = [(i, [1.0, float(i)]) for i in range(3)]

    assert len(rank_by_similarity([1.0, 0.0], candidates, top_k=top_k)) == expected


def test_float32_blob_is_four_bytes_per_component():
    blob = pack_float32([0.5, -1.25, 3.0])

    assert len(blob) == 12
    assert unpack_float32(blob) == [0.5, -1.25, 3.0]
