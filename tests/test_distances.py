from __future__ import annotations

import numpy as np
import pytest

from dynwarp.distances import as_distance, cityblock, euclidean, powered_absdiff, sqeuclidean


def test_scalar_and_vector_samples() -> None:
    assert sqeuclidean(1.0, 3.0) == pytest.approx(4.0)
    assert sqeuclidean([1.0, 1.0], [2.0, 3.0]) == pytest.approx(5.0)
    assert euclidean([0.0, 0.0], [3.0, 4.0]) == pytest.approx(5.0)
    assert cityblock([0.0, 0.0], [3.0, -4.0]) == pytest.approx(7.0)


def test_row_and_pairs_agree_with_call() -> None:
    rng = np.random.default_rng(0)
    A = rng.normal(size=(6, 3))
    B = rng.normal(size=(6, 3))
    for d in (sqeuclidean, euclidean, cityblock, powered_absdiff(0.5)):
        row = d.row(A[0], B)
        assert row.shape == (6,)
        np.testing.assert_allclose(row, [d(A[0], b) for b in B])
        np.testing.assert_allclose(d.pairs(A, B), [d(a, b) for a, b in zip(A, B)])


def test_univariate_row() -> None:
    np.testing.assert_allclose(sqeuclidean.row(1.0, np.array([0.0, 1.0, 3.0])), [1.0, 0.0, 4.0])


def test_wrapped_callable_has_no_envelope_bound() -> None:
    d = as_distance(lambda a, b: abs(a - b))
    assert d.envelope_admissible is False
    np.testing.assert_allclose(d.row(1.0, np.array([0.0, 3.0])), [1.0, 2.0])
    np.testing.assert_allclose(d.pairs(np.array([1.0, 2.0]), np.array([0.0, 0.0])), [1.0, 2.0])


def test_as_distance_resolution() -> None:
    assert as_distance(None) is sqeuclidean
    assert as_distance("Euclidean") is euclidean
    assert as_distance(cityblock) is cityblock
    with pytest.raises(ValueError):
        as_distance("cosine")
    with pytest.raises(TypeError):
        as_distance(1.5)


def test_powered_absdiff() -> None:
    d = powered_absdiff(0.5)
    assert d(0.0, 4.0) == pytest.approx(2.0)
    assert d.envelope_admissible
    with pytest.raises(ValueError):
        powered_absdiff(0.0)


def test_pairs_shape_mismatch() -> None:
    with pytest.raises(ValueError):
        sqeuclidean.pairs(np.zeros(3), np.zeros(4))
