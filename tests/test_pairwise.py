from __future__ import annotations

import numpy as np
import pytest

from dynwarp.metrics import DTW, FastDTW
from dynwarp.pairwise import distance_matrix


def _collection(k: int = 5) -> list[np.ndarray]:
    rng = np.random.default_rng(0)
    return [np.cumsum(rng.normal(size=18)) for _ in range(k)]


def test_symmetric_with_zero_diagonal() -> None:
    xs = _collection()
    metric = DTW(radius=3)
    D = distance_matrix(metric, xs)
    assert D.shape == (5, 5)
    np.testing.assert_allclose(D, D.T)
    assert np.all(np.diag(D) == 0.0)
    assert D[1, 3] == pytest.approx(metric(xs[1], xs[3]))


def test_condensed_form() -> None:
    xs = _collection(4)
    v = distance_matrix(FastDTW(radius=1), xs, condensed=True)
    assert v.shape == (6,)
    assert v[0] == pytest.approx(FastDTW(radius=1)(xs[0], xs[1]))


def test_parallel_matches_serial() -> None:
    xs = _collection(6)
    metric = DTW(radius=2)
    np.testing.assert_allclose(
        distance_matrix(metric, xs, n_jobs=2),
        distance_matrix(metric, xs),
    )


def test_trivial_collections() -> None:
    assert distance_matrix(DTW(), []).shape == (0, 0)
    assert distance_matrix(DTW(), [np.ones(3)]).tolist() == [[0.0]]
