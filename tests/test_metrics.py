from __future__ import annotations

import numpy as np
import pytest

from dynwarp.config.schema import DTWConfig, FastDTWConfig, SearchConfig, SoftDTWConfig
from dynwarp.exact import dtw, dtw_cost
from dynwarp.fast import fastdtw
from dynwarp.metrics import DTW, FastDTW, SoftDTW, distance_profile, distpath, metric_from_config
from dynwarp.search import distance_profile as raw_profile
from dynwarp.soft import soft_dtw_cost


def _pair(seed: int = 0, n: int = 20, m: int = 20) -> tuple[np.ndarray, np.ndarray]:
    rng = np.random.default_rng(seed)
    return np.cumsum(rng.normal(size=n)), np.cumsum(rng.normal(size=m))


def test_dtw_equal_lengths() -> None:
    x, y = _pair()
    d = DTW(radius=3)
    assert d(x, y) == pytest.approx(dtw_cost(x, y, radius=3))
    assert d.kind == "exact"


def test_dtw_equal_lengths_normalized() -> None:
    x, _ = _pair()
    d = DTW(radius=2, normalizer="zscore")
    assert d(x, 4.0 * x - 1.0) == pytest.approx(0.0, abs=1e-12)


def test_dtw_unequal_lengths_uses_best_window() -> None:
    x, y = _pair(n=8, m=30)
    d = DTW(radius=2)
    prof = raw_profile(x, y, radius=2)
    assert d(x, y) == pytest.approx(float(prof.min()))
    # argument order does not matter: the shorter series is the query
    assert d(y, x) == pytest.approx(float(prof.min()))


def test_dtw_unequal_lengths_without_radius() -> None:
    x, y = _pair(n=6, m=15)
    prof = raw_profile(x, y, radius=6)
    assert DTW()(x, y) == pytest.approx(float(prof.min()))


def test_soft_and_fast_evaluate() -> None:
    x, y = _pair(n=16, m=18)
    assert SoftDTW(gamma=0.1)(x, y) == pytest.approx(soft_dtw_cost(x, y, gamma=0.1))
    assert FastDTW(radius=1)(x, y) == pytest.approx(fastdtw(x, y, radius=1).cost)


def test_distpath() -> None:
    x, y = _pair(n=12, m=14)
    res = distpath(DTW(radius=None), x, y)
    ref = dtw(x, y)
    assert res.cost == pytest.approx(ref.cost)
    assert res.path.tolist() == ref.path.tolist()
    assert distpath(FastDTW(radius=20), x, y).cost == pytest.approx(ref.cost)

    lo = np.zeros(12, dtype=int)
    hi = np.full(12, 13)
    assert distpath(DTW(radius=1), x, y, lo, hi).cost == pytest.approx(ref.cost)
    with pytest.raises(ValueError):
        distpath(DTW(radius=1), x, y, lo, None)
    with pytest.raises(TypeError):
        distpath(SoftDTW(gamma=1.0), x, y)


def test_distance_profile_only_for_dtw() -> None:
    q = np.array([0.0, 1.0, 2.0, 1.0, 0.0])
    t = np.array([5.0, 5.0, 0.0, 1.0, 2.0, 1.0, 0.0, 5.0, 5.0])
    prof = distance_profile(DTW(radius=2), q, t)
    assert int(np.argmin(prof)) == 2
    with pytest.raises(TypeError):
        distance_profile(FastDTW(radius=1), q, t)


def test_metric_from_config() -> None:
    assert metric_from_config(DTWConfig(radius=4)) == DTW(radius=4)
    assert metric_from_config(SoftDTWConfig(gamma=0.5)) == SoftDTW(gamma=0.5)
    assert metric_from_config(FastDTWConfig(radius=2)) == FastDTW(radius=2)
    with pytest.raises(TypeError):
        metric_from_config(SearchConfig())
