from __future__ import annotations

import numpy as np
import pytest

from dynwarp.config.schema import SearchConfig
from dynwarp.errors import InvalidRadius, QueryTooLong
from dynwarp.exact import dtw_cost
from dynwarp.normalizers import zscore
from dynwarp.search import distance_profile, dtwnn, dtwnn_from_config


QUERY = np.array([0.0, 1.0, 2.0, 1.0, 0.0])
TARGET = np.array([5.0, 5.0, 0.0, 1.0, 2.0, 1.0, 0.0, 5.0, 5.0])


def _brute_profile(q: np.ndarray, t: np.ndarray, r: int, norm=None) -> np.ndarray:
    m = q.shape[0]
    qq = q if norm is None else norm(q)
    out = []
    for s in range(t.shape[0] - m + 1):
        w = t[s : s + m]
        ww = w if norm is None else norm(w)
        out.append(dtw_cost(qq, ww, radius=r))
    return np.asarray(out)


def test_example_profile() -> None:
    prof = distance_profile(QUERY, TARGET, radius=2)
    assert prof.shape == (5,)
    assert int(np.argmin(prof)) == 2
    assert prof[2] == 0.0
    assert np.all(np.delete(prof, 2) > 0.0)
    np.testing.assert_allclose(prof, _brute_profile(QUERY, TARGET, 2))


def test_example_search() -> None:
    res = dtwnn(QUERY, TARGET, radius=2)
    assert res.loc == 2
    assert res.cost == 0.0
    assert res.dists is None
    assert sum(res.prunestats.values()) == 5


def test_save_all_reports_best_too() -> None:
    res = dtwnn(QUERY, TARGET, radius=2, save_all=True)
    assert res.loc == 2 and res.cost == 0.0
    assert res.dists.shape == (5,)
    assert res.prunestats["evaluated"] == 5


def test_query_too_long_exactly_when_longer() -> None:
    with pytest.raises(QueryTooLong) as ei:
        dtwnn(np.zeros(6), np.zeros(5), radius=1)
    assert ei.value.query_length == 6 and ei.value.target_length == 5
    res = dtwnn(np.zeros(5), np.ones(5), radius=1, save_all=True)
    assert res.dists.shape == (1,)
    assert res.loc == 0


def test_validation_before_work() -> None:
    with pytest.raises(InvalidRadius):
        dtwnn(QUERY, TARGET, radius=-2)
    with pytest.raises(ValueError):
        dtwnn(np.zeros(0), TARGET, radius=1)


@pytest.mark.parametrize("seed", [0, 1, 2, 3, 4])
def test_pruned_search_matches_brute_force(seed: int) -> None:
    rng = np.random.default_rng(seed)
    target = np.cumsum(rng.normal(size=300))
    query = np.cumsum(rng.normal(size=24))
    prof = _brute_profile(query, target, 3)
    res = dtwnn(query, target, radius=3)
    assert res.loc == int(np.argmin(prof))
    assert res.cost == pytest.approx(float(prof.min()))
    stats = res.prunestats
    assert sum(stats.values()) == target.size - query.size + 1
    assert stats["prune_end"] + stats["prune_env"] + stats["abandoned"] > 0


def test_pruned_search_with_normalizer() -> None:
    rng = np.random.default_rng(12)
    target = np.cumsum(rng.normal(size=200))
    query = 3.0 * target[120:150] + 7.0
    res = dtwnn(query, target, radius=2, normalizer="zscore")
    assert res.loc == 120
    assert res.cost == pytest.approx(0.0, abs=1e-9)
    prof = _brute_profile(query, target, 2, norm=zscore)
    np.testing.assert_allclose(distance_profile(query, target, radius=2, normalizer="zscore"), prof)


def test_embedded_copy_is_global_minimum() -> None:
    rng = np.random.default_rng(3)
    target = rng.normal(size=150)
    query = target[40:60].copy()
    prof = distance_profile(query, target, radius=4)
    assert prof.shape == (150 - 20 + 1,)
    assert int(np.argmin(prof)) == 40
    assert prof[40] == pytest.approx(0.0)


def test_ties_resolve_to_first_offset() -> None:
    q = np.array([1.0, 2.0, 3.0])
    t = np.array([0.0, 1.0, 2.0, 3.0, 0.0, 1.0, 2.0, 3.0])
    assert dtwnn(q, t, radius=1).loc == 1
    assert dtwnn(q, t, radius=1, save_all=True).loc == 1


def test_seeded_best_so_far() -> None:
    res = dtwnn(QUERY, TARGET, radius=2, best_so_far=-1.0)
    assert res.loc == -1
    assert res.cost == -1.0


def test_non_admissible_distance_skips_envelope() -> None:
    rng = np.random.default_rng(4)
    target = rng.normal(size=80)
    query = rng.normal(size=10)
    dist = lambda a, b: (a - b) ** 2  # noqa: E731
    res = dtwnn(query, target, dist, radius=2)
    ref = dtwnn(query, target, "sqeuclidean", radius=2)
    assert res.prunestats["prune_env"] == 0
    assert res.loc == ref.loc
    assert res.cost == pytest.approx(ref.cost)


def test_without_pruning_flags() -> None:
    rng = np.random.default_rng(5)
    target = rng.normal(size=90)
    query = rng.normal(size=12)
    res = dtwnn(query, target, radius=2, prune_endpoints=False, use_lb_keogh=False)
    assert res.prunestats["prune_end"] == 0 and res.prunestats["prune_env"] == 0
    prof = _brute_profile(query, target, 2)
    assert res.loc == int(np.argmin(prof))


def test_transportcost_is_forwarded() -> None:
    rng = np.random.default_rng(6)
    target = rng.normal(size=40)
    query = rng.normal(size=8)
    prof = distance_profile(query, target, radius=2, transportcost=2.0)
    ref = [dtw_cost(query, target[s : s + 8], radius=2, transportcost=2.0) for s in range(33)]
    np.testing.assert_allclose(prof, ref)


def test_multivariate_search() -> None:
    rng = np.random.default_rng(8)
    target = rng.normal(size=(120, 2))
    query = target[70:85] + 0.01 * rng.normal(size=(15, 2))
    res = dtwnn(query, target, radius=2)
    assert res.loc == 70


def test_parallel_matches_serial() -> None:
    rng = np.random.default_rng(9)
    target = np.cumsum(rng.normal(size=160))
    query = np.cumsum(rng.normal(size=16))
    serial = dtwnn(query, target, radius=2)
    par = dtwnn(query, target, radius=2, n_jobs=2)
    assert par.loc == serial.loc
    assert par.cost == pytest.approx(serial.cost)
    assert sum(par.prunestats.values()) == 160 - 16 + 1
    np.testing.assert_allclose(
        distance_profile(query, target, radius=2, n_jobs=2),
        distance_profile(query, target, radius=2),
    )


def test_from_config() -> None:
    cfg = SearchConfig(radius=2, save_all=True)
    res = dtwnn_from_config(QUERY, TARGET, cfg=cfg)
    assert res.dists is not None and res.loc == 2
