from __future__ import annotations

import numpy as np
import pytest

from dynwarp.normalizers import diagonal_zscore, identity, normalize, resolve_normalizer, unit_norm, zscore


def test_zscore_moments() -> None:
    x = np.array([1.0, 2.0, 3.0, 4.0, 10.0])
    z = zscore(x)
    assert z.mean() == pytest.approx(0.0, abs=1e-12)
    assert z.std() == pytest.approx(1.0)


def test_constant_series_maps_to_zeros() -> None:
    assert zscore(np.full(4, 3.0)).tolist() == [0.0] * 4
    assert unit_norm(np.zeros(3)).tolist() == [0.0] * 3
    X = np.array([[1.0, 5.0], [2.0, 5.0], [3.0, 5.0]])
    Z = diagonal_zscore(X)
    assert Z[:, 1].tolist() == [0.0, 0.0, 0.0]
    assert Z[:, 0].mean() == pytest.approx(0.0, abs=1e-12)
    assert Z[:, 0].std() == pytest.approx(1.0)


def test_unit_norm() -> None:
    v = unit_norm(np.array([3.0, 4.0]))
    np.testing.assert_allclose(v, [0.6, 0.8])


def test_normalize_does_not_mutate_input() -> None:
    x = np.array([1.0, 2.0, 3.0])
    out = normalize("zscore", x)
    assert x.tolist() == [1.0, 2.0, 3.0]
    assert out is not x


def test_resolve_tags_and_callables() -> None:
    assert resolve_normalizer(None) is identity
    assert resolve_normalizer("none") is identity
    assert resolve_normalizer("ZScore") is zscore
    fn = lambda a: a * 2.0  # noqa: E731
    assert resolve_normalizer(fn) is fn
    np.testing.assert_allclose(normalize(fn, [1.0, 2.0]), [2.0, 4.0])
    with pytest.raises(ValueError):
        resolve_normalizer("minmax")
    with pytest.raises(TypeError):
        resolve_normalizer(3)
