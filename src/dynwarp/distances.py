# src/dynwarp/distances.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import numpy as np


PairFn = Callable[[Any, Any], float]
DiffFn = Callable[[np.ndarray], np.ndarray]


def _channel_sum(v: np.ndarray) -> np.ndarray:
    # (k,) scalar samples or (k,D) vector samples -> (k,)
    if v.ndim <= 1:
        return v
    return v.sum(axis=-1)


@dataclass(frozen=True)
class InnerDistance:
    """
    Pointwise distance between two samples, with vectorized helpers.

    A sample is a scalar (univariate series) or a (D,) vector (multivariate).

    `from_diff` maps an elementwise difference array to per-sample distances;
    built-ins use it so row/pair evaluation stays inside numpy. Wrapped plain
    callables only have `pair` and fall back to Python loops.

    envelope_admissible:
      True when dist(a, b) is non-decreasing in every |a_c - b_c|, which makes the
      LB_Keogh envelope projection a valid lower bound.
    """
    name: str
    pair: Optional[PairFn] = None
    from_diff: Optional[DiffFn] = None
    envelope_admissible: bool = False

    def __call__(self, a: Any, b: Any) -> float:
        if self.from_diff is not None:
            d = np.asarray(a, dtype="float64") - np.asarray(b, dtype="float64")
            return float(_channel_sum(self.from_diff(d.reshape(1, -1)))[0])
        if self.pair is None:
            raise TypeError(f"InnerDistance {self.name!r} has neither pair nor from_diff")
        return float(self.pair(a, b))

    def row(self, a: Any, B: np.ndarray) -> np.ndarray:
        """Distances from one sample `a` to every sample of `B` -> (k,) float64."""
        B = np.asarray(B, dtype="float64")
        if self.from_diff is not None:
            return np.asarray(_channel_sum(self.from_diff(B - np.asarray(a, dtype="float64"))), dtype="float64")
        return np.fromiter((self(a, b) for b in B), dtype="float64", count=B.shape[0])

    def pairs(self, A: np.ndarray, B: np.ndarray) -> np.ndarray:
        """Row-wise distances dist(A[k], B[k]) -> (k,) float64."""
        A = np.asarray(A, dtype="float64")
        B = np.asarray(B, dtype="float64")
        if A.shape != B.shape:
            raise ValueError(f"pairs() needs equal shapes, got {A.shape} and {B.shape}")
        if self.from_diff is not None:
            return np.asarray(_channel_sum(self.from_diff(A - B)), dtype="float64")
        return np.fromiter((self(a, b) for a, b in zip(A, B)), dtype="float64", count=A.shape[0])


def _sq(d: np.ndarray) -> np.ndarray:
    return d * d


def _abs(d: np.ndarray) -> np.ndarray:
    return np.abs(d)


def _euclidean_pair(a: Any, b: Any) -> float:
    d = np.asarray(a, dtype="float64") - np.asarray(b, dtype="float64")
    return float(np.sqrt(np.sum(d * d)))


@dataclass(frozen=True)
class _Euclidean(InnerDistance):
    # sqrt does not distribute over the channel sum, so override the helpers
    def __call__(self, a: Any, b: Any) -> float:
        return _euclidean_pair(a, b)

    def row(self, a: Any, B: np.ndarray) -> np.ndarray:
        B = np.asarray(B, dtype="float64")
        return np.sqrt(_channel_sum(_sq(B - np.asarray(a, dtype="float64"))))

    def pairs(self, A: np.ndarray, B: np.ndarray) -> np.ndarray:
        A = np.asarray(A, dtype="float64")
        B = np.asarray(B, dtype="float64")
        if A.shape != B.shape:
            raise ValueError(f"pairs() needs equal shapes, got {A.shape} and {B.shape}")
        return np.sqrt(_channel_sum(_sq(A - B)))


sqeuclidean = InnerDistance("sqeuclidean", from_diff=_sq, envelope_admissible=True)
cityblock = InnerDistance("cityblock", from_diff=_abs, envelope_admissible=True)
euclidean = _Euclidean("euclidean", pair=_euclidean_pair, envelope_admissible=True)


def powered_absdiff(alpha: float) -> InnerDistance:
    """
    d = sum_c |a_c - b_c|^alpha

    alpha < 1 damps large deviations (outlier-robust local cost).
    """
    a = float(alpha)
    if not np.isfinite(a) or a <= 0.0:
        raise ValueError("alpha must be > 0")
    return InnerDistance(
        f"absdiff^{a:g}",
        from_diff=lambda d: np.power(np.abs(d), a),
        envelope_admissible=True,
    )


_REGISTRY: Dict[str, InnerDistance] = {
    "sqeuclidean": sqeuclidean,
    "euclidean": euclidean,
    "cityblock": cityblock,
}


def as_distance(obj: Any = None) -> InnerDistance:
    """
    Resolve `obj` into an InnerDistance.

    None -> sqeuclidean; str -> registered name; callable -> wrapped (no envelope bound).
    """
    if obj is None:
        return sqeuclidean
    if isinstance(obj, InnerDistance):
        return obj
    if isinstance(obj, str):
        key = obj.strip().lower()
        if key not in _REGISTRY:
            raise ValueError(f"Unknown distance: {obj!r} (known: {sorted(_REGISTRY)})")
        return _REGISTRY[key]
    if callable(obj):
        name = getattr(obj, "__name__", type(obj).__name__)
        return InnerDistance(str(name), pair=obj, envelope_admissible=False)
    raise TypeError(f"Cannot use {type(obj).__name__} as an inner distance")


__all__ = [
    "InnerDistance",
    "sqeuclidean",
    "euclidean",
    "cityblock",
    "powered_absdiff",
    "as_distance",
]
