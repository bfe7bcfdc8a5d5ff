# src/dynwarp/bounds.py
from __future__ import annotations

from typing import Any, Tuple

import numpy as np
from scipy.ndimage import maximum_filter1d, minimum_filter1d

from dynwarp.distances import InnerDistance, as_distance
from dynwarp.grid import validate_radius
from dynwarp.series import as_series


def envelope(x: Any, radius: int) -> Tuple[np.ndarray, np.ndarray]:
    """
    Running (lower, upper) envelope over windows of 2r+1 samples along time.

    Multivariate series get a per-channel envelope (a box per time step).
    """
    a = as_series(x)
    r = validate_radius(radius)
    if a.shape[0] == 0:
        return a.copy(), a.copy()
    size = 2 * r + 1
    lower = minimum_filter1d(a, size=size, axis=0, mode="nearest")
    upper = maximum_filter1d(a, size=size, axis=0, mode="nearest")
    return lower, upper


def lb_keogh_terms(x: Any, lower: np.ndarray, upper: np.ndarray, dist: Any = None) -> np.ndarray:
    """
    Per-sample LB_Keogh contributions: dist(x_t, clip(x_t, lower_t, upper_t)).

    Valid lower bound (summed) only for envelope-admissible distances.
    """
    a = as_series(x)
    d: InnerDistance = as_distance(dist)
    lo = np.asarray(lower, dtype="float64")
    hi = np.asarray(upper, dtype="float64")
    if lo.shape != a.shape or hi.shape != a.shape:
        raise ValueError(f"envelope shape {lo.shape}/{hi.shape} does not match series {a.shape}")
    if a.shape[0] == 0:
        return np.zeros(0, dtype="float64")
    return d.pairs(a, np.clip(a, lo, hi))


def lb_keogh(x: Any, lower: np.ndarray, upper: np.ndarray, dist: Any = None) -> float:
    return float(lb_keogh_terms(x, lower, upper, dist).sum())


def cumulative_tail(terms: np.ndarray) -> np.ndarray:
    """out[i] = sum(terms[i+1:]); the bound still owed after row i."""
    t = np.asarray(terms, dtype="float64").reshape(-1)
    if t.size == 0:
        return t.copy()
    out = np.zeros_like(t)
    out[:-1] = np.cumsum(t[::-1])[::-1][1:]
    return out


def endpoint_bound(q: Any, w: Any, dist: Any = None) -> float:
    """
    dist(q_0, w_0) + dist(q_last, w_last).

    Every warping path visits both corners, so this never exceeds the DTW cost
    for non-negative distances.
    """
    a = as_series(q, name="q")
    b = as_series(w, name="w")
    if a.shape[0] == 0 or b.shape[0] == 0:
        return 0.0
    d = as_distance(dist)
    first = d(a[0], b[0])
    if a.shape[0] == 1 and b.shape[0] == 1:
        return float(first)
    return float(first + d(a[-1], b[-1]))


__all__ = [
    "envelope",
    "lb_keogh_terms",
    "lb_keogh",
    "cumulative_tail",
    "endpoint_bound",
]
