# src/dynwarp/soft.py
"""
Soft-DTW: DTW with the hard minimum replaced by a smoothed minimum

  softmin_g(a, b, c) = -g * log(exp(-a/g) + exp(-b/g) + exp(-c/g))

which makes the cost differentiable in the local costs (and hence in the
inputs). softmin_g <= min, and softmin_g -> min as g -> 0+.

Reference:
  Cuturi & Blondel (2017) "Soft-DTW: a Differentiable Loss Function for Time-Series"
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Optional, Tuple

import numpy as np

from dynwarp.config.schema import SoftDTWConfig
from dynwarp.distances import as_distance, sqeuclidean
from dynwarp.errors import InvalidGamma
from dynwarp.exact import local_row_fn, validate_transportcost
from dynwarp.grid import INF, MOVE_NONE, BandGrid, StepFn, validate_radius
from dynwarp.series import as_pair


def validate_gamma(gamma: Any) -> float:
    try:
        g = float(gamma)
    except (TypeError, ValueError):
        raise InvalidGamma(gamma) from None
    if not math.isfinite(g) or g <= 0.0:
        raise InvalidGamma(gamma)
    return g


def softmin3(a: float, b: float, c: float, gamma: float) -> float:
    # shifted log-sum-exp: every exponent is <= 0, so nothing overflows
    lo = min(a, b, c)
    if lo == INF:
        return INF
    s = math.exp(-(a - lo) / gamma) + math.exp(-(b - lo) / gamma) + math.exp(-(c - lo) / gamma)
    return lo - gamma * math.log(s)


def _soft_step(gamma: float) -> StepFn:
    def _step(diag: float, up: float, left: float) -> Tuple[float, int]:
        return softmin3(diag, up, left, gamma), MOVE_NONE

    return _step


@dataclass(frozen=True)
class SoftAlignment:
    cost: float
    alignment: np.ndarray   # (n,m) E = dcost/dD, expected alignment; 0 outside the band
    local_cost: np.ndarray  # (n,m) D, +inf outside the band
    accumulated: np.ndarray  # (n,m) R, +inf outside the band


def _forward(
    a: np.ndarray,
    b: np.ndarray,
    dist: Any,
    g: float,
    radius: Optional[int],
    t: float,
    *,
    keep_local: bool,
) -> Tuple[BandGrid, Optional[np.ndarray]]:
    d = as_distance(dist)
    n, m = int(a.shape[0]), int(b.shape[0])
    grid = BandGrid.from_radius(n, m, radius)
    base_row = local_row_fn(a, b, d)

    if not keep_local:
        grid.fill(base_row, _soft_step(g), transportcost=t)
        return grid, None

    D = np.full((n, m), INF, dtype="float64")

    def _row(i: int, lo: int, hi: int) -> np.ndarray:
        c = base_row(i, lo, hi)
        D[i, lo : hi + 1] = c
        return c

    grid.fill(_row, _soft_step(g), transportcost=t)
    return grid, D


def soft_dtw_cost(
    x: Any,
    y: Any,
    dist: Any = None,
    gamma: float = 1.0,
    *,
    radius: Optional[int] = None,
    transportcost: float = 1.0,
) -> float:
    """
    Soft-DTW cost. Full matrix unless a radius is given (same band as exact DTW).

    Raises InvalidGamma for gamma <= 0.
    """
    g = validate_gamma(gamma)
    a, b = as_pair(x, y)
    t = validate_transportcost(transportcost)
    if radius is not None:
        validate_radius(radius)
    n, m = int(a.shape[0]), int(b.shape[0])
    if n == 0 and m == 0:
        return 0.0
    if n == 0 or m == 0:
        return INF
    grid, _ = _forward(a, b, dist, g, radius, t, keep_local=False)
    return grid.final()


def soft_dtw_alignment(
    x: Any,
    y: Any,
    dist: Any = None,
    gamma: float = 1.0,
    *,
    radius: Optional[int] = None,
    transportcost: float = 1.0,
) -> SoftAlignment:
    """
    Soft-DTW cost plus the expected alignment matrix E = dcost/dD.

    Backward recursion (s ranges over the successors of (i,j), f_s is 1 for the
    diagonal and `transportcost` otherwise):

      E[i,j] = sum_s E[s] * f_s * exp(-(f_s * R[i,j] - (R[s] - D[s])) / gamma)

    R[s] - D[s] is the soft minimum taken at s, so every exponent is <= 0.
    """
    g = validate_gamma(gamma)
    a, b = as_pair(x, y)
    t = validate_transportcost(transportcost)
    if radius is not None:
        validate_radius(radius)
    n, m = int(a.shape[0]), int(b.shape[0])
    if n == 0 or m == 0:
        raise ValueError("soft_dtw_alignment needs non-empty sequences")

    grid, D = _forward(a, b, dist, g, radius, t, keep_local=True)
    R = grid.to_dense()
    E = np.zeros((n, m), dtype="float64")
    E[n - 1, m - 1] = 1.0

    def _contrib(r_ij: float, si: int, sj: int, f: float) -> float:
        r_s = R[si, sj]
        if not math.isfinite(r_s):
            return 0.0
        e_s = E[si, sj]
        if e_s == 0.0:
            return 0.0
        return e_s * f * math.exp(-(f * r_ij - (r_s - D[si, sj])) / g)

    for i in range(n - 1, -1, -1):
        lo = int(grid.i2min[i])
        hi = int(grid.i2max[i])
        for j in range(hi, lo - 1, -1):
            if i == n - 1 and j == m - 1:
                continue
            r_ij = R[i, j]
            if not math.isfinite(r_ij):
                continue
            e = 0.0
            if i + 1 < n and j + 1 < m:
                e += _contrib(r_ij, i + 1, j + 1, 1.0)
            if i + 1 < n:
                e += _contrib(r_ij, i + 1, j, t)
            if j + 1 < m:
                e += _contrib(r_ij, i, j + 1, t)
            E[i, j] = e

    return SoftAlignment(cost=grid.final(), alignment=E, local_cost=D, accumulated=R)


def soft_dtw_grad(
    x: Any,
    y: Any,
    gamma: float = 1.0,
    *,
    radius: Optional[int] = None,
    transportcost: float = 1.0,
) -> Tuple[float, np.ndarray]:
    """
    (cost, dcost/dx) for the squared Euclidean inner distance.

      dcost/dx_i = sum_j E[i,j] * 2 * (x_i - y_j)
    """
    a, b = as_pair(x, y)
    res = soft_dtw_alignment(a, b, sqeuclidean, gamma, radius=radius, transportcost=transportcost)
    E = res.alignment
    w = E.sum(axis=1)
    if a.ndim == 1:
        grad = 2.0 * (w * a - E @ b)
    else:
        grad = 2.0 * (w[:, None] * a - E @ b)
    return res.cost, grad


def soft_dtw_divergence(
    x: Any,
    y: Any,
    dist: Any = None,
    gamma: float = 1.0,
    *,
    radius: Optional[int] = None,
) -> float:
    """sdtw(x,y) - (sdtw(x,x) + sdtw(y,y)) / 2; zero when x == y."""
    g = validate_gamma(gamma)
    xy = soft_dtw_cost(x, y, dist, g, radius=radius)
    xx = soft_dtw_cost(x, x, dist, g, radius=radius)
    yy = soft_dtw_cost(y, y, dist, g, radius=radius)
    return float(xy - 0.5 * (xx + yy))


def soft_dtw_from_config(x: Any, y: Any, *, cfg: SoftDTWConfig) -> float:
    return soft_dtw_cost(
        x,
        y,
        cfg.dist,
        cfg.gamma,
        radius=cfg.radius,
        transportcost=cfg.transportcost,
    )


__all__ = [
    "validate_gamma",
    "softmin3",
    "SoftAlignment",
    "soft_dtw_cost",
    "soft_dtw_alignment",
    "soft_dtw_grad",
    "soft_dtw_divergence",
    "soft_dtw_from_config",
]
