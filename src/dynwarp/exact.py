# src/dynwarp/exact.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator, Optional

import numpy as np

from dynwarp.config.schema import DTWConfig
from dynwarp.distances import InnerDistance, as_distance
from dynwarp.grid import INF, BandGrid, LocalRowFn, band_bounds, check_bounds, validate_radius
from dynwarp.normalizers import normalize
from dynwarp.series import as_pair


@dataclass(frozen=True)
class DTWResult:
    cost: float
    path: np.ndarray            # (K,2) int64 as (i_x, j_y), (0,0) -> (n-1,m-1)

    def __iter__(self) -> Iterator[Any]:
        # allows `cost, path = dtw(...)`
        yield self.cost
        yield self.path

    @property
    def cost_per_step(self) -> float:
        return float(self.cost / max(1, int(self.path.shape[0])))


_EMPTY_PATH = np.zeros((0, 2), dtype="int64")


def validate_transportcost(transportcost: Any) -> float:
    t = float(transportcost)
    if not np.isfinite(t) or t < 1.0:
        raise ValueError(f"transportcost must be a finite value >= 1, got {transportcost!r}")
    return t


def local_row_fn(x: np.ndarray, y: np.ndarray, dist: InnerDistance) -> LocalRowFn:
    def _row(i: int, lo: int, hi: int) -> np.ndarray:
        return dist.row(x[i], y[lo : hi + 1])

    return _row


def _trivial_cost(n: int, m: int) -> Optional[float]:
    if n == 0 and m == 0:
        return 0.0
    if n == 0 or m == 0:
        return INF
    return None


def dtw_cost(
    x: Any,
    y: Any,
    dist: Any = None,
    radius: Optional[int] = None,
    *,
    transportcost: float = 1.0,
    cumulative_bound: Optional[np.ndarray] = None,
    best_so_far: float = INF,
) -> float:
    """
    Banded DTW cost (no path).

      D[i,j] = d(x_i, y_j) + min(D[i-1,j-1], t*D[i-1,j], t*D[i,j-1])

    cumulative_bound:
      optional (n,) array; entry i lower-bounds the cost of rows i+1..n-1. Used
      together with best_so_far to abandon the fill early.

    Any result that cannot beat best_so_far (abandoned or simply larger) is
    reported as +inf; the default best_so_far=inf always returns the exact cost.
    """
    a, b = as_pair(x, y)
    d = as_distance(dist)
    t = validate_transportcost(transportcost)
    if radius is not None:
        validate_radius(radius)
    n, m = int(a.shape[0]), int(b.shape[0])
    triv = _trivial_cost(n, m)
    if triv is not None:
        return triv

    lo, hi = band_bounds(n, m, radius)
    if cumulative_bound is not None:
        cumulative_bound = np.asarray(cumulative_bound, dtype="float64").reshape(-1)
        if cumulative_bound.size != n:
            raise ValueError(f"cumulative_bound must have length {n}, got {cumulative_bound.size}")

    grid = BandGrid.from_bounds(lo, hi, m)
    done = grid.fill(
        local_row_fn(a, b, d),
        transportcost=t,
        cumulative_bound=cumulative_bound,
        abandon_above=float(best_so_far),
    )
    if not done:
        return INF
    cost = grid.final()
    return cost if cost <= best_so_far else INF


def _dtw_on_bounds(a: np.ndarray, b: np.ndarray, lo: np.ndarray, hi: np.ndarray, d: InnerDistance, t: float) -> DTWResult:
    grid = BandGrid.from_bounds(lo, hi, int(b.shape[0]), track_moves=True)
    grid.fill(local_row_fn(a, b, d), transportcost=t)
    return DTWResult(cost=grid.final(), path=grid.trace_path())


def dtw(
    x: Any,
    y: Any,
    dist: Any = None,
    radius: Optional[int] = None,
    *,
    transportcost: float = 1.0,
) -> DTWResult:
    """
    DTW cost and optimal path.

    Tie-break between equal predecessors: diagonal, then vertical, then horizontal.
    The path is monotone, starts at (0,0) and ends at (n-1, m-1).
    """
    a, b = as_pair(x, y)
    d = as_distance(dist)
    t = validate_transportcost(transportcost)
    if radius is not None:
        validate_radius(radius)
    n, m = int(a.shape[0]), int(b.shape[0])
    triv = _trivial_cost(n, m)
    if triv is not None:
        return DTWResult(cost=triv, path=_EMPTY_PATH.copy())

    lo, hi = band_bounds(n, m, radius)
    return _dtw_on_bounds(a, b, lo, hi, d, t)


def dtw_bounded(
    x: Any,
    y: Any,
    i2min: Any,
    i2max: Any,
    dist: Any = None,
    *,
    transportcost: float = 1.0,
) -> DTWResult:
    """
    DTW restricted to per-row column windows [i2min[i], i2max[i]] (inclusive).

    Used by FastDTW (projected windows) and anywhere a non-uniform band is needed.
    """
    a, b = as_pair(x, y)
    d = as_distance(dist)
    t = validate_transportcost(transportcost)
    n, m = int(a.shape[0]), int(b.shape[0])
    if n == 0 or m == 0:
        triv = _trivial_cost(n, m)
        return DTWResult(cost=float(triv), path=_EMPTY_PATH.copy())
    lo, hi = check_bounds(i2min, i2max, m)
    if lo.size != n:
        raise ValueError(f"bounds describe {lo.size} rows but x has length {n}")
    return _dtw_on_bounds(a, b, lo, hi, d, t)


def dtw_cost_matrix(
    x: Any,
    y: Any,
    dist: Any = None,
    radius: Optional[int] = None,
    *,
    transportcost: float = 1.0,
) -> np.ndarray:
    """Dense (n,m) accumulated cost matrix; cells outside the band are +inf."""
    a, b = as_pair(x, y)
    d = as_distance(dist)
    t = validate_transportcost(transportcost)
    if radius is not None:
        validate_radius(radius)
    n, m = int(a.shape[0]), int(b.shape[0])
    if n == 0 or m == 0:
        return np.zeros((n, m), dtype="float64")
    grid = BandGrid.from_radius(n, m, radius)
    grid.fill(local_row_fn(a, b, d), transportcost=t)
    return grid.to_dense()


def dtw_from_config(x: Any, y: Any, *, cfg: DTWConfig) -> DTWResult:
    """
    Path + cost using a DTWConfig.

    Normalization is applied to both inputs here, mirroring the metric layer.
    """
    a = normalize(cfg.normalizer, x)
    b = normalize(cfg.normalizer, y)
    return dtw(a, b, cfg.dist, cfg.radius, transportcost=cfg.transportcost)


__all__ = [
    "DTWResult",
    "validate_transportcost",
    "dtw_cost",
    "dtw",
    "dtw_bounded",
    "dtw_cost_matrix",
    "dtw_from_config",
]
