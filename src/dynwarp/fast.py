# src/dynwarp/fast.py
from __future__ import annotations

import logging
from typing import Any, Tuple

import numpy as np
from scipy.ndimage import maximum_filter1d, minimum_filter1d

from dynwarp.config.schema import FastDTWConfig
from dynwarp.distances import InnerDistance, as_distance
from dynwarp.exact import DTWResult, dtw, dtw_bounded
from dynwarp.grid import validate_radius
from dynwarp.series import as_pair

logger = logging.getLogger(__name__)


def coarsen(x: np.ndarray) -> np.ndarray:
    """Average consecutive sample pairs; length T -> T // 2 (a trailing odd sample is dropped)."""
    a = np.asarray(x, dtype="float64")
    half = int(a.shape[0]) // 2
    return a[: 2 * half].reshape((half, 2) + a.shape[1:]).mean(axis=1)


def expand_window(path: np.ndarray, n: int, m: int, radius: int) -> Tuple[np.ndarray, np.ndarray]:
    """
    Project a coarse path onto an (n, m) grid and widen it by `radius` cells.

    Each coarse cell (ci, cj) covers fine rows 2ci..2ci+1 and columns 2cj..2cj+1;
    the last coarse row/column also absorbs the trailing odd sample.

    Returns per-row inclusive bounds (i2min, i2max), monotone and covering both corners.
    """
    p = np.asarray(path, dtype="int64")
    if p.ndim != 2 or p.shape[1] != 2 or p.shape[0] == 0:
        raise ValueError("coarse path must be a non-empty (K,2) array")
    r = validate_radius(radius)
    n = int(n)
    m = int(m)

    lo = np.full(n, m, dtype="int64")
    hi = np.full(n, -1, dtype="int64")
    last_i = int(p[-1, 0])
    last_j = int(p[-1, 1])
    for ci, cj in p.tolist():
        r0 = 2 * ci
        r1 = n - 1 if ci == last_i else min(n - 1, 2 * ci + 1)
        c0 = 2 * cj
        c1 = m - 1 if cj == last_j else min(m - 1, 2 * cj + 1)
        lo[r0 : r1 + 1] = np.minimum(lo[r0 : r1 + 1], c0)
        hi[r0 : r1 + 1] = np.maximum(hi[r0 : r1 + 1], c1)

    if r > 0:
        size = 2 * r + 1
        lo = minimum_filter1d(lo, size=size, mode="nearest") - r
        hi = maximum_filter1d(hi, size=size, mode="nearest") + r

    lo = np.clip(lo, 0, m - 1)
    hi = np.clip(hi, 0, m - 1)
    # monotone: suffix-min on the lower edge, prefix-max on the upper edge
    lo = np.minimum.accumulate(lo[::-1])[::-1]
    hi = np.maximum.accumulate(hi)
    lo[0] = 0
    hi[-1] = m - 1
    return lo.astype("int64"), hi.astype("int64")


def _fastdtw(a: np.ndarray, b: np.ndarray, d: InnerDistance, r: int, depth: int) -> DTWResult:
    n, m = int(a.shape[0]), int(b.shape[0])
    min_size = r + 2
    if n <= min_size or m <= min_size:
        logger.debug("fastdtw base case at depth %d (n=%d, m=%d)", depth, n, m)
        return dtw(a, b, d)

    low = _fastdtw(coarsen(a), coarsen(b), d, r, depth + 1)
    lo, hi = expand_window(low.path, n, m, r)
    logger.debug(
        "fastdtw depth %d: n=%d m=%d window cells=%d (full=%d)",
        depth, n, m, int((hi - lo + 1).sum()), n * m,
    )
    return dtw_bounded(a, b, lo, hi, d)


def fastdtw(x: Any, y: Any, dist: Any = None, radius: int = 1) -> DTWResult:
    """
    Approximate DTW by multi-resolution refinement (Salvador & Chan, 2007).

    Coarsen both series by 2, solve recursively, project the coarse path back,
    widen it by `radius`, and solve exactly inside that window. The result cost
    is never below the exact DTW cost; it equals it once the radius covers the
    whole matrix. Recursion depth is about log2(min(n, m)).
    """
    r = validate_radius(radius)
    a, b = as_pair(x, y)
    d = as_distance(dist)
    return _fastdtw(a, b, d, r, 0)


def fastdtw_from_config(x: Any, y: Any, *, cfg: FastDTWConfig) -> DTWResult:
    return fastdtw(x, y, cfg.dist, cfg.radius)


__all__ = [
    "coarsen",
    "expand_window",
    "fastdtw",
    "fastdtw_from_config",
]
