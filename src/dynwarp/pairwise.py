# src/dynwarp/pairwise.py
from __future__ import annotations

import logging
from typing import Any, Callable, List, Sequence, Tuple

import numpy as np
from joblib import Parallel, delayed, effective_n_jobs
from scipy.spatial.distance import squareform

from dynwarp.series import as_series

logger = logging.getLogger(__name__)


def _pair_block(metric: Callable[[Any, Any], float], series: List[np.ndarray], pairs: List[Tuple[int, int]]) -> List[float]:
    return [float(metric(series[i], series[j])) for i, j in pairs]


def distance_matrix(
    metric: Callable[[Any, Any], float],
    series: Sequence[Any],
    *,
    n_jobs: int = 1,
    condensed: bool = False,
) -> np.ndarray:
    """
    Symmetric pairwise distances between series.

    Only the upper triangle is evaluated (metric(series[i], series[j]) for i < j)
    and mirrored; the diagonal is 0. condensed=True returns the scipy squareform
    vector instead of the (N, N) matrix.
    """
    xs = [as_series(s, name=f"series[{k}]") for k, s in enumerate(series)]
    N = len(xs)
    pairs = [(i, j) for i in range(N) for j in range(i + 1, N)]

    if n_jobs == 1 or len(pairs) < 2:
        vals = _pair_block(metric, xs, pairs)
    else:
        n_blocks = max(1, min(len(pairs), 4 * effective_n_jobs(n_jobs)))
        blocks = [b.tolist() for b in np.array_split(np.arange(len(pairs)), n_blocks) if b.size]
        logger.debug("distance_matrix: %d pairs over %d blocks", len(pairs), len(blocks))
        out = Parallel(n_jobs=n_jobs)(
            delayed(_pair_block)(metric, xs, [pairs[k] for k in blk]) for blk in blocks
        )
        vals = [v for part in out for v in part]

    D = np.zeros((N, N), dtype="float64")
    for (i, j), v in zip(pairs, vals):
        D[i, j] = v
        D[j, i] = v
    if condensed:
        return squareform(D, checks=False)
    return D


__all__ = ["distance_matrix"]
