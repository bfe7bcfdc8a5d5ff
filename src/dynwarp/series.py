# src/dynwarp/series.py
from __future__ import annotations

from typing import Any, Tuple

import numpy as np


def as_series(x: Any, *, name: str = "x") -> np.ndarray:
    """
    Coerce to a float64 series.

    Accepted shapes:
      (T,)   univariate
      (T, D) multivariate, time along axis 0
    A float64 input is returned as-is (no copy); kernels only read it.
    """
    a = np.asarray(x, dtype="float64")
    if a.ndim == 0:
        raise ValueError(f"{name} must be a sequence, got a scalar")
    if a.ndim > 2:
        raise ValueError(f"{name} must be 1D (T,) or 2D (T,D), got shape {a.shape}")
    return a


def series_length(x: np.ndarray) -> int:
    return int(x.shape[0])


def n_channels(x: np.ndarray) -> int:
    return 1 if x.ndim == 1 else int(x.shape[1])


def as_pair(x: Any, y: Any) -> Tuple[np.ndarray, np.ndarray]:
    """Coerce two series and check their samples are comparable."""
    a = as_series(x, name="x")
    b = as_series(y, name="y")
    if a.ndim != b.ndim or n_channels(a) != n_channels(b):
        raise ValueError(f"x and y samples differ in shape: {a.shape[1:]} vs {b.shape[1:]}")
    return a, b
