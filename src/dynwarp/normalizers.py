# src/dynwarp/normalizers.py
from __future__ import annotations

from typing import Any, Callable, Dict

import numpy as np

from dynwarp.series import as_series


Normalizer = Callable[[np.ndarray], np.ndarray]


def identity(x: np.ndarray) -> np.ndarray:
    return np.array(x, dtype="float64", copy=True)


def zscore(x: np.ndarray) -> np.ndarray:
    """(x - mean) / std over the whole series (all channels pooled)."""
    x = np.asarray(x, dtype="float64")
    if x.size == 0:
        return x.copy()
    mu = float(x.mean())
    sd = float(x.std())
    if not np.isfinite(sd) or sd <= 0.0:
        return np.zeros_like(x)
    return (x - mu) / sd


def diagonal_zscore(x: np.ndarray) -> np.ndarray:
    """Per-channel z-normalization; constant channels map to 0."""
    x = np.asarray(x, dtype="float64")
    if x.ndim == 1 or x.size == 0:
        return zscore(x)
    mu = x.mean(axis=0)
    sd = x.std(axis=0)
    ok = np.isfinite(sd) & (sd > 0.0)
    out = np.zeros_like(x)
    out[:, ok] = (x[:, ok] - mu[ok]) / sd[ok]
    return out


def unit_norm(x: np.ndarray) -> np.ndarray:
    x = np.asarray(x, dtype="float64")
    nrm = float(np.sqrt(np.sum(x * x)))
    if not np.isfinite(nrm) or nrm <= 0.0:
        return np.zeros_like(x)
    return x / nrm


_REGISTRY: Dict[str, Normalizer] = {
    "identity": identity,
    "none": identity,
    "zscore": zscore,
    "diagonal_zscore": diagonal_zscore,
    "unit_norm": unit_norm,
}


def resolve_normalizer(tag: Any) -> Normalizer:
    if tag is None:
        return identity
    if isinstance(tag, str):
        key = tag.strip().lower()
        if key not in _REGISTRY:
            raise ValueError(f"Unknown normalizer: {tag!r} (known: {sorted(_REGISTRY)})")
        return _REGISTRY[key]
    if callable(tag):
        return tag
    raise TypeError(f"Cannot use {type(tag).__name__} as a normalizer")


def normalize(tag: Any, x: Any) -> np.ndarray:
    """Apply the normalizer selected by `tag`; never mutates x."""
    fn = resolve_normalizer(tag)
    a = as_series(x)
    if fn is identity:
        return a
    return np.asarray(fn(a.copy()), dtype="float64")


__all__ = [
    "Normalizer",
    "identity",
    "zscore",
    "diagonal_zscore",
    "unit_norm",
    "resolve_normalizer",
    "normalize",
]
