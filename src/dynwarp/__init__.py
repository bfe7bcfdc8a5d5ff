# src/dynwarp/__init__.py
"""
dynwarp: banded DTW kernels.

  exact   banded DTW cost / path, per-row bounds variant
  soft    soft-DTW cost, alignment and gradient
  fast    FastDTW multi-resolution approximation
  search  dtwnn sliding nearest neighbour and distance profiles
"""

from __future__ import annotations

from .errors import (
    DynwarpError,
    IncompatibleBandError,
    InvalidBounds,
    InvalidGamma,
    InvalidRadius,
    LengthMismatchBand,
    QueryTooLong,
)
from .distances import InnerDistance, as_distance, cityblock, euclidean, powered_absdiff, sqeuclidean
from .grid import BandGrid, band_bounds
from .exact import DTWResult, dtw, dtw_bounded, dtw_cost, dtw_cost_matrix
from .soft import soft_dtw_alignment, soft_dtw_cost, soft_dtw_divergence, soft_dtw_grad
from .fast import fastdtw
from .search import DTWSearchResult, distance_profile, dtwnn
from .metrics import DTW, FastDTW, SoftDTW, distpath, metric_from_config
from .pairwise import distance_matrix

__version__ = "0.1.0"

__all__ = [
    "DynwarpError",
    "InvalidRadius",
    "IncompatibleBandError",
    "LengthMismatchBand",
    "InvalidGamma",
    "QueryTooLong",
    "InvalidBounds",
    "InnerDistance",
    "as_distance",
    "sqeuclidean",
    "euclidean",
    "cityblock",
    "powered_absdiff",
    "BandGrid",
    "band_bounds",
    "DTWResult",
    "dtw",
    "dtw_bounded",
    "dtw_cost",
    "dtw_cost_matrix",
    "soft_dtw_cost",
    "soft_dtw_alignment",
    "soft_dtw_grad",
    "soft_dtw_divergence",
    "fastdtw",
    "DTWSearchResult",
    "dtwnn",
    "distance_profile",
    "DTW",
    "SoftDTW",
    "FastDTW",
    "distpath",
    "metric_from_config",
    "distance_matrix",
]
