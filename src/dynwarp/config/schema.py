from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class DTWConfig:
    # Sakoe-Chiba radius. None => unconstrained (full matrix).
    radius: Optional[int] = None
    # Multiplier (>= 1) on non-diagonal moves; 1.0 => plain DTW.
    transportcost: float = 1.0
    dist: Any = "sqeuclidean"
    normalizer: Any = None


@dataclass(frozen=True)
class SoftDTWConfig:
    gamma: float = 1.0
    radius: Optional[int] = None
    transportcost: float = 1.0
    dist: Any = "sqeuclidean"


@dataclass(frozen=True)
class FastDTWConfig:
    radius: int = 1
    dist: Any = "sqeuclidean"


@dataclass(frozen=True)
class SearchConfig:
    radius: int = 5
    transportcost: float = 1.0
    dist: Any = "sqeuclidean"
    normalizer: Any = None
    prune_endpoints: bool = True
    save_all: bool = False
    use_lb_keogh: bool = True
    n_jobs: int = 1


@dataclass(frozen=True)
class RunConfig:
    dtw: DTWConfig = DTWConfig()
    soft: SoftDTWConfig = SoftDTWConfig()
    fast: FastDTWConfig = FastDTWConfig()
    search: SearchConfig = SearchConfig()
