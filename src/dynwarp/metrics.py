# src/dynwarp/metrics.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Optional, Union

import numpy as np

from dynwarp.config.schema import DTWConfig, FastDTWConfig, SoftDTWConfig
from dynwarp.exact import DTWResult, dtw, dtw_bounded, dtw_cost
from dynwarp.fast import fastdtw
from dynwarp.normalizers import normalize
from dynwarp.search import dtwnn
from dynwarp.series import as_series
from dynwarp.soft import soft_dtw_cost


@dataclass(frozen=True)
class DTW:
    """
    Banded DTW metric.

    Equal lengths -> normalized banded DTW cost.
    Different lengths -> best window match of the shorter series inside the
    longer one (dtwnn, prune_endpoints=False).
    """
    kind: ClassVar[str] = "exact"

    radius: Optional[int] = None
    dist: Any = "sqeuclidean"
    transportcost: float = 1.0
    normalizer: Any = None

    def evaluate(self, x: Any, y: Any) -> float:
        a = as_series(x, name="x")
        b = as_series(y, name="y")
        if a.shape[0] == b.shape[0]:
            return dtw_cost(
                normalize(self.normalizer, a),
                normalize(self.normalizer, b),
                self.dist,
                self.radius,
                transportcost=self.transportcost,
            )
        if a.shape[0] > b.shape[0]:
            a, b = b, a
        r = self.radius if self.radius is not None else int(a.shape[0])
        res = dtwnn(
            a,
            b,
            self.dist,
            r,
            self.normalizer,
            prune_endpoints=False,
            transportcost=self.transportcost,
        )
        return res.cost

    def __call__(self, x: Any, y: Any) -> float:
        return self.evaluate(x, y)

    def distpath(self, x: Any, y: Any) -> DTWResult:
        return dtw(x, y, self.dist, self.radius, transportcost=self.transportcost)


@dataclass(frozen=True)
class SoftDTW:
    kind: ClassVar[str] = "soft"

    gamma: float = 1.0
    dist: Any = "sqeuclidean"
    transportcost: float = 1.0
    radius: Optional[int] = None

    def evaluate(self, x: Any, y: Any) -> float:
        return soft_dtw_cost(x, y, self.dist, self.gamma, radius=self.radius, transportcost=self.transportcost)

    def __call__(self, x: Any, y: Any) -> float:
        return self.evaluate(x, y)


@dataclass(frozen=True)
class FastDTW:
    kind: ClassVar[str] = "fast"

    radius: int = 1
    dist: Any = "sqeuclidean"

    def evaluate(self, x: Any, y: Any) -> float:
        return fastdtw(x, y, self.dist, self.radius).cost

    def __call__(self, x: Any, y: Any) -> float:
        return self.evaluate(x, y)

    def distpath(self, x: Any, y: Any) -> DTWResult:
        return fastdtw(x, y, self.dist, self.radius)


DistanceMetric = Union[DTW, SoftDTW, FastDTW]


def distpath(
    metric: DistanceMetric,
    x: Any,
    y: Any,
    i2min: Optional[Any] = None,
    i2max: Optional[Any] = None,
) -> DTWResult:
    """Cost and path for path-capable metrics; explicit bounds override the DTW radius."""
    if isinstance(metric, DTW):
        if i2min is not None or i2max is not None:
            if i2min is None or i2max is None:
                raise ValueError("i2min and i2max must be given together")
            return dtw_bounded(x, y, i2min, i2max, metric.dist, transportcost=metric.transportcost)
        return metric.distpath(x, y)
    if isinstance(metric, FastDTW):
        return metric.distpath(x, y)
    raise TypeError(f"{type(metric).__name__} does not produce alignment paths")


def distance_profile(metric: DistanceMetric, query: Any, target: Any, *, n_jobs: int = 1) -> np.ndarray:
    """Window-by-window DTW costs of `query` along `target` (DTW metrics only)."""
    if not isinstance(metric, DTW):
        raise TypeError(f"distance_profile is only defined for DTW, got {type(metric).__name__}")
    q = as_series(query, name="query")
    r = metric.radius if metric.radius is not None else int(q.shape[0])
    res = dtwnn(
        q,
        target,
        metric.dist,
        r,
        metric.normalizer,
        prune_endpoints=False,
        save_all=True,
        transportcost=metric.transportcost,
        n_jobs=n_jobs,
    )
    return res.dists


def metric_from_config(cfg: Union[DTWConfig, SoftDTWConfig, FastDTWConfig]) -> DistanceMetric:
    if isinstance(cfg, DTWConfig):
        return DTW(radius=cfg.radius, dist=cfg.dist, transportcost=cfg.transportcost, normalizer=cfg.normalizer)
    if isinstance(cfg, SoftDTWConfig):
        return SoftDTW(gamma=cfg.gamma, dist=cfg.dist, transportcost=cfg.transportcost, radius=cfg.radius)
    if isinstance(cfg, FastDTWConfig):
        return FastDTW(radius=cfg.radius, dist=cfg.dist)
    raise TypeError(f"Unsupported config type: {type(cfg).__name__}")


__all__ = [
    "DTW",
    "SoftDTW",
    "FastDTW",
    "DistanceMetric",
    "distpath",
    "distance_profile",
    "metric_from_config",
]
