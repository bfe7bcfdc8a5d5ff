# src/dynwarp/search.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

import numpy as np
from joblib import Parallel, delayed, effective_n_jobs

from dynwarp.bounds import cumulative_tail, endpoint_bound, envelope, lb_keogh, lb_keogh_terms
from dynwarp.config.schema import SearchConfig
from dynwarp.distances import InnerDistance, as_distance
from dynwarp.errors import QueryTooLong
from dynwarp.exact import dtw_cost, validate_transportcost
from dynwarp.grid import INF, validate_radius
from dynwarp.normalizers import identity, normalize, resolve_normalizer
from dynwarp.series import as_pair

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DTWSearchResult:
    cost: float
    loc: int                        # 0-based start offset of the best window; -1 if none beat best_so_far
    dists: Optional[np.ndarray]     # (n-m+1,) DistanceProfile when save_all=True
    prunestats: Dict[str, int]


def _new_stats() -> Dict[str, int]:
    return {"evaluated": 0, "prune_end": 0, "prune_env": 0, "abandoned": 0}


@dataclass(frozen=True)
class _ScanContext:
    query: np.ndarray
    target: np.ndarray
    m: int
    radius: int
    dist: InnerDistance
    transportcost: float
    norm: Callable[[np.ndarray], np.ndarray]
    prune_endpoints: bool
    save_all: bool
    # LB_Keogh inputs (None when the distance is not envelope-admissible or disabled)
    q_lower: Optional[np.ndarray]
    q_upper: Optional[np.ndarray]
    t_lower: Optional[np.ndarray]
    t_upper: Optional[np.ndarray]

    def window(self, s: int) -> np.ndarray:
        w = self.target[s : s + self.m]
        if self.norm is identity:
            return w
        return np.asarray(self.norm(w.copy()), dtype="float64")

    def window_envelope(self, s: int, w: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        if self.t_lower is not None and self.t_upper is not None:
            # target-wide envelope is a superset of the window envelope, so still admissible
            return self.t_lower[s : s + self.m], self.t_upper[s : s + self.m]
        return envelope(w, self.radius)


def _scan(ctx: _ScanContext, start: int, stop: int, best_so_far: float) -> Tuple[float, int, Optional[np.ndarray], Dict[str, int]]:
    """Evaluate offsets [start, stop) carrying a running best; returns (best, loc, dists, stats)."""
    stats = _new_stats()
    bsf = float(best_so_far)
    loc = -1
    dists = np.full(stop - start, INF, dtype="float64") if ctx.save_all else None
    q = ctx.query
    d = ctx.dist
    use_env = ctx.q_lower is not None

    for s in range(start, stop):
        w = ctx.window(s)

        if ctx.save_all:
            c = dtw_cost(q, w, d, ctx.radius, transportcost=ctx.transportcost)
            dists[s - start] = c
        else:
            if ctx.prune_endpoints and endpoint_bound(q, w, d) >= bsf:
                stats["prune_end"] += 1
                continue
            cb = None
            if use_env:
                if lb_keogh(w, ctx.q_lower, ctx.q_upper, d) >= bsf:
                    stats["prune_env"] += 1
                    continue
                wl, wu = ctx.window_envelope(s, w)
                cb = cumulative_tail(lb_keogh_terms(q, wl, wu, d))
            c = dtw_cost(
                q,
                w,
                d,
                ctx.radius,
                transportcost=ctx.transportcost,
                cumulative_bound=cb,
                best_so_far=bsf,
            )
            if c == INF and bsf < INF:
                stats["abandoned"] += 1
                continue

        stats["evaluated"] += 1
        if c < bsf:
            bsf = c
            loc = s

    return bsf, loc, dists, stats


def _merge(
    parts: List[Tuple[float, int, Optional[np.ndarray], Dict[str, int]]],
    best_so_far: float,
) -> Tuple[float, int, Optional[np.ndarray], Dict[str, int]]:
    stats = _new_stats()
    best = float(best_so_far)
    loc = -1
    for cost, at, _, st in parts:
        for k, v in st.items():
            stats[k] += int(v)
        # parts arrive in offset order; strict < keeps the smallest offset on ties
        if at >= 0 and cost < best:
            best = cost
            loc = at
    dists = None
    if parts and parts[0][2] is not None:
        dists = np.concatenate([p[2] for p in parts])
    return best, loc, dists, stats


def dtwnn(
    query: Any,
    target: Any,
    dist: Any = None,
    radius: int = 5,
    normalizer: Any = None,
    *,
    prune_endpoints: bool = True,
    save_all: bool = False,
    transportcost: float = 1.0,
    best_so_far: float = INF,
    use_lb_keogh: bool = True,
    n_jobs: int = 1,
) -> DTWSearchResult:
    """
    DTW nearest neighbour of `query` among all length-m windows of `target`.

    For every offset s in 0..n-m the cost is DTW(query, target[s:s+m]) with band
    `radius`; with a normalizer, the query and every window are normalized
    independently.

    save_all=False (search mode) applies a pruning cascade, none of which can
    change the reported minimum:
      1. endpoint bound (prune_endpoints): both corners are on every path
      2. LB_Keogh of the query envelope vs the window (envelope-admissible distances)
      3. banded DTW with cumulative LB_Keogh (window envelope vs query) and
         row-minimum early abandoning against the running best
    save_all=True computes every offset exactly and returns the DistanceProfile.

    Ties resolve to the smallest offset. n_jobs != 1 scans contiguous chunks of
    offsets with joblib, each chunk with its own running best, then reduces.
    """
    r = validate_radius(radius)
    t = validate_transportcost(transportcost)
    d = as_distance(dist)
    norm = resolve_normalizer(normalizer)
    q_raw, tgt = as_pair(query, target)
    m = int(q_raw.shape[0])
    n = int(tgt.shape[0])
    if m > n:
        raise QueryTooLong(m, n)
    if m == 0:
        raise ValueError("query must contain at least one sample")

    q = normalize(norm, q_raw)
    q_lower = q_upper = t_lower = t_upper = None
    if use_lb_keogh and d.envelope_admissible and not save_all:
        q_lower, q_upper = envelope(q, r)
        if norm is identity:
            t_lower, t_upper = envelope(tgt, r)

    ctx = _ScanContext(
        query=q,
        target=tgt,
        m=m,
        radius=r,
        dist=d,
        transportcost=t,
        norm=norm,
        prune_endpoints=bool(prune_endpoints),
        save_all=bool(save_all),
        q_lower=q_lower,
        q_upper=q_upper,
        t_lower=t_lower,
        t_upper=t_upper,
    )

    n_off = n - m + 1
    workers = effective_n_jobs(n_jobs)
    if workers <= 1 or n_off < 2 * workers:
        parts = [_scan(ctx, 0, n_off, best_so_far)]
    else:
        edges = np.linspace(0, n_off, workers + 1, dtype="int64")
        spans = [(int(a), int(b)) for a, b in zip(edges[:-1], edges[1:]) if b > a]
        logger.debug("dtwnn: %d offsets over %d chunks (n_jobs=%s)", n_off, len(spans), n_jobs)
        parts = Parallel(n_jobs=n_jobs)(delayed(_scan)(ctx, a, b, best_so_far) for a, b in spans)

    best, loc, dists, stats = _merge(list(parts), best_so_far)
    logger.debug("dtwnn: best=%.6g at %d; prunestats=%s", best, loc, stats)
    return DTWSearchResult(cost=float(best), loc=int(loc), dists=dists, prunestats=stats)


def distance_profile(
    query: Any,
    target: Any,
    dist: Any = None,
    radius: int = 5,
    normalizer: Any = None,
    *,
    transportcost: float = 1.0,
    n_jobs: int = 1,
) -> np.ndarray:
    """DTW cost of `query` against every window of `target` -> (n-m+1,) float64."""
    res = dtwnn(
        query,
        target,
        dist,
        radius,
        normalizer,
        prune_endpoints=False,
        save_all=True,
        transportcost=transportcost,
        n_jobs=n_jobs,
    )
    return res.dists


def dtwnn_from_config(query: Any, target: Any, *, cfg: SearchConfig, best_so_far: float = INF) -> DTWSearchResult:
    return dtwnn(
        query,
        target,
        cfg.dist,
        cfg.radius,
        cfg.normalizer,
        prune_endpoints=cfg.prune_endpoints,
        save_all=cfg.save_all,
        transportcost=cfg.transportcost,
        best_so_far=best_so_far,
        use_lb_keogh=cfg.use_lb_keogh,
        n_jobs=cfg.n_jobs,
    )


__all__ = [
    "DTWSearchResult",
    "dtwnn",
    "distance_profile",
    "dtwnn_from_config",
]
