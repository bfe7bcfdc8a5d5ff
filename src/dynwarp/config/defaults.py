from __future__ import annotations

from .schema import DTWConfig, FastDTWConfig, RunConfig, SearchConfig, SoftDTWConfig


def default_config() -> RunConfig:
    return RunConfig(
        dtw=DTWConfig(radius=None, transportcost=1.0),
        soft=SoftDTWConfig(gamma=1.0),
        fast=FastDTWConfig(radius=1),
        search=SearchConfig(radius=5, prune_endpoints=True, save_all=False),
    )
