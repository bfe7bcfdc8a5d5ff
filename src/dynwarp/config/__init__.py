from __future__ import annotations

from .defaults import default_config
from .schema import DTWConfig, FastDTWConfig, RunConfig, SearchConfig, SoftDTWConfig

__all__ = [
    "DTWConfig",
    "SoftDTWConfig",
    "FastDTWConfig",
    "SearchConfig",
    "RunConfig",
    "default_config",
]
