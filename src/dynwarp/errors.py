# src/dynwarp/errors.py
from __future__ import annotations

from typing import Any


class DynwarpError(ValueError):
    """Base class for parameter/shape failures detected at kernel entry."""


class InvalidRadius(DynwarpError):
    def __init__(self, radius: Any) -> None:
        self.radius = radius
        super().__init__(f"radius must be a non-negative integer, got {radius!r}")


class IncompatibleBandError(DynwarpError):
    """
    The band cannot connect (0,0) to (n-1,m-1).

    radius=0 with n != m is the degenerate case: the strict diagonal never
    reaches the far corner.
    """

    def __init__(self, n: int, m: int, radius: int, *, slack: int = 0) -> None:
        self.n = int(n)
        self.m = int(m)
        self.radius = int(radius)
        self.slack = int(slack)
        super().__init__(self._message())

    def _message(self) -> str:
        return (
            f"band radius={self.radius} (slack={self.slack}) cannot bridge "
            f"length difference |{self.n}-{self.m}|={abs(self.n - self.m)}"
        )


class LengthMismatchBand(IncompatibleBandError):
    def _message(self) -> str:
        return (
            f"radius={self.radius} < |n-m|={abs(self.n - self.m)} "
            f"(n={self.n}, m={self.m}); widen the radius or use equal lengths"
        )


class InvalidGamma(DynwarpError):
    def __init__(self, gamma: Any) -> None:
        self.gamma = gamma
        super().__init__(f"gamma must be a finite value > 0, got {gamma!r}")


class QueryTooLong(DynwarpError):
    def __init__(self, query_length: int, target_length: int) -> None:
        self.query_length = int(query_length)
        self.target_length = int(target_length)
        super().__init__(
            f"query cannot be longer than target: {self.query_length} > {self.target_length}"
        )


class InvalidBounds(DynwarpError):
    def __init__(self, reason: str, *, row: int | None = None) -> None:
        self.reason = str(reason)
        self.row = row
        where = "" if row is None else f" (row {row})"
        super().__init__(f"invalid per-row band bounds{where}: {self.reason}")


__all__ = [
    "DynwarpError",
    "InvalidRadius",
    "IncompatibleBandError",
    "LengthMismatchBand",
    "InvalidGamma",
    "QueryTooLong",
    "InvalidBounds",
]
