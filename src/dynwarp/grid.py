# src/dynwarp/grid.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, Optional, Tuple

import numpy as np

from dynwarp.errors import InvalidBounds, InvalidRadius, LengthMismatchBand


INF = float("inf")

# Backtrack codes (shared with the path-recovery kernels)
MOVE_NONE = -1
MOVE_DIAG = 0   # (i-1, j-1)
MOVE_UP = 1     # (i-1, j)    vertical
MOVE_LEFT = 2   # (i, j-1)    horizontal

# local_row(i, lo, hi) -> (hi-lo+1,) local costs for row i
LocalRowFn = Callable[[int, int, int], np.ndarray]
# step(diag, up, left) -> (best predecessor value, move code); up/left already scaled
StepFn = Callable[[float, float, float], Tuple[float, int]]


def validate_radius(radius: Any) -> int:
    if isinstance(radius, bool):
        raise InvalidRadius(radius)
    try:
        r = int(radius)
    except (TypeError, ValueError):
        raise InvalidRadius(radius) from None
    if r != radius or r < 0:
        raise InvalidRadius(radius)
    return r


def band_bounds(
    n: int,
    m: int,
    radius: Optional[int],
    *,
    slack: int = 0,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Per-row column bounds of a Sakoe-Chiba band.

    Row i spans [max(0, i - r - slack), min(m-1, i + r + slack)] (inclusive).
    radius=None => full matrix.

    Raises:
      InvalidRadius          radius < 0
      LengthMismatchBand     r + slack < |n - m| (includes radius=0 with n != m)
    """
    n = int(n)
    m = int(m)
    if radius is None:
        return np.zeros(n, dtype="int64"), np.full(n, m - 1, dtype="int64")

    r = validate_radius(radius)
    k = validate_radius(slack)
    if r + k < abs(n - m):
        raise LengthMismatchBand(n, m, r, slack=k)

    rows = np.arange(n, dtype="int64")
    i2min = np.maximum(0, rows - (r + k))
    i2max = np.minimum(m - 1, rows + (r + k))
    return i2min, i2max


def check_bounds(i2min: Any, i2max: Any, m: int) -> Tuple[np.ndarray, np.ndarray]:
    """
    Validate externally supplied per-row bounds.

    Requirements:
      - same length n >= 1, 0 <= i2min[i] <= i2max[i] <= m-1
      - both non-decreasing
      - i2min[0] == 0 and i2max[-1] == m-1 (both corners inside)
      - i2min[i] <= i2max[i-1] + 1 (every row reachable from the previous one)
    """
    lo = np.asarray(i2min, dtype="int64").reshape(-1)
    hi = np.asarray(i2max, dtype="int64").reshape(-1)
    m = int(m)
    if lo.size != hi.size:
        raise InvalidBounds(f"i2min and i2max differ in length ({lo.size} vs {hi.size})")
    if lo.size == 0:
        raise InvalidBounds("empty bounds")
    bad = np.where((lo < 0) | (hi > m - 1) | (lo > hi))[0]
    if bad.size:
        i = int(bad[0])
        raise InvalidBounds(f"[{int(lo[i])}, {int(hi[i])}] outside [0, {m - 1}] or inverted", row=i)
    if int(lo[0]) != 0 or int(hi[-1]) != m - 1:
        raise InvalidBounds("bounds must include (0, 0) and (n-1, m-1)")
    if lo.size > 1:
        dec = np.where((np.diff(lo) < 0) | (np.diff(hi) < 0))[0]
        if dec.size:
            raise InvalidBounds("bounds must be non-decreasing", row=int(dec[0]) + 1)
        gap = np.where(lo[1:] > hi[:-1] + 1)[0]
        if gap.size:
            raise InvalidBounds("row is disconnected from the previous row", row=int(gap[0]) + 1)
    return lo, hi


def hard_min_step(diag: float, up: float, left: float) -> Tuple[float, int]:
    # ties: diagonal, then vertical, then horizontal
    if diag <= up and diag <= left:
        return diag, MOVE_DIAG
    if up <= left:
        return up, MOVE_UP
    return left, MOVE_LEFT


@dataclass
class BandGrid:
    """
    Banded accumulator over an n x m alignment matrix.

    Only band cells are stored. Storage is packed row-major:
      ptr: (n+1,) int64 prefix sums; row i lives in acc[ptr[i]:ptr[i+1]]
      cell (i, j) -> acc[ptr[i] + j - i2min[i]]
    Cells outside the band read as +inf; the virtual origin (-1, -1) reads as 0.
    """
    n: int
    m: int
    i2min: np.ndarray
    i2max: np.ndarray
    ptr: np.ndarray
    acc: np.ndarray
    moves: Optional[np.ndarray] = None
    filled_rows: int = field(default=0)

    @classmethod
    def from_bounds(cls, i2min: np.ndarray, i2max: np.ndarray, m: int, *, track_moves: bool = False) -> "BandGrid":
        lo = np.asarray(i2min, dtype="int64")
        hi = np.asarray(i2max, dtype="int64")
        widths = hi - lo + 1
        ptr = np.zeros(lo.size + 1, dtype="int64")
        ptr[1:] = np.cumsum(widths)
        size = int(ptr[-1])
        acc = np.full(size, INF, dtype="float64")
        moves = np.full(size, MOVE_NONE, dtype="int8") if track_moves else None
        return cls(n=int(lo.size), m=int(m), i2min=lo, i2max=hi, ptr=ptr, acc=acc, moves=moves)

    @classmethod
    def from_radius(
        cls,
        n: int,
        m: int,
        radius: Optional[int],
        *,
        slack: int = 0,
        track_moves: bool = False,
    ) -> "BandGrid":
        lo, hi = band_bounds(n, m, radius, slack=slack)
        return cls.from_bounds(lo, hi, m, track_moves=track_moves)

    @property
    def size(self) -> int:
        return int(self.ptr[-1])

    def cells(self) -> Iterator[Tuple[int, int]]:
        """Band cells in row-major order."""
        for i in range(self.n):
            for j in range(int(self.i2min[i]), int(self.i2max[i]) + 1):
                yield i, j

    def contains(self, i: int, j: int) -> bool:
        return 0 <= i < self.n and int(self.i2min[i]) <= j <= int(self.i2max[i])

    def flat_index(self, i: int, j: int) -> int:
        return int(self.ptr[i]) + j - int(self.i2min[i])

    def get(self, i: int, j: int) -> float:
        if i == -1 and j == -1:
            return 0.0
        if not self.contains(i, j):
            return INF
        return float(self.acc[self.flat_index(i, j)])

    def row(self, i: int) -> np.ndarray:
        return self.acc[int(self.ptr[i]) : int(self.ptr[i + 1])]

    def to_dense(self, fill_value: float = INF) -> np.ndarray:
        out = np.full((self.n, self.m), fill_value, dtype="float64")
        for i in range(self.n):
            lo = int(self.i2min[i])
            hi = int(self.i2max[i])
            out[i, lo : hi + 1] = self.row(i)
        return out

    def fill(
        self,
        local_row: LocalRowFn,
        step: StepFn = hard_min_step,
        *,
        transportcost: float = 1.0,
        cumulative_bound: Optional[np.ndarray] = None,
        abandon_above: float = INF,
    ) -> bool:
        """
        Run the recurrence over the band:

          A[i,j] = c(i,j) + step(A[i-1,j-1], t*A[i-1,j], t*A[i,j-1])

        Early abandoning: after row i, stop once
          min(A[i,:]) + cumulative_bound[i] > abandon_above
        where cumulative_bound[i] lower-bounds the cost still to come (rows i+1..n-1).

        Returns True when every row was filled, False if abandoned.
        """
        t = float(transportcost)
        acc = self.acc
        moves = self.moves
        check_abandon = abandon_above < INF

        prev_lo = prev_hi = prev_off = -1
        for i in range(self.n):
            lo = int(self.i2min[i])
            hi = int(self.i2max[i])
            off = int(self.ptr[i])
            costs = local_row(i, lo, hi)

            left = INF
            for j in range(lo, hi + 1):
                if i == 0:
                    diag = 0.0 if j == 0 else INF
                    up = INF
                else:
                    jd = j - 1
                    diag = acc[prev_off + jd - prev_lo] if prev_lo <= jd <= prev_hi else INF
                    up = acc[prev_off + j - prev_lo] if prev_lo <= j <= prev_hi else INF
                best, mv = step(diag, t * up, t * left)
                v = costs[j - lo] + best
                acc[off + j - lo] = v
                if moves is not None:
                    moves[off + j - lo] = mv
                left = v

            self.filled_rows = i + 1
            if check_abandon:
                rest = 0.0 if cumulative_bound is None else float(cumulative_bound[i])
                if float(acc[off : off + hi - lo + 1].min()) + rest > abandon_above:
                    return False
            prev_lo, prev_hi, prev_off = lo, hi, off
        return True

    def final(self) -> float:
        return self.get(self.n - 1, self.m - 1)

    def trace_path(self) -> np.ndarray:
        """Follow stored moves from (n-1, m-1) back to (0, 0) -> (K,2) forward path."""
        if self.moves is None:
            raise RuntimeError("BandGrid was filled without move tracking")
        if self.filled_rows != self.n:
            raise RuntimeError("BandGrid fill was abandoned; no path available")
        i = self.n - 1
        j = self.m - 1
        path = []
        while True:
            path.append((i, j))
            if i == 0 and j == 0:
                break
            mv = int(self.moves[self.flat_index(i, j)])
            if mv == MOVE_DIAG:
                i -= 1
                j -= 1
            elif mv == MOVE_UP:
                i -= 1
            elif mv == MOVE_LEFT:
                j -= 1
            else:
                raise RuntimeError(f"Broken backtrack at cell ({i}, {j})")
        return np.asarray(path[::-1], dtype="int64")


__all__ = [
    "INF",
    "MOVE_DIAG",
    "MOVE_UP",
    "MOVE_LEFT",
    "validate_radius",
    "band_bounds",
    "check_bounds",
    "hard_min_step",
    "BandGrid",
]
