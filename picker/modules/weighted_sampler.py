"""
weighted_sampler.py

Reusable weighted sampling utilities.
All drawing MUST go through this module instead of ad-hoc random selection logic.

Design goals:
- deterministic when seeded (support injecting a random.Random instance)
- selectable random source: OS entropy (default) or the fast Mersenne Twister
- one primitive returning indices; names are resolved by a thin adapter
"""

from __future__ import annotations

import bisect
import random
import secrets
from typing import Dict, List, Optional, Sequence, TypeVar

from picker.modules import settings as S
from picker.modules.weighted_set import TableSnapshot, WeightError

T = TypeVar("T")


class AmountError(ValueError):
    pass


def make_rng(source: Optional[str] = None, seed: Optional[int] = None) -> random.Random:
    """
    Build the random source used by the sampler.

    A seed always gives a reproducible random.Random, whatever the source.
    """
    if seed is not None:
        return random.Random(seed)
    src = (source or S.RNG_SOURCE).strip().lower()
    if src == S.RNG_OS:
        return secrets.SystemRandom()
    if src == S.RNG_FAST:
        return random.Random()
    raise ValueError(f"Unknown random source {src!r} (expected {S.RNG_OS!r} or {S.RNG_FAST!r}).")


def normalised(weight_map: Dict[T, float]) -> Dict[T, float]:
    """
    Returns a new dict with weights normalised to sum to 1.0.
    """
    if not weight_map:
        raise WeightError("Weight map is empty.")
    for k, w in weight_map.items():
        if w < 0:
            raise WeightError(f"Negative weight {w} for key={k!r}.")
    total = float(sum(float(w) for w in weight_map.values()))
    if total <= 0.0:
        raise WeightError("Sum of weights must be > 0.")
    return {k: float(w) / total for k, w in weight_map.items()}


# ============================================================
# DISTRIBUTION GRID
# ============================================================

def cumulative_grid(weights: Sequence[float]) -> List[float]:
    """
    Running sum of weights: n+1 non-decreasing values, grid[0] = 0,
    grid[n] = total width. Zero weights give zero-width cells.
    """
    grid = [0.0]
    cur = 0.0
    for w in weights:
        cur += w
        grid.append(cur)
    return grid


def _last_reachable(grid: Sequence[float]) -> int:
    for i in range(len(grid) - 2, -1, -1):
        if grid[i + 1] > grid[i]:
            return i
    return len(grid) - 2


def locate(grid: Sequence[float], r: float) -> int:
    """
    Index i such that grid[i] <= r < grid[i+1].

    A value at (or past) the total width maps to the last item with a
    non-zero cell, never to a zero-width item.
    """
    n = len(grid) - 1
    if n <= 0:
        raise ValueError("Cannot locate a value in an empty grid.")
    if r >= grid[-1]:
        return _last_reachable(grid)
    i = bisect.bisect_right(grid, r) - 1
    return min(max(i, 0), n - 1)


# ============================================================
# SEQUENTIAL SAMPLER
# ============================================================

class SequentialSampler:
    """Draws indices from a snapshot's cumulative grid."""

    def __init__(self, snapshot: TableSnapshot, rng: Optional[random.Random] = None):
        self.snapshot = snapshot
        self.rng = rng or make_rng()
        self.grid = cumulative_grid(snapshot.effective_weights)
        self.width = self.grid[-1]
        self.reachable = len(snapshot.reachable_indices())

    def draw_index(self) -> int:
        r = self.rng.random() * self.width
        return locate(self.grid, r)

    def draw(self, amount: int, allow_replacement: Optional[bool] = None) -> List[int]:
        """
        Draw `amount` indices.

        Without replacement an index already drawn in this call is redrawn
        without using up an output slot. A table whose total width is zero
        yields an empty list.
        """
        if allow_replacement is None:
            allow_replacement = self.snapshot.repetitive
        if amount < 0:
            raise AmountError(f"Amount must be >= 0, got {amount}.")
        if amount == 0:
            return []
        if not allow_replacement and amount > len(self.snapshot):
            raise AmountError(
                f"Cannot pick {amount} distinct items from a table of {len(self.snapshot)}."
            )
        if self.width <= 0.0:
            return []
        if not allow_replacement and amount > self.reachable:
            raise AmountError(
                f"Cannot pick {amount} distinct items: only {self.reachable} have a non-zero weight."
            )

        picked: List[int] = []
        seen = set()
        while len(picked) < amount:
            i = self.draw_index()
            if not allow_replacement:
                if i in seen:
                    continue
                seen.add(i)
            picked.append(i)
        return picked

    def draw_names(self, amount: int, allow_replacement: Optional[bool] = None) -> List[str]:
        return [self.snapshot.names[i] for i in self.draw(amount, allow_replacement)]
