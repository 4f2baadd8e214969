"""
weighted_set.py

Weighted table data model.

Implements:
- Item: a (name, weight) pair validated at construction time
- WeightedSet: ordered items with unique names and the two mode flags
  (repetitive picking, inverted weights)
- TableSnapshot: immutable view handed to the sampler and the probability engine

No randomness here. No file I/O (see table_format.py).
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Tuple

NAME_PATTERN = re.compile(r"[A-Za-z0-9_]+")


class ItemNameError(ValueError):
    pass


class WeightError(ValueError):
    pass


def is_valid_name(name: str) -> bool:
    """Non-empty, ASCII letters / digits / underscore only."""
    return isinstance(name, str) and NAME_PATTERN.fullmatch(name) is not None


def effective_weight(weight: float, inverted: bool) -> float:
    """
    Weight actually used for drawing and probability computation.

    Inverted mode uses 1/weight; a zero weight stays 0 (the item is kept but
    can never be reached).
    """
    if not inverted:
        return weight
    if weight == 0.0:
        return 0.0
    return 1.0 / weight


# ============================================================
# DATA STRUCTURES
# ============================================================

@dataclass(frozen=True)
class Item:
    name: str
    weight: float

    def __post_init__(self) -> None:
        if not is_valid_name(self.name):
            raise ItemNameError(f"Invalid item name {self.name!r}: use letters, digits or '_'.")
        try:
            w = float(self.weight)
        except (TypeError, ValueError):
            raise WeightError(f"Weight for {self.name!r} is not a number: {self.weight!r}.") from None
        if math.isnan(w) or math.isinf(w):
            raise WeightError(f"Weight for {self.name!r} must be finite, got {w}.")
        if w < 0:
            raise WeightError(f"Negative weight {w} for item {self.name!r}.")
        object.__setattr__(self, "weight", w)


@dataclass(frozen=True)
class TableSnapshot:
    """
    Read-only copy of a WeightedSet taken at the start of a computation.
    Weights are already effective (inversion applied).
    """
    names: Tuple[str, ...]
    effective_weights: Tuple[float, ...]
    repetitive: bool
    inverted: bool

    def __len__(self) -> int:
        return len(self.names)

    @property
    def total_width(self) -> float:
        return math.fsum(self.effective_weights)

    def reachable_indices(self) -> List[int]:
        return [i for i, w in enumerate(self.effective_weights) if w > 0.0]


class WeightedSet:
    """Ordered, name-unique collection of items plus mode flags."""

    def __init__(
        self,
        items: Optional[Dict[str, float]] = None,
        repetitive: bool = False,
        inverted: bool = False,
    ):
        self._items: List[Item] = []
        self.repetitive = repetitive
        self.inverted = inverted
        for name, weight in (items or {}).items():
            self.upsert(name, weight)

    # ----------------------------
    # container protocol
    # ----------------------------

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Item]:
        return iter(list(self._items))

    def __contains__(self, name: object) -> bool:
        return self._find(name) >= 0

    def __repr__(self) -> str:
        return (
            f"WeightedSet({self.as_dict()!r}, repetitive={self.repetitive}, "
            f"inverted={self.inverted})"
        )

    @property
    def is_empty(self) -> bool:
        return len(self._items) == 0

    # ----------------------------
    # mutation
    # ----------------------------

    def _find(self, name: object) -> int:
        for i, item in enumerate(self._items):
            if item.name == name:
                return i
        return -1

    def upsert(self, name: str, weight: float) -> Item:
        """Insert a new item or update the weight of an existing one (order kept)."""
        item = Item(name, weight)
        i = self._find(name)
        if i < 0:
            self._items.append(item)
        else:
            self._items[i] = item
        return item

    def delete(self, name: str) -> bool:
        i = self._find(name)
        if i < 0:
            return False
        del self._items[i]
        return True

    # ----------------------------
    # queries
    # ----------------------------

    def get(self, name: str) -> Optional[Item]:
        i = self._find(name)
        return self._items[i] if i >= 0 else None

    def weight_of(self, name: str) -> float:
        item = self.get(name)
        return item.weight if item else 0.0

    def names(self) -> List[str]:
        return [it.name for it in self._items]

    def weights(self) -> List[float]:
        return [it.weight for it in self._items]

    def effective_weights(self) -> List[float]:
        return [effective_weight(it.weight, self.inverted) for it in self._items]

    def as_dict(self) -> Dict[str, float]:
        return {it.name: it.weight for it in self._items}

    def reachable_count(self) -> int:
        return sum(1 for w in self.effective_weights() if w > 0.0)

    def is_fair(self) -> bool:
        """True when every item shares the same positive effective weight."""
        eff = self.effective_weights()
        if not eff or eff[0] <= 0.0:
            return False
        return all(w == eff[0] for w in eff)

    def snapshot(self) -> TableSnapshot:
        return TableSnapshot(
            names=tuple(self.names()),
            effective_weights=tuple(self.effective_weights()),
            repetitive=bool(self.repetitive),
            inverted=bool(self.inverted),
        )
