"""
Inclusion probability engine
============================

Exact probability that each item appears among the k items of one pick.

Implements:
- Closed forms: single draw / repetitive mode (w_i / S), whole table (1.0),
  fair table (k / m)
- General no-replacement case: depth-first walk of the ordered-pick decision
  tree of depth k, driven by an explicit stack of (index, path probability)
  frames
- Parallel variant: top-level branches are partitioned across a
  concurrent.futures pool, partial vectors are summed at the end

Zero-weight items are removed from the tree before the walk; they are
reported with probability 0.

Cost grows with m!/(m-k)! (m = items with non-zero weight), so this is meant
for tables of tens of items and small k.
"""

from __future__ import annotations

import math
from concurrent.futures import ProcessPoolExecutor, ThreadPoolExecutor
from typing import Dict, List, Optional, Sequence, Tuple, Union

from picker.modules import settings as S
from picker.modules.weighted_sampler import AmountError, normalised
from picker.modules.weighted_set import TableSnapshot, WeightedSet

Probabilities = Dict[str, float]


def _as_snapshot(table: Union[WeightedSet, TableSnapshot]) -> TableSnapshot:
    if isinstance(table, TableSnapshot):
        return table
    return table.snapshot()


# ============================================================
# TREE WALK
# ============================================================

def _next_unpicked(picked: Sequence[bool], start: int) -> Optional[int]:
    for i in range(start, len(picked)):
        if not picked[i]:
            return i
    return None


def _path_probability(weights: Sequence[float], path: Sequence[int]) -> float:
    """
    Probability of the ordered picks in `path`, recomputed from the root.

    Each denominator is the exact sum of the weights still unpicked at that
    step; subtracting from a running total loses small weights next to
    large ones and can reach 0.
    """
    prob = 1.0
    taken = set()
    for i in path:
        remaining = math.fsum(w for j, w in enumerate(weights) if j not in taken)
        prob *= weights[i] / remaining
        taken.add(i)
    return prob


def explore_branches(weights: Sequence[float], k: int, roots: Sequence[int]) -> List[float]:
    """
    Walk the subtrees whose first pick is one of `roots`.

    Every node credits its path probability to the item picked at that node.
    All weights must be > 0. Returns a partial vector indexed like `weights`.
    """
    n = len(weights)
    partial = [0.0] * n

    for root in roots:
        picked = [False] * n
        picked[root] = True
        prob = _path_probability(weights, (root,))
        stack: List[Tuple[int, float]] = [(root, prob)]
        partial[root] += prob

        while True:
            nxt = _next_unpicked(picked, 0) if len(stack) < k else None
            if nxt is None:
                # next sibling, backtracking as far as needed (never past the root)
                while len(stack) > 1:
                    prev, _ = stack.pop()
                    picked[prev] = False
                    nxt = _next_unpicked(picked, prev + 1)
                    if nxt is not None:
                        break
                if nxt is None:
                    break

            picked[nxt] = True
            path = [i for i, _ in stack]
            path.append(nxt)
            prob = _path_probability(weights, path)
            stack.append((nxt, prob))
            partial[nxt] += prob

    return partial


def inclusion_vector(
    weights: Sequence[float],
    k: int,
    workers: Optional[int] = None,
    use_processes: bool = True,
    parallel_min_items: Optional[int] = None,
) -> List[float]:
    """
    Inclusion probabilities for strictly positive `weights` and 1 < k < len(weights).

    With more than one worker the first-pick branches are dealt round-robin
    to the pool; each worker owns its stack, flags and accumulator.
    """
    n = len(weights)
    roots = list(range(n))
    n_workers = S.WORKERS if workers is None else workers
    n_workers = max(1, min(int(n_workers), n))
    min_items = S.PARALLEL_MIN_ITEMS if parallel_min_items is None else parallel_min_items

    if n_workers == 1 or n < min_items:
        return explore_branches(weights, k, roots)

    frozen = tuple(weights)
    groups = [roots[i::n_workers] for i in range(n_workers)]
    executor_cls = ProcessPoolExecutor if use_processes else ThreadPoolExecutor
    with executor_cls(max_workers=n_workers) as ex:
        futures = [ex.submit(explore_branches, frozen, k, g) for g in groups]
        parts = [f.result() for f in futures]

    return [math.fsum(p[i] for p in parts) for i in range(n)]


# ============================================================
# PUBLIC API
# ============================================================

def exact_probabilities(
    table: Union[WeightedSet, TableSnapshot],
    k: int,
    workers: Optional[int] = None,
    use_processes: bool = True,
    parallel_min_items: Optional[int] = None,
) -> Probabilities:
    """
    Probability of each item being among `k` picked items.

    In repetitive mode (and for k == 1) the value is the single-draw
    probability w_i / S. An empty mapping means the table has zero total
    weight (nothing can be drawn).
    """
    snap = _as_snapshot(table)
    n = len(snap)

    if k < 0:
        raise AmountError(f"Amount must be >= 0, got {k}.")
    if k == 0:
        return {name: 0.0 for name in snap.names}
    if not snap.repetitive and k > n:
        raise AmountError(f"Cannot pick {k} distinct items from a table of {n}.")

    if snap.total_width <= 0.0:
        return {}

    if snap.repetitive or k == 1:
        return normalised(dict(zip(snap.names, snap.effective_weights)))

    reachable = snap.reachable_indices()
    m = len(reachable)
    if k > m:
        raise AmountError(f"Cannot pick {k} distinct items: only {m} have a non-zero weight.")

    result = {name: 0.0 for name in snap.names}

    # every reachable item is certainly picked (k == n when no zero weights)
    if k == m:
        for i in reachable:
            result[snap.names[i]] = 1.0
        return result

    weights = [snap.effective_weights[i] for i in reachable]
    if all(w == weights[0] for w in weights):
        for i in reachable:
            result[snap.names[i]] = k / m
        return result

    vec = inclusion_vector(
        weights,
        k,
        workers=workers,
        use_processes=use_processes,
        parallel_min_items=parallel_min_items,
    )
    for j, i in enumerate(reachable):
        result[snap.names[i]] = vec[j]
    return result


def group_inclusion_probabilities(
    table: Union[WeightedSet, TableSnapshot],
    k: int,
    workers: Optional[int] = None,
) -> Probabilities:
    """
    Probability of appearing at least once in a group of `k` picks.

    Repetitive mode: 1 - (1 - p_i)^k from the single-draw probabilities.
    Otherwise identical to exact_probabilities.
    """
    snap = _as_snapshot(table)
    if not snap.repetitive:
        return exact_probabilities(snap, k, workers=workers)
    single = exact_probabilities(snap, 1 if k > 0 else 0)
    if k == 0:
        return single
    return {name: 1.0 - (1.0 - p) ** k for name, p in single.items()}


def conservation_error(probabilities: Probabilities, k: int) -> float:
    """Relative deviation of sum(probabilities) from k."""
    if k <= 0:
        raise ValueError("k must be > 0.")
    return abs(math.fsum(probabilities.values()) - k) / k
