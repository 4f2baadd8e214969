"""
statistical_validator.py

Empirical cross-check of the probability engine.

Runs the sequential sampler many times and turns occurrence counts into
frequencies comparable to exact_probabilities:
- repetitive mode: count / (trials * amount)  (per-draw frequency)
- non-repetitive mode: count / trials         (inclusion in the group)

Independent trials may be split into chunks and run on a process pool;
each chunk owns its random source and counts are summed at the end.
"""

from __future__ import annotations

import math
import random
from concurrent.futures import ProcessPoolExecutor
from typing import Any, Dict, List, Optional, Tuple, Union

from picker.modules import settings as S
from picker.modules.weighted_sampler import AmountError, SequentialSampler, make_rng
from picker.modules.weighted_set import TableSnapshot, WeightedSet

Frequencies = Dict[str, float]


def _as_snapshot(table: Union[WeightedSet, TableSnapshot]) -> TableSnapshot:
    if isinstance(table, TableSnapshot):
        return table
    return table.snapshot()


def count_occurrences(
    snapshot: TableSnapshot,
    amount: int,
    trials: int,
    rng: random.Random,
    distinct: bool = False,
) -> List[int]:
    """Occurrence count per index over `trials` picks of `amount` items."""
    sampler = SequentialSampler(snapshot, rng)
    counts = [0] * len(snapshot)
    for _ in range(trials):
        picks = sampler.draw(amount)
        if distinct:
            picks = set(picks)
        for i in picks:
            counts[i] += 1
    return counts


def _count_chunk(
    snapshot: TableSnapshot,
    amount: int,
    trials: int,
    seed: Optional[int],
    source: Optional[str],
    distinct: bool,
) -> List[int]:
    return count_occurrences(snapshot, amount, trials, make_rng(source, seed), distinct=distinct)


def _collect_counts(
    snapshot: TableSnapshot,
    amount: int,
    trials: int,
    rng: Optional[random.Random],
    workers: Optional[int],
    seed: Optional[int],
    source: Optional[str],
    distinct: bool,
) -> List[int]:
    n_workers = 1 if workers is None else max(1, int(workers))
    if rng is not None or n_workers == 1 or trials < n_workers:
        return count_occurrences(snapshot, amount, trials, rng or make_rng(source, seed), distinct=distinct)

    per_worker = trials // n_workers
    remainder = trials % n_workers
    with ProcessPoolExecutor(max_workers=n_workers) as ex:
        futures = []
        for i in range(n_workers):
            trials_i = per_worker + (1 if i < remainder else 0)
            seed_i = None if seed is None else seed + i * S.CHUNK_SEED_STRIDE
            futures.append(ex.submit(_count_chunk, snapshot, amount, trials_i, seed_i, source, distinct))
        parts = [f.result() for f in futures]

    return [sum(p[i] for p in parts) for i in range(len(snapshot))]


def _check_arguments(snapshot: TableSnapshot, amount: int, trials: int) -> None:
    if amount < 0:
        raise AmountError(f"Amount must be >= 0, got {amount}.")
    if trials < 0:
        raise ValueError(f"Trials must be >= 0, got {trials}.")
    if not snapshot.repetitive and amount > len(snapshot):
        raise AmountError(f"Cannot pick {amount} distinct items from a table of {len(snapshot)}.")


def empirical_frequencies(
    table: Union[WeightedSet, TableSnapshot],
    amount: int,
    trials: int,
    rng: Optional[random.Random] = None,
    workers: Optional[int] = 1,
    seed: Optional[int] = None,
    source: Optional[str] = None,
) -> Frequencies:
    """
    Frequency of each item over `trials` picks of `amount` items.

    Returns an empty mapping when the table has zero total weight.
    """
    snap = _as_snapshot(table)
    _check_arguments(snap, amount, trials)
    if amount == 0 or trials == 0:
        return {name: 0.0 for name in snap.names}
    if snap.total_width <= 0.0:
        return {}

    counts = _collect_counts(snap, amount, trials, rng, workers, seed, source, distinct=False)
    denom = float(trials * amount) if snap.repetitive else float(trials)
    return {name: counts[i] / denom for i, name in enumerate(snap.names)}


def empirical_group_frequencies(
    table: Union[WeightedSet, TableSnapshot],
    amount: int,
    trials: int,
    rng: Optional[random.Random] = None,
    workers: Optional[int] = 1,
    seed: Optional[int] = None,
    source: Optional[str] = None,
) -> Frequencies:
    """
    Fraction of trials in which each item appears at least once.

    Matches group_inclusion_probabilities; in non-repetitive mode this is
    the same as empirical_frequencies.
    """
    snap = _as_snapshot(table)
    _check_arguments(snap, amount, trials)
    if amount == 0 or trials == 0:
        return {name: 0.0 for name in snap.names}
    if snap.total_width <= 0.0:
        return {}

    counts = _collect_counts(snap, amount, trials, rng, workers, seed, source, distinct=True)
    return {name: counts[i] / float(trials) for i, name in enumerate(snap.names)}


# ============================================================
# COMPARISON
# ============================================================

def compare_distributions(exact: Dict[str, float], empirical: Dict[str, float]) -> List[Dict[str, Any]]:
    """One row per item of `exact`: exact, empirical, absolute and relative error."""
    rows: List[Dict[str, Any]] = []
    for name, p in exact.items():
        f = empirical.get(name, 0.0)
        abs_error = abs(f - p)
        rows.append({
            "name": name,
            "exact": p,
            "empirical": f,
            "abs_error": abs_error,
            "rel_error": abs_error / p if p > 0 else (0.0 if f == 0 else math.inf),
        })
    return rows


def check_convergence(
    exact: Dict[str, float],
    empirical: Dict[str, float],
    tolerance: Optional[float] = None,
) -> Tuple[bool, List[str]]:
    """
    Validate that empirical frequencies are within `tolerance` of the exact values.

    Returns:
        Tuple of (is_valid, list_of_errors)
    """
    tol = S.CONVERGENCE_TOLERANCE if tolerance is None else tolerance
    errors: List[str] = []

    missing = sorted(set(exact) ^ set(empirical))
    if missing:
        errors.append(f"Item sets differ: {', '.join(missing)}")

    for row in compare_distributions(exact, empirical):
        if row["abs_error"] > tol:
            errors.append(
                f"{row['name']}: exact={row['exact']:.6f} empirical={row['empirical']:.6f} "
                f"(|diff|={row['abs_error']:.6f} > {tol})"
            )

    return (len(errors) == 0, errors)
