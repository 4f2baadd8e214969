#!/usr/bin/env python3
"""
Picker Consistency Validation Script
====================================

Validates exact probabilities against their invariants and against
empirical frequencies. Returns validation results (True/False + errors) -
does NOT modify the table.

Rules Enforced:
1. Every probability lies in [0, 1]
2. Without replacement, probabilities sum to the pick amount
3. Single pick / repetitive mode: probability = effective weight / total
4. Picking the whole table: every reachable item has probability 1
5. Zero-weight items are never picked
6. Empirical frequencies converge to the exact values
"""

from __future__ import annotations

import os
import sys

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

import argparse
import math
import random
from typing import Dict, List, Optional, Tuple

from picker.modules import settings as S
from picker.modules.inclusion_probability import conservation_error, exact_probabilities
from picker.modules.statistical_validator import check_convergence, empirical_frequencies
from picker.modules.weighted_sampler import make_rng
from picker.modules.weighted_set import WeightedSet


class PickerConsistencyValidator:
    """Validates exact probabilities of a weight table."""

    @staticmethod
    def validate_bounds(probabilities: Dict[str, float]) -> Tuple[bool, Optional[str]]:
        bad = [f"{k}={v}" for k, v in probabilities.items() if not (0.0 <= v <= 1.0 + 1e-12)]
        if bad:
            return False, f"Probabilities outside [0, 1]: {', '.join(bad)}"
        return True, None

    @staticmethod
    def validate_conservation(
        probabilities: Dict[str, float], k: int, rtol: float = S.CONSERVATION_RTOL
    ) -> Tuple[bool, Optional[str]]:
        """
        Expected number of distinct picked items equals k (no replacement).
        """
        err = conservation_error(probabilities, k)
        if err > rtol:
            return False, f"Sum of probabilities is {math.fsum(probabilities.values())}, expected {k}"
        return True, None

    @staticmethod
    def validate_closed_forms(
        table: WeightedSet, probabilities: Dict[str, float], k: int
    ) -> Tuple[bool, List[str]]:
        """
        Check the values that have a closed form:
        - k == 1 or repetitive: w_i / S
        - k == reachable count (no replacement): 1 for reachable items
        - zero-weight items: 0
        """
        errors: List[str] = []
        eff = dict(zip(table.names(), table.effective_weights()))
        total = math.fsum(eff.values())

        for name, w in eff.items():
            p = probabilities.get(name, 0.0)
            if w == 0.0 and p != 0.0:
                errors.append(f"{name}: zero weight but probability {p}")
            elif table.repetitive or k == 1:
                if not math.isclose(p, w / total, rel_tol=1e-12, abs_tol=1e-15):
                    errors.append(f"{name}: expected {w / total}, got {p}")
            elif k == table.reachable_count() and w > 0.0 and not math.isclose(p, 1.0):
                errors.append(f"{name}: whole table picked but probability {p}")

        return (len(errors) == 0, errors)

    @staticmethod
    def validate_table(
        table: WeightedSet,
        k: int,
        trials: int,
        rng: Optional[random.Random] = None,
        tolerance: Optional[float] = None,
    ) -> Tuple[bool, List[str]]:
        """
        Run every check on one table.

        Returns:
            Tuple of (is_valid, list_of_errors)
        """
        errors: List[str] = []
        probabilities = exact_probabilities(table, k)
        if not probabilities:
            return False, ["Table has zero total weight: nothing can be picked"]

        valid, error = PickerConsistencyValidator.validate_bounds(probabilities)
        if not valid:
            errors.append(error)

        if not table.repetitive:
            valid, error = PickerConsistencyValidator.validate_conservation(probabilities, k)
            if not valid:
                errors.append(error)

        valid, closed_errors = PickerConsistencyValidator.validate_closed_forms(table, probabilities, k)
        errors.extend(closed_errors)

        if trials > 0:
            frequencies = empirical_frequencies(table, k, trials, rng=rng)
            valid, conv_errors = check_convergence(probabilities, frequencies, tolerance)
            errors.extend(conv_errors)

        return (len(errors) == 0, errors)


def main(argv: Optional[List[str]] = None) -> int:
    """Validate one table file and print a report."""
    from scripts.services.picker_service import PickerServiceError, open_table

    parser = argparse.ArgumentParser(description="Cross-check exact probabilities of a weight table.")
    parser.add_argument("table_file", help="Path of the table file.")
    parser.add_argument("amount", type=int, help="Amount of items per pick.")
    parser.add_argument("--trials", type=int, default=100_000, help="Picks used for the empirical check (0 to skip).")
    parser.add_argument("--seed", type=int, default=None, help="Seed for the empirical check.")
    parser.add_argument("--tolerance", type=float, default=None, help=f"Absolute tolerance. Default: {S.CONVERGENCE_TOLERANCE}.")
    args = parser.parse_args(argv)

    try:
        table = open_table(args.table_file).table
    except PickerServiceError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print("=" * 70)
    print(f"PICKER CONSISTENCY VALIDATION: {args.table_file} (amount={args.amount})")
    print("=" * 70)

    try:
        valid, errors = PickerConsistencyValidator.validate_table(
            table, args.amount, args.trials, rng=make_rng(seed=args.seed) if args.seed is not None else None,
            tolerance=args.tolerance,
        )
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"Valid: {valid}")
    for e in errors:
        print(f"  - {e}")
    print("=" * 70)
    return 0 if valid else 1


if __name__ == "__main__":
    sys.exit(main())
