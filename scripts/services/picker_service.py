#!/usr/bin/env python3
"""
Picker service
==============

Purpose:
- Open a table file and run one operation on it:
  - pick items
  - exact probabilities
  - empirical frequencies (statistical test)
- Turn precondition failures into PickerServiceError for the CLI and the web app.

Depends on:
- picker.modules.table_format (table files)
- picker.modules.picker.Picker (draw / probabilities / validation)
"""
from __future__ import annotations

import os
import sys

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from picker.modules import settings as S
from picker.modules.picker import Picker
from picker.modules.statistical_validator import compare_distributions
from picker.modules.table_format import LoadResult, load_table
from picker.modules.weighted_sampler import AmountError


class PickerServiceError(RuntimeError):
    pass


@dataclass(frozen=True)
class PickRequest:
    table_path: str
    amount: int = 1
    fast_rng: bool = False
    seed: Optional[int] = None
    workers: Optional[int] = None


def open_table(path: str) -> LoadResult:
    """Load a table file; a missing file or a table without items is an error."""
    p = Path(path)
    if not p.is_file():
        raise PickerServiceError(f"Table file not found: {path}")
    try:
        result = load_table(p)
    except (OSError, UnicodeDecodeError) as e:
        raise PickerServiceError(f"Failed to open table file {path}: {e}") from e
    if result.table.is_empty:
        raise PickerServiceError(f"Table file has no items: {path}")
    return result


def build_picker(req: PickRequest) -> Tuple[Picker, LoadResult]:
    loaded = open_table(req.table_path)
    source = S.RNG_FAST if req.fast_rng else None
    picker = Picker(loaded.table, workers=req.workers, seed=req.seed, source=source)
    return picker, loaded


def pick_items(req: PickRequest) -> Dict[str, Any]:
    picker, loaded = build_picker(req)
    try:
        picks = picker.draw(req.amount)
    except AmountError as e:
        raise PickerServiceError(str(e)) from e
    return {
        "picks": picks,
        "nonuniform": not picker.table.is_fair(),
        "load_errors": loaded.errors,
    }


def calculate_probabilities(req: PickRequest) -> Dict[str, Any]:
    picker, loaded = build_picker(req)
    t_start = time.perf_counter()
    try:
        probabilities = picker.exact_probabilities(req.amount)
    except AmountError as e:
        raise PickerServiceError(str(e)) from e
    elapsed_ms = (time.perf_counter() - t_start) * 1000.0
    return {
        "probabilities": probabilities,
        "repetitive": picker.table.repetitive,
        "elapsed_ms": elapsed_ms,
        "load_errors": loaded.errors,
    }


def run_frequency_test(req: PickRequest, trials: Optional[int] = None) -> Dict[str, Any]:
    """Empirical frequencies plus their deviation from the exact values."""
    picker, loaded = build_picker(req)
    n_trials = S.DEFAULT_TEST_TRIALS if trials is None else trials
    t_start = time.perf_counter()
    try:
        frequencies = picker.validate(req.amount, n_trials)
        exact = picker.exact_probabilities(req.amount)
    except (AmountError, ValueError) as e:
        raise PickerServiceError(str(e)) from e
    elapsed_ms = (time.perf_counter() - t_start) * 1000.0

    rows = compare_distributions(exact, frequencies)
    return {
        "frequencies": frequencies,
        "trials": n_trials,
        "repetitive": picker.table.repetitive,
        "max_abs_error": max((r["abs_error"] for r in rows), default=0.0),
        "elapsed_ms": elapsed_ms,
        "load_errors": loaded.errors,
    }
