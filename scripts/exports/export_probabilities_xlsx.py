#!/usr/bin/env python3
"""Export exact probabilities and empirical frequencies of a weight table to Excel."""

from __future__ import annotations

import os
import sys

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

import argparse
import random
from pathlib import Path
from typing import Any, Dict, List, Optional

from openpyxl import Workbook

from picker.modules.inclusion_probability import exact_probabilities
from picker.modules.statistical_validator import compare_distributions, empirical_frequencies
from picker.modules.weighted_sampler import make_rng
from picker.modules.weighted_set import WeightedSet

COLUMNS = ["name", "weight", "effective_weight", "exact", "empirical", "abs_error"]


def build_rows(
    table: WeightedSet,
    amount: int,
    trials: int,
    rng: Optional[random.Random] = None,
    workers: Optional[int] = None,
) -> List[Dict[str, Any]]:
    """One row per item; `empirical` and `abs_error` are None when trials == 0."""
    exact = exact_probabilities(table, amount, workers=workers)
    empirical = empirical_frequencies(table, amount, trials, rng=rng) if trials > 0 else {}
    compared = {r["name"]: r for r in compare_distributions(exact, empirical)}

    rows: List[Dict[str, Any]] = []
    for item, eff in zip(table, table.effective_weights()):
        c = compared.get(item.name)
        rows.append({
            "name": item.name,
            "weight": item.weight,
            "effective_weight": eff,
            "exact": exact.get(item.name),
            "empirical": c["empirical"] if (c and trials > 0) else None,
            "abs_error": c["abs_error"] if (c and trials > 0) else None,
        })
    return rows


def write_xlsx(out_path, sheet_name, rows):
    wb = Workbook()
    ws = wb.active
    ws.title = sheet_name[:31]
    ws.append(COLUMNS)
    for r in rows:
        ws.append([r.get(c) for c in COLUMNS])
    wb.save(out_path)
    return len(rows)


def main(argv: Optional[List[str]] = None) -> int:
    from scripts.services.picker_service import PickerServiceError, open_table

    parser = argparse.ArgumentParser(description="Export probabilities of a weight table to .xlsx.")
    parser.add_argument("table_file", help="Path of the table file.")
    parser.add_argument("amount", type=int, help="Amount of items per pick.")
    parser.add_argument("--out", default=None, help="Output path. Default: <table_file>.xlsx")
    parser.add_argument("--trials", type=int, default=100_000, help="Picks for the empirical column (0 to skip).")
    parser.add_argument("--seed", type=int, default=None, help="Seed for the empirical column.")
    args = parser.parse_args(argv)

    try:
        table = open_table(args.table_file).table
        rows = build_rows(
            table, args.amount, args.trials,
            rng=make_rng(seed=args.seed) if args.seed is not None else None,
        )
    except (PickerServiceError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    out_path = Path(args.out) if args.out else Path(args.table_file).with_suffix(".xlsx")
    out_path.parent.mkdir(parents=True, exist_ok=True)
    count = write_xlsx(out_path, f"amount_{args.amount}", rows)
    print(f"  {out_path.name}: {count} rows")
    print(f"\nExport complete -> {out_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
