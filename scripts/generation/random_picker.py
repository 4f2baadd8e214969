#!/usr/bin/env python3
"""
random_picker.py

Command-line front end for weight tables.

Operations:
- pick  <table_file> [amount]   print `amount` picked names
- calc  <table_file> [amount]   print exact probabilities (%) of being picked
- test  <table_file> [amount]   print empirical frequencies (%) over many picks
- conf  <table_file>            edit the table from standard input and save it

Note:
- `amount` defaults to 1.
- When repetitive mode is off, `amount` must not exceed the table length.
"""

from __future__ import annotations

import os
import sys

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

import argparse
from pathlib import Path
from typing import List, Optional

from picker.modules import settings as S
from picker.modules.table_format import dump_table, format_table, load_table, parse_table, save_table
from picker.modules.weighted_set import WeightedSet
from scripts.services.picker_service import (
    PickRequest,
    PickerServiceError,
    calculate_probabilities,
    pick_items,
    run_frequency_test,
)

REPETITIVE_NOTE = (
    "Note: probabilities in this table are for picking a single item; the probability of "
    "item i appearing in a group of m picks is 1 - (1 - Pi)^m."
)


def _as_percent(values):
    return {k: 100.0 * v for k, v in values.items()}


def _print_load_errors(errors: List[str]) -> None:
    for e in errors:
        print(f"Warning: {e}", file=sys.stderr)


def _ask_yes_no(question: str) -> Optional[bool]:
    try:
        answer = input(f"{question} (Y/n) ")
    except EOFError:
        return None
    answer = answer.strip()[:1]
    if answer in ("Y", "y"):
        return True
    if answer in ("N", "n"):
        return False
    return None


# ----------------------------
# Operations
# ----------------------------

def run_pick(req: PickRequest, know_nonuniform: bool) -> int:
    result = pick_items(req)
    _print_load_errors(result["load_errors"])
    line = " ".join(result["picks"])
    if result["nonuniform"] and not know_nonuniform:
        line = f"{line} (nonuniform)" if line else "(nonuniform)"
    print(line)
    return 0


def run_calc(req: PickRequest) -> int:
    print("Calculating, please wait...")
    result = calculate_probabilities(req)
    _print_load_errors(result["load_errors"])
    print(f"Time passed: {result['elapsed_ms']:.0f} ms")
    print(format_table(_as_percent(result["probabilities"])), end="")
    if result["repetitive"]:
        print(REPETITIVE_NOTE)
    return 0


def run_test(req: PickRequest, trials: int) -> int:
    print(f"Testing for {trials} times, please wait...")
    result = run_frequency_test(req, trials)
    _print_load_errors(result["load_errors"])
    print(f"Time passed: {result['elapsed_ms']:.0f} ms")
    if result["repetitive"]:
        print("Test result of frequencies (%):")
    else:
        print("Test result indicating probabilities (%) of occurrence in a group of results:")
    print(format_table(_as_percent(result["frequencies"])), end="")
    print(f"Largest deviation from exact values: {100.0 * result['max_abs_error']:.4f} %")
    return 0


def run_conf(table_path: str) -> int:
    """Interactive table editing; statements are read from standard input until `end`."""
    table = WeightedSet()
    if Path(table_path).is_file():
        loaded = load_table(table_path)
        _print_load_errors(loaded.errors)
        table = loaded.table
    if not table.is_empty:
        print("Existing configuration:")
        print(dump_table(table))

    answer = _ask_yes_no("Is it allowed to pick items repetitively?")
    if answer is not None:
        table.repetitive = answer
    answer = _ask_yes_no("Should the weight values be inverted (x -> 1/x)?")
    if answer is not None:
        table.inverted = answer

    print("Input items by line (or use ';' separator): <name> [=] <weight>")
    print("(name: letters, digits or '_'; weight: non-negative number)")
    print("delete an item with `delete <name>`, enter `end` to end input:")

    errors: List[str] = []
    for line in sys.stdin:
        if line.strip() == "end":
            break
        errors.extend(parse_table(line, table).errors)

    if errors:
        print("Sorry, part of your input is not recorded:")
        for e in errors:
            print(f"  {e}")

    print("\nNew configuration:")
    print(dump_table(table), end="")

    if table.reachable_count() == 0:
        print("Error: the table has no item with a positive weight.", file=sys.stderr)
        return 1
    if not save_table(table, table_path):
        print(f"Error: failed to save file {table_path!r}.", file=sys.stderr)
        return 1
    return 0


# ----------------------------
# Entry point
# ----------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Pick random items from a weight table.")
    parser.add_argument("operation", choices=["pick", "calc", "test", "conf"], help="Operation to run.")
    parser.add_argument("table_file", help="Path of the table file.")
    parser.add_argument("amount", nargs="?", type=int, default=1, help="Amount of items per pick. Default: 1.")
    parser.add_argument("-n", dest="know_nonuniform", action="store_true", help="Do not print the nonuniform warning.")
    parser.add_argument("-f", dest="fast_rng", action="store_true", help="Use the fast pseudo random generator instead of the OS random source.")
    parser.add_argument("--seed", type=int, default=None, help="Seed the random generator (reproducible output).")
    parser.add_argument("--workers", type=int, default=None, help=f"Workers for the probability calculation. Default: {S.WORKERS}.")
    parser.add_argument("--trials", type=int, default=None, help=f"Picks made by `test`. Default: {S.DEFAULT_TEST_TRIALS}.")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    if args.operation == "conf":
        return run_conf(args.table_file)

    req = PickRequest(
        table_path=args.table_file,
        amount=args.amount,
        fast_rng=args.fast_rng,
        seed=args.seed,
        workers=args.workers,
    )
    try:
        if args.operation == "pick":
            return run_pick(req, args.know_nonuniform)
        if args.operation == "calc":
            return run_calc(req)
        trials = S.DEFAULT_TEST_TRIALS if args.trials is None else args.trials
        return run_test(req, trials)
    except PickerServiceError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
