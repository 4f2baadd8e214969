"""
table_format.py

Text format of weight tables (load / save / print).

Accepted input (one statement per line, ';' also separates statements):

    repetitive_picking          # bare flag, old format
    power_inversed              # bare flag, old format
    repetitive = true           # explicit flag, newer format
    inversed = false
    [items]                     # section headers are ignored
    oxygen 47
    silicon = 28
    delete silicon
    end                         # stops reading

Malformed statements are reported per line; everything valid is kept.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Mapping, Optional, Union

from picker.modules.weighted_set import ItemNameError, WeightedSet, WeightError

REPETITIVE_PICKING = "repetitive_picking"
POWER_INVERSED = "power_inversed"
REPETITIVE = "repetitive"
INVERSED = "inversed"
DELETE = "delete"
END_OF_INPUT = "end"

_TOKEN_SPLIT = re.compile(r"[\s=]+")
_BOOLS = {"true": True, "false": False}


@dataclass
class LoadResult:
    table: WeightedSet
    errors: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return len(self.errors) == 0


def _tokens(statement: str) -> List[str]:
    statement = statement.split("#", 1)[0]
    return [t for t in _TOKEN_SPLIT.split(statement.strip()) if t]


def parse_table(text: str, table: Optional[WeightedSet] = None) -> LoadResult:
    """
    Apply the statements in `text` to `table` (a new table if None).
    """
    result = LoadResult(table=table if table is not None else WeightedSet())
    tbl = result.table

    for lineno, line in enumerate(text.splitlines(), start=1):
        for statement in line.split(";"):
            tokens = _tokens(statement)
            if not tokens:
                continue

            head = tokens[0]
            if len(tokens) == 1:
                if head == END_OF_INPUT:
                    return result
                if head == REPETITIVE_PICKING:
                    tbl.repetitive = True
                elif head == POWER_INVERSED:
                    tbl.inverted = True
                elif not (head.startswith("[") and head.endswith("]")):
                    result.errors.append(f"line {lineno}: missing weight for {head!r}")
                continue

            if len(tokens) > 2:
                result.errors.append(f"line {lineno}: expected '<name> <weight>', got {statement.strip()!r}")
                continue

            key, value = tokens
            if key == DELETE:
                tbl.delete(value)
                continue

            if key in (REPETITIVE, INVERSED):
                flag = _BOOLS.get(value.lower())
                if flag is None:
                    result.errors.append(f"line {lineno}: {key} expects true/false, got {value!r}")
                elif key == REPETITIVE:
                    tbl.repetitive = flag
                else:
                    tbl.inverted = flag
                continue

            try:
                weight = float(value)
            except ValueError:
                result.errors.append(f"line {lineno}: weight {value!r} for {key!r} is not a number")
                continue

            try:
                tbl.upsert(key, weight)
            except (ItemNameError, WeightError) as e:
                result.errors.append(f"line {lineno}: {e}")

    return result


def load_table(path: Union[str, Path], table: Optional[WeightedSet] = None) -> LoadResult:
    text = Path(path).read_text(encoding="utf-8")
    return parse_table(text, table=table)


def dump_table(table: WeightedSet) -> str:
    """Serialise in the line format (flags first, then one item per line)."""
    lines: List[str] = []
    if table.repetitive:
        lines.append(REPETITIVE_PICKING)
    if table.inverted:
        lines.append(POWER_INVERSED)
    for item in table:
        lines.append(f"{item.name}\t\t{item.weight!r}")
    return "\n".join(lines) + "\n"


def save_table(table: WeightedSet, path: Union[str, Path]) -> bool:
    """Write the table file. An empty table is not saved (returns False)."""
    if table.is_empty:
        return False
    Path(path).write_text(dump_table(table), encoding="utf-8")
    return True


def format_table(values: Mapping[str, float], precision: int = 6) -> str:
    """Aligned 'name = value' lines sorted by name, for printing."""
    if not values:
        return ""
    width = max(len(k) for k in values)
    lines = [f"{k:>{width}} = {v:>{precision + 3}.{precision}f}" for k, v in sorted(values.items())]
    return "\n".join(lines) + "\n"
