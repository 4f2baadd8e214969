"""Pytest session setup: repository root importable, shared tables."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from picker.modules.weighted_set import WeightedSet  # noqa: E402


@pytest.fixture
def abc_table() -> WeightedSet:
    return WeightedSet({"A": 1, "B": 1, "C": 2})


@pytest.fixture
def letters_table() -> WeightedSet:
    return WeightedSet({
        "a": 856, "b": 139, "c": 297, "d": 378, "e": 1304,
        "f": 289, "g": 199, "h": 528, "i": 627, "j": 13,
    })


@pytest.fixture
def table_file(tmp_path):
    path = tmp_path / "table.txt"
    path.write_text("A 1\nB 1\nC 2\n", encoding="utf-8")
    return path
