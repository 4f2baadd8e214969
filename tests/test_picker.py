from __future__ import annotations

import pytest

from picker.modules.picker import Picker, pick
from picker.modules.weighted_sampler import AmountError, make_rng
from picker.modules.weighted_set import WeightedSet


def test_draw_returns_names(abc_table):
    p = Picker(abc_table, rng=make_rng(seed=1), workers=1)
    names = p.draw(2)
    assert len(names) == 2
    assert set(names) <= {"A", "B", "C"}
    assert len(set(names)) == 2
    assert p.draw(0) == []


def test_operations_follow_table_edits(abc_table):
    p = Picker(abc_table, rng=make_rng(seed=1), workers=1)
    assert p.exact_probabilities(1)["C"] == 0.5
    p.table.upsert("C", 0)
    assert p.exact_probabilities(1) == {"A": 0.5, "B": 0.5, "C": 0.0}
    p.table.repetitive = True
    assert len(p.draw(5)) == 5


def test_validate_uses_picker_rng(abc_table):
    a = Picker(abc_table, rng=make_rng(seed=8), workers=1).validate(1, trials=2_000)
    b = Picker(abc_table, rng=make_rng(seed=8), workers=1).validate(1, trials=2_000)
    assert a == b
    assert a["C"] == pytest.approx(0.5, abs=0.05)


def test_group_probabilities_repetitive():
    t = WeightedSet({"A": 1, "B": 1}, repetitive=True)
    p = Picker(t, workers=1)
    assert p.group_probabilities(2) == {"A": pytest.approx(0.75), "B": pytest.approx(0.75)}
    assert p.exact_probabilities(2) == {"A": 0.5, "B": 0.5}


def test_invalid_amount_fails_loudly(abc_table):
    with pytest.raises(AmountError):
        Picker(abc_table, workers=1).draw(4)
    with pytest.raises(AmountError):
        Picker(abc_table, workers=1).exact_probabilities(4)


def test_pick_convenience(abc_table):
    picks = pick(3, abc_table, rng=make_rng(seed=3))
    assert sorted(picks) == ["A", "B", "C"]


def test_validate_splits_trials_across_workers(letters_table):
    a = Picker(letters_table, workers=2, seed=31).validate(3, trials=20_000)
    b = Picker(letters_table, workers=2, seed=31).validate(3, trials=20_000)
    assert a == b
    exact = Picker(letters_table, workers=1).exact_probabilities(3)
    for name, p in exact.items():
        assert a[name] == pytest.approx(p, abs=0.02)
