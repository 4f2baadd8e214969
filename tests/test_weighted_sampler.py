from __future__ import annotations

import random
import secrets

import pytest

from picker.modules.weighted_sampler import (
    AmountError,
    SequentialSampler,
    cumulative_grid,
    locate,
    make_rng,
    normalised,
)
from picker.modules.weighted_set import WeightedSet, WeightError


def test_cumulative_grid_shape():
    grid = cumulative_grid([1.0, 0.0, 2.0])
    assert grid == [0.0, 1.0, 1.0, 3.0]


def test_locate_maps_intervals_and_skips_zero_width_cells():
    grid = cumulative_grid([1.0, 0.0, 2.0])
    assert locate(grid, 0.0) == 0
    assert locate(grid, 0.999) == 0
    assert locate(grid, 1.0) == 2
    assert locate(grid, 2.5) == 2


def test_locate_boundary_maps_to_last_reachable_item():
    assert locate(cumulative_grid([1.0, 2.0]), 3.0) == 1
    # trailing zero-width item is never returned
    assert locate(cumulative_grid([1.0, 2.0, 0.0]), 3.0) == 1


def test_make_rng_sources():
    assert isinstance(make_rng("os"), secrets.SystemRandom)
    assert type(make_rng("fast")) is random.Random
    assert make_rng(seed=5).random() == make_rng("os", seed=5).random()
    with pytest.raises(ValueError):
        make_rng("dice")


def test_normalised():
    assert normalised({"a": 1, "b": 3}) == {"a": 0.25, "b": 0.75}
    with pytest.raises(WeightError):
        normalised({"a": 0})
    with pytest.raises(WeightError):
        normalised({})


def test_draw_without_replacement_returns_distinct_indices(abc_table):
    sampler = SequentialSampler(abc_table.snapshot(), make_rng(seed=1))
    for _ in range(500):
        picks = sampler.draw(3)
        assert sorted(picks) == [0, 1, 2]
        picks = sampler.draw(2)
        assert len(set(picks)) == 2


def test_draw_with_replacement_may_repeat_and_exceed_table_size():
    t = WeightedSet({"a": 1, "b": 1}, repetitive=True)
    picks = SequentialSampler(t.snapshot(), make_rng(seed=3)).draw(50)
    assert len(picks) == 50
    assert set(picks) == {0, 1}


def test_draw_amount_preconditions(abc_table):
    sampler = SequentialSampler(abc_table.snapshot(), make_rng(seed=1))
    assert sampler.draw(0) == []
    with pytest.raises(AmountError):
        sampler.draw(4)
    with pytest.raises(AmountError):
        sampler.draw(-1)
    assert len(sampler.draw(4, allow_replacement=True)) == 4


def test_zero_weight_item_is_never_drawn():
    t = WeightedSet({"A": 1, "B": 0})
    sampler = SequentialSampler(t.snapshot(), make_rng(seed=11))
    for _ in range(2000):
        assert sampler.draw_names(1) == ["A"]
    with pytest.raises(AmountError):
        sampler.draw(2)


def test_zero_total_width_yields_nothing():
    t = WeightedSet({"A": 0, "B": 0})
    sampler = SequentialSampler(t.snapshot(), make_rng(seed=1))
    assert sampler.draw(1) == []
    assert sampler.draw_names(2) == []


def test_seeded_draws_are_reproducible(abc_table):
    a = SequentialSampler(abc_table.snapshot(), make_rng(seed=42)).draw_names(2)
    b = SequentialSampler(abc_table.snapshot(), make_rng(seed=42)).draw_names(2)
    assert a == b

