"""
picker.py

Programmatic boundary used by the command-line tool and the web app.

Picker wraps one WeightedSet; callers edit items and flags through
`picker.table` and every operation works on a fresh snapshot of it.
"""

from __future__ import annotations

import random
from typing import Dict, List, Optional

from picker.modules import settings as S
from picker.modules.inclusion_probability import exact_probabilities, group_inclusion_probabilities
from picker.modules.statistical_validator import empirical_frequencies, empirical_group_frequencies
from picker.modules.weighted_sampler import SequentialSampler, make_rng
from picker.modules.weighted_set import WeightedSet


class Picker:
    def __init__(
        self,
        table: WeightedSet,
        rng: Optional[random.Random] = None,
        workers: Optional[int] = None,
        seed: Optional[int] = None,
        source: Optional[str] = None,
    ):
        self.table = table
        self.seed = seed
        self.source = source
        self.rng = rng or make_rng(source, seed)
        self.workers = S.WORKERS if workers is None else workers

    def draw(self, amount: int) -> List[str]:
        """Pick `amount` item names (distinct unless the table is repetitive)."""
        return SequentialSampler(self.table.snapshot(), self.rng).draw_names(amount)

    def exact_probabilities(self, amount: int) -> Dict[str, float]:
        return exact_probabilities(self.table.snapshot(), amount, workers=self.workers)

    def group_probabilities(self, amount: int) -> Dict[str, float]:
        return group_inclusion_probabilities(self.table.snapshot(), amount, workers=self.workers)

    def validate(self, amount: int, trials: Optional[int] = None, group: bool = False) -> Dict[str, float]:
        """
        Empirical frequencies from `trials` picks.

        One worker draws from this picker's random source. More workers split
        the trials into process-pool chunks seeded from `self.seed`.
        group=True counts appearances per group (repetitive tables only differ).
        """
        n_trials = S.DEFAULT_TEST_TRIALS if trials is None else trials
        fn = empirical_group_frequencies if group else empirical_frequencies
        snap = self.table.snapshot()
        if self.workers > 1:
            return fn(snap, amount, n_trials, workers=self.workers, seed=self.seed, source=self.source)
        return fn(snap, amount, n_trials, rng=self.rng)


def pick(amount: int, table: WeightedSet, rng: Optional[random.Random] = None) -> List[str]:
    """Convenience wrapper for exactly one picking operation."""
    return Picker(table, rng=rng, workers=1).draw(amount)
