"""
settings.py

Single source of truth for picker tunables.
Random source, worker counts and tolerances are defined here and may be
overridden through environment variables. No other module reads the
environment directly.
"""

from __future__ import annotations

import os


def _env_int(key: str, default: int) -> int:
    raw = os.environ.get(key)
    if raw is None or raw.strip() == "":
        return default
    return int(raw)


def _env_float(key: str, default: float) -> float:
    raw = os.environ.get(key)
    if raw is None or raw.strip() == "":
        return default
    return float(raw)


# ============================================================
# RANDOM SOURCE
# ============================================================

RNG_OS = "os"       # secrets.SystemRandom (OS entropy)
RNG_FAST = "fast"   # random.Random (Mersenne Twister)

RNG_SOURCE = os.environ.get("PICKER_RNG", RNG_OS).strip().lower()


# ============================================================
# PARALLELISM
# ============================================================

WORKERS = _env_int("PICKER_WORKERS", os.cpu_count() or 1)

# Below this many reachable items the tree is walked inline.
PARALLEL_MIN_ITEMS = _env_int("PICKER_PARALLEL_MIN_ITEMS", 8)

# Seed stride between validation chunks when a base seed is given
CHUNK_SEED_STRIDE = 9973


# ============================================================
# VALIDATION
# ============================================================

DEFAULT_TEST_TRIALS = _env_int("PICKER_TEST_TRIALS", 1_000_000)

# Absolute tolerance for empirical frequency vs exact probability
CONVERGENCE_TOLERANCE = _env_float("PICKER_TOLERANCE", 0.005)

# Relative tolerance for sum(probabilities) == k
CONSERVATION_RTOL = 1e-9


# ============================================================
# WEB APP
# ============================================================

APP_TABLE_PATH = os.environ.get("PICKER_APP_TABLE", "table.txt")
