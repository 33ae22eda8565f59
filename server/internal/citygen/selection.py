"""
Deterministic subset selection.
Picks K distinct indices out of [0, N) with a seeded Fisher-Yates shuffle.
"""

import logging
import random
from typing import FrozenSet, List, Union

from . import seeds
from .errors import InvalidParameter

logger = logging.getLogger(__name__)


def _stream(seed_or_stream: Union[int, random.Random]) -> random.Random:
    if isinstance(seed_or_stream, random.Random):
        return seed_or_stream
    return seeds.seeded_random(seed_or_stream)


def shuffled_indices(population_size: int, seed_or_stream: Union[int, random.Random]) -> List[int]:
    """
    Return [0, N) shuffled in place by Fisher-Yates.

    Iterates i from N-1 down to 1 and swaps with j drawn uniformly in [0, i],
    consuming exactly N-1 draws.
    """
    if population_size < 0:
        raise InvalidParameter("population_size", population_size, "must not be negative")

    rng = _stream(seed_or_stream)
    indices = list(range(population_size))
    for i in range(population_size - 1, 0, -1):
        j = rng.randrange(i + 1)
        indices[i], indices[j] = indices[j], indices[i]
    return indices


def select(
    population_size: int, count: int, seed_or_stream: Union[int, random.Random]
) -> FrozenSet[int]:
    """
    Select count unique indices from [0, population_size).

    Args:
        population_size: N, must be >= 0
        count: Requested K; clamped to [0, N]
        seed_or_stream: Seed for a fresh stream, or a stream to draw from

    Returns:
        Frozen set of exactly clamp(count, 0, N) indices. No draws are made
        when the result is empty.
    """
    if population_size < 0:
        raise InvalidParameter("population_size", population_size, "must not be negative")

    k = max(0, min(count, population_size))
    if k != count:
        logger.debug("Selection count %d clamped to %d (population %d)", count, k, population_size)
    if k == 0:
        return frozenset()

    return frozenset(shuffled_indices(population_size, seed_or_stream)[:k])


def damage_count(total: int, probability: float, cap: int) -> int:
    """
    Number of buildings to damage: round(total * probability) clamped to
    [0, min(total, cap)].
    """
    requested = round(total * probability)
    limit = max(0, min(total, cap))
    count = max(0, min(requested, limit))
    if count != requested:
        logger.debug("Damage count %d exceeds cap, clamped to %d", requested, count)
    return count
