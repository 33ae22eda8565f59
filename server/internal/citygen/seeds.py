"""
Seed utilities for deterministic procedural generation.

Every generation call builds its own stream with seeded_random(); streams are
passed explicitly and never stored at module level.
"""

import hashlib
import random


def seeded_random(seed: int) -> random.Random:
    """
    Create deterministic random number generator.

    Args:
        seed: Seed value

    Returns:
        Seeded Random instance
    """
    return random.Random(seed)


def _derive(*parts: int) -> int:
    # sha256 of the decimal parts keeps derived seeds stable across
    # interpreter versions (tuple hashing is not)
    key = ":".join(str(int(p)) for p in parts).encode("ascii")
    digest = hashlib.sha256(key).digest()
    return int.from_bytes(digest[:8], "big") % (2**31)


def facade_seed(city_seed: int, building_index: int) -> int:
    """
    Generate deterministic facade texture seed for a building.

    Args:
        city_seed: Seed used for the city layout
        building_index: Global building index assigned during layout

    Returns:
        Deterministic facade seed
    """
    return _derive(city_seed, building_index)
