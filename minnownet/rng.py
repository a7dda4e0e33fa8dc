"""Well-seeded random number generators."""

from __future__ import annotations

import random
import secrets

_SEED_BITS = 32 * 1024


def get_random_engine() -> random.Random:
    """A new generator seeded from the operating system's entropy source."""
    return random.Random(secrets.randbits(_SEED_BITS))