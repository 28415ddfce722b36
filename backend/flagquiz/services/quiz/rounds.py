import random
from typing import Optional, Sequence, Tuple

from .records import CountryRecord


def build_round_queue(
    records: Sequence[CountryRecord],
    count: int,
    rng: Optional[random.Random] = None,
) -> Tuple[CountryRecord, ...]:
    """Shuffle the dataset and keep the first `count` records.

    random.shuffle is a full Fisher-Yates pass, so every ordering is
    equally likely. The input sequence is never mutated.
    """
    rng = rng or random.Random()
    pool = list(records)
    rng.shuffle(pool)
    return tuple(pool[:max(0, count)])
