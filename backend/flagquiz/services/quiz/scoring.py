from .records import ROUND_DURATION_SEC


# (elapsed seconds strictly below, points awarded)
POINT_BANDS = (
    (5, 5),
    (8, 4),
    (11, 3),
    (15, 2),
)
MIN_POINTS = 1


def points(seconds_remaining: int) -> int:
    """Points for a correct answer given with `seconds_remaining` on the clock.

    Faster answers score more: 5 points inside the first five seconds,
    dropping one point per band down to 1. Timeouts never reach here.
    """
    if not 0 <= seconds_remaining <= ROUND_DURATION_SEC:
        raise ValueError(f'seconds_remaining must be within [0, {ROUND_DURATION_SEC}], got {seconds_remaining}')
    elapsed = ROUND_DURATION_SEC - seconds_remaining
    for limit, awarded in POINT_BANDS:
        if elapsed < limit:
            return awarded
    return MIN_POINTS
