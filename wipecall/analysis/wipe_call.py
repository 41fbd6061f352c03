from collections.abc import Sequence

from wipecall.analysis.constants import (
    WIPE_DEATH_THRESHOLD,
    WIPE_MIN_FIGHT_FRACTION,
    WIPE_TIME_WINDOW,
)
from wipecall.models import DeathEvent


def detect_wipe_call(
    deaths: Sequence[DeathEvent],
    fight_duration: float,
    *,
    death_threshold: int = WIPE_DEATH_THRESHOLD,
    window_seconds: float = WIPE_TIME_WINDOW,
    min_fight_fraction: float = WIPE_MIN_FIGHT_FRACTION,
) -> float | None:
    """Estimate when the raid gave up on an attempt.

    Slides a window of ``death_threshold`` consecutive deaths over the
    (already sorted) death list. The first window that spans at most
    ``window_seconds`` and starts strictly after ``min_fight_fraction`` of
    the fight marks the wipe call; its first death time is returned.

    Returns None when there are too few deaths or no window qualifies.
    """
    if len(deaths) < death_threshold:
        return None

    earliest_start = fight_duration * min_fight_fraction
    for i in range(len(deaths) - death_threshold + 1):
        window_start = deaths[i].fight_time_seconds
        window_end = deaths[i + death_threshold - 1].fight_time_seconds
        if window_end - window_start <= window_seconds and window_start > earliest_start:
            return window_start

    return None
