"""Per-attempt death analysis: normalize, detect the wipe call, classify."""

import logging

from wipecall.analysis.normalize import normalize_death_events
from wipecall.analysis.wipe_call import detect_wipe_call
from wipecall.config import AnalysisConfig
from wipecall.models import DeathAnalysis
from wipecall.sources import AttemptSource
from wipecall.wcl.models import AttemptEvents

logger = logging.getLogger(__name__)


def build_death_analysis(
    attempt_events: AttemptEvents,
    config: AnalysisConfig | None = None,
) -> DeathAnalysis:
    """Build the DeathAnalysis for one attempt from already-fetched data."""
    config = config or AnalysisConfig()
    attempt = attempt_events.attempt

    deaths = normalize_death_events(
        attempt_events.events,
        attempt.start_time,
        actors=attempt_events.actor_directory(),
        abilities=attempt_events.ability_directory(),
    )

    wipe_call_time = detect_wipe_call(
        deaths,
        attempt.duration_seconds,
        death_threshold=config.wipe_death_threshold,
        window_seconds=config.wipe_time_window,
        min_fight_fraction=config.wipe_min_fight_fraction,
    )

    classified = []
    after = 0
    for death in deaths:
        if wipe_call_time is not None and death.fight_time_seconds > wipe_call_time:
            death = death.model_copy(update={"is_after_wipe_call": True})
            after += 1
        classified.append(death)

    logger.debug(
        "Fight %d (%s): %d player deaths, wipe call at %s",
        attempt.id, attempt.name, len(classified), wipe_call_time,
    )

    return DeathAnalysis(
        attempt_id=attempt.id,
        attempt_name=attempt.name,
        total_deaths=len(classified),
        deaths_before_wipe_call=len(classified) - after,
        deaths_after_wipe_call=after,
        estimated_wipe_call_time=wipe_call_time,
        deaths=classified,
    )


async def analyze_attempt(
    source: AttemptSource,
    session_id: str,
    attempt_id: int,
    config: AnalysisConfig | None = None,
) -> DeathAnalysis:
    """Fetch one attempt's deaths and analyze them.

    Raises:
        AttemptNotFoundError: the source has no such attempt in the report.
    """
    attempt_events = await source.get_attempt_events(session_id, attempt_id)
    analysis = build_death_analysis(attempt_events, config)
    logger.info(
        "Analyzed fight %d in %s: %d deaths (%d before wipe call)",
        attempt_id, session_id, analysis.total_deaths,
        analysis.deaths_before_wipe_call,
    )
    return analysis
