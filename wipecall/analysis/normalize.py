"""Turn raw WCL death events into an ordered list of player deaths."""

import logging
from collections.abc import Iterable, Mapping

from pydantic import ValidationError

from wipecall.analysis.constants import PLAYER_ACTOR_TYPE, UNKNOWN_DAMAGE
from wipecall.models import DeathEvent
from wipecall.utils import ms_to_seconds
from wipecall.wcl.models import Actor, RawDeathEvent

logger = logging.getLogger(__name__)


def resolve_ability_name(
    event: RawDeathEvent, abilities: Mapping[int, str] | None,
) -> str:
    """Inline ability name, then the ability directory, then UNKNOWN_DAMAGE."""
    if event.ability is not None and event.ability.name:
        return event.ability.name
    if abilities and event.killing_ability_game_id is not None:
        name = abilities.get(event.killing_ability_game_id)
        if name:
            return name
    return UNKNOWN_DAMAGE


def resolve_ability_id(event: RawDeathEvent) -> int | None:
    if event.killing_ability_game_id is not None:
        return event.killing_ability_game_id
    if event.ability is not None:
        return event.ability.guid
    return None


def _resolve_killer(
    event: RawDeathEvent, actors: Mapping[int, Actor] | None,
) -> str | None:
    if not actors or event.killer_id is None:
        return None
    killer = actors.get(event.killer_id)
    return killer.name if killer else None


def normalize_death_events(
    events: Iterable[dict],
    attempt_start: int,
    actors: Mapping[int, Actor] | None = None,
    abilities: Mapping[int, str] | None = None,
) -> list[DeathEvent]:
    """Parse raw death events for one attempt into sorted player deaths.

    Args:
        events: Raw event dicts from the WCL events API (dataType="Deaths").
        attempt_start: Attempt start timestamp (ms, report clock).
        actors: Actor directory (id -> Actor). Only victims that resolve to
            a Player actor are kept, so without a directory nothing is.
        abilities: Ability directory (game id -> name).

    Returns:
        DeathEvent list sorted by time since attempt start. Simultaneous
        deaths keep their upstream order.
    """
    deaths: list[DeathEvent] = []
    dropped = 0

    for raw in events:
        try:
            event = RawDeathEvent.model_validate(raw)
        except ValidationError:
            dropped += 1
            logger.debug("Dropping malformed death event: %r", raw)
            continue

        if event.type != "death":
            continue

        victim = actors.get(event.target_id) if actors and event.target_id is not None else None
        if victim is None or victim.type != PLAYER_ACTOR_TYPE:
            continue

        deaths.append(DeathEvent(
            timestamp=event.timestamp,
            player_name=victim.name,
            player_id=victim.id,
            killing_ability=resolve_ability_name(event, abilities),
            killing_ability_id=resolve_ability_id(event),
            killing_source=_resolve_killer(event, actors),
            fight_time_seconds=ms_to_seconds(event.timestamp - attempt_start),
        ))

    if dropped:
        logger.info("Dropped %d malformed death events", dropped)

    return sorted(deaths, key=lambda d: d.fight_time_seconds)
