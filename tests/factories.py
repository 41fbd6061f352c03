"""Builders for synthetic reports, attempts and death streams used across tests."""

from wipecall.models import DeathAnalysis, DeathEvent, FightComparison
from wipecall.sources import AttemptNotFoundError, SessionNotFoundError
from wipecall.wcl.models import (
    Ability,
    Actor,
    Attempt,
    AttemptEvents,
    DamageTable,
    DamageTableEntry,
    Session,
)

PLAYERS = {
    1: "Lyro",
    2: "Thrall",
    3: "Jaina",
    4: "Anduin",
    5: "Sylvanas",
    6: "Varian",
}
BOSS_ID = 50
PET_ID = 60

HATEFUL_STRIKE = 28308
SLIME_BOLT = 32309


def make_actors() -> list[Actor]:
    actors = [
        Actor(id=actor_id, name=name, type="Player", icon="Warrior-Arms")
        for actor_id, name in PLAYERS.items()
    ]
    actors.append(Actor(id=BOSS_ID, name="Patchwerk", type="NPC", sub_type="Boss"))
    actors.append(Actor(id=PET_ID, name="Wolf", type="Pet"))
    return actors


def make_abilities() -> list[Ability]:
    return [
        Ability(game_id=HATEFUL_STRIKE, name="Hateful Strike"),
        Ability(game_id=SLIME_BOLT, name="Slime Bolt"),
    ]


def make_attempt(
    attempt_id: int = 1,
    *,
    name: str = "Patchwerk",
    start_time: int = 1_000_000,
    duration_s: float = 100,
    kill: bool = False,
    encounter_id: int = 1118,
    difficulty: int | None = 4,
    fight_percentage: float | None = None,
    friendly_players: list[int] | None = None,
) -> Attempt:
    return Attempt(
        id=attempt_id,
        name=name,
        start_time=start_time,
        end_time=start_time + int(duration_s * 1000),
        kill=kill,
        encounter_id=encounter_id,
        difficulty=difficulty,
        fight_percentage=fight_percentage,
        friendly_players=friendly_players,
    )


def death_event(
    time_s: float,
    target_id: int,
    *,
    attempt_start: int = 1_000_000,
    ability: str | None = None,
    ability_id: int | None = None,
    killer_id: int | None = BOSS_ID,
    event_type: str = "death",
) -> dict:
    event = {
        "timestamp": attempt_start + int(time_s * 1000),
        "type": event_type,
        "sourceID": -1,
        "targetID": target_id,
        "fight": 1,
    }
    if killer_id is not None:
        event["killerID"] = killer_id
    if ability_id is not None:
        event["killingAbilityGameID"] = ability_id
    if ability is not None:
        event["ability"] = {"name": ability, "guid": ability_id or 0}
    return event


def make_attempt_events(
    attempt: Attempt,
    deaths: list[tuple[float, int, str]],
) -> AttemptEvents:
    """``deaths`` is a list of (seconds since pull, target actor id, ability name)."""
    return AttemptEvents(
        attempt=attempt,
        events=[
            death_event(t, target, attempt_start=attempt.start_time, ability=ability)
            for t, target, ability in deaths
        ],
        actors=make_actors(),
        abilities=make_abilities(),
    )


def make_death(
    player: str,
    time_s: float,
    ability: str = "Hateful Strike",
    *,
    after: bool = False,
    source: str | None = "Patchwerk",
) -> DeathEvent:
    return DeathEvent(
        timestamp=int(time_s * 1000),
        player_name=player,
        player_id=0,
        killing_ability=ability,
        killing_source=source,
        fight_time_seconds=time_s,
        is_after_wipe_call=after,
    )


def make_comparison(
    deaths: list[DeathEvent],
    *,
    session_id: str = "abc123",
    session_date: str = "2026-01-15",
    attempt_id: int = 1,
    attempt_number: int = 1,
    duration_s: float = 300,
    kill: bool = False,
    fight_percentage: float | None = None,
) -> FightComparison:
    after = sum(1 for d in deaths if d.is_after_wipe_call)
    return FightComparison(
        session_id=session_id,
        session_date=session_date,
        attempt_id=attempt_id,
        attempt_number=attempt_number,
        duration_seconds=duration_s,
        kill=kill,
        fight_percentage=fight_percentage,
        death_analysis=DeathAnalysis(
            attempt_id=attempt_id,
            attempt_name="Patchwerk",
            total_deaths=len(deaths),
            deaths_before_wipe_call=len(deaths) - after,
            deaths_after_wipe_call=after,
            deaths=deaths,
        ),
    )


def make_damage_table(
    attempt: Attempt, damage: dict[str, float], *, pets: dict[str, float] | None = None,
) -> DamageTable:
    entries = [
        DamageTableEntry(name=name, id=i, type="Warrior", icon="Warrior-Arms", total=total)
        for i, (name, total) in enumerate(damage.items(), start=1)
    ]
    for name, total in (pets or {}).items():
        entries.append(DamageTableEntry(name=name, id=PET_ID, type="Pet", total=total))
    return DamageTable(attempt=attempt, entries=entries)


class FakeSource:
    """In-memory attempt, damage-table and baseline source."""

    def __init__(
        self,
        sessions: list[Session],
        *,
        events: dict[tuple[str, int], AttemptEvents] | None = None,
        tables: dict[tuple[str, int], DamageTable] | None = None,
        baselines: dict | None = None,
        failing: set[tuple[str, int]] | None = None,
    ) -> None:
        self.sessions = {s.code: s for s in sessions}
        self.events = events or {}
        self.tables = tables or {}
        self.baselines = baselines
        self.failing = failing or set()
        self.table_calls: list[tuple[str, int, float | None, float | None]] = []
        self.baseline_calls: list[tuple[int, int | None, str]] = []

    async def get_session(self, session_id: str) -> Session:
        if session_id not in self.sessions:
            raise SessionNotFoundError(session_id)
        return self.sessions[session_id]

    async def get_attempt_events(self, session_id: str, attempt_id: int) -> AttemptEvents:
        if (session_id, attempt_id) in self.failing:
            raise RuntimeError("upstream exploded")
        if (session_id, attempt_id) not in self.events:
            raise AttemptNotFoundError(session_id, attempt_id)
        return self.events[(session_id, attempt_id)]

    async def get_damage_table(
        self, session_id, attempt_id, start_seconds=None, end_seconds=None,
    ) -> DamageTable:
        self.table_calls.append((session_id, attempt_id, start_seconds, end_seconds))
        if (session_id, attempt_id) in self.failing:
            raise RuntimeError("upstream exploded")
        return self.tables[(session_id, attempt_id)]

    async def get_spec_baselines(self, encounter_id, difficulty, region):
        self.baseline_calls.append((encounter_id, difficulty, region))
        if self.baselines is None:
            raise RuntimeError("rankings unavailable")
        return self.baselines
