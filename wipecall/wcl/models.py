from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from wipecall.utils import ms_to_seconds


class WCLBaseModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class Attempt(WCLBaseModel):
    """One boss pull, as WCL reports it in ``report.fights``."""

    id: int
    name: str
    start_time: int
    end_time: int
    kill: bool = False
    encounter_id: int = Field(0, alias="encounterID")
    difficulty: int | None = None
    fight_percentage: float | None = None
    # Actor ids of the players present; absent on older reports
    friendly_players: list[int] | None = None

    @property
    def duration_seconds(self) -> float:
        return ms_to_seconds(self.end_time - self.start_time)


class Session(WCLBaseModel):
    """A WCL report: one logged raid night."""

    code: str
    title: str = ""
    start_time: int
    end_time: int = 0
    fights: list[Attempt] = []

    def find_attempt(self, attempt_id: int) -> Attempt | None:
        for attempt in self.fights:
            if attempt.id == attempt_id:
                return attempt
        return None


class Actor(WCLBaseModel):
    id: int
    name: str
    type: str
    sub_type: str | None = None
    icon: str | None = None


class Ability(WCLBaseModel):
    game_id: int = Field(alias="gameID")
    name: str


class InlineAbility(WCLBaseModel):
    name: str | None = None
    guid: int | None = None


class RawDeathEvent(WCLBaseModel):
    """Death event from ``events(dataType: Deaths)``; unknown keys are ignored."""

    timestamp: int
    type: str | None = None
    target_id: int | None = Field(None, alias="targetID")
    killer_id: int | None = Field(None, alias="killerID")
    killing_ability_game_id: int | None = Field(None, alias="killingAbilityGameID")
    ability: InlineAbility | None = None


class AttemptEvents(WCLBaseModel):
    """Raw death stream for one attempt plus the report's master data."""

    attempt: Attempt
    events: list[dict] = []
    actors: list[Actor] | None = None
    abilities: list[Ability] | None = None

    def actor_directory(self) -> dict[int, Actor] | None:
        if self.actors is None:
            return None
        return {actor.id: actor for actor in self.actors}

    def ability_directory(self) -> dict[int, str] | None:
        if self.abilities is None:
            return None
        return {ability.game_id: ability.name for ability in self.abilities}


class DamageTableEntry(WCLBaseModel):
    """Top-level entry from ``table(dataType: DamageDone)``, one per source actor."""

    name: str = ""
    id: int = 0
    type: str | None = None
    icon: str | None = None
    total: float = 0


class DamageTable(WCLBaseModel):
    attempt: Attempt
    entries: list[DamageTableEntry] = []
    actors: list[Actor] | None = None


class CharacterRanking(WCLBaseModel):
    """Individual entry from ``encounter.characterRankings``."""

    name: str = ""
    class_name: str = Field("", alias="class")
    spec: str = ""
    amount: float = 0
