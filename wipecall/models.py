"""Value objects produced by the analysis pipelines.

Everything here is frozen: aggregation builds running sums in plain dicts
and only constructs these models once a fold is finalized.
"""

from statistics import median

from pydantic import BaseModel, ConfigDict, computed_field, model_validator
from pydantic.alias_generators import to_camel


class AnalysisModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class DeathEvent(AnalysisModel):
    timestamp: int
    player_name: str
    player_id: int
    killing_ability: str
    killing_ability_id: int | None = None
    killing_source: str | None = None
    fight_time_seconds: float
    is_after_wipe_call: bool = False


class DeathAnalysis(AnalysisModel):
    attempt_id: int
    attempt_name: str
    total_deaths: int
    deaths_before_wipe_call: int
    deaths_after_wipe_call: int
    estimated_wipe_call_time: float | None = None
    deaths: list[DeathEvent] = []

    @model_validator(mode="after")
    def _check_counts(self):
        if self.deaths_before_wipe_call + self.deaths_after_wipe_call != self.total_deaths:
            raise ValueError("before + after wipe call deaths must equal total deaths")
        if self.total_deaths != len(self.deaths):
            raise ValueError("total_deaths must match the number of death events")
        return self


class FightComparison(AnalysisModel):
    session_id: str
    session_date: str
    attempt_id: int
    attempt_number: int
    duration_seconds: float
    kill: bool
    fight_percentage: float | None = None
    death_analysis: DeathAnalysis


class PlayerFailStats(AnalysisModel):
    player_name: str
    total_deaths: int
    deaths_by_ability: dict[str, int]
    average_death_time: float
    first_death_count: int


class AbilityFailStats(AnalysisModel):
    ability_name: str
    total_kills: int
    player_victims: dict[str, int]
    average_kill_time: float


class DeadlyCombo(AnalysisModel):
    player: str
    ability: str
    count: int


class PhaseBucket(AnalysisModel):
    phase: str
    count: int
    players: list[str]

    @computed_field
    @property
    def distinct_players(self) -> int:
        return len(self.players)


class FirstDeath(AnalysisModel):
    player: str
    ability: str
    time: float
    attempt: int
    date: str


class CriticalDeath(AnalysisModel):
    player: str
    ability: str
    source: str
    time: float
    death_number: int


class NightAttempt(AnalysisModel):
    attempt_number: int
    fight_percentage: float | None = None
    kill: bool
    critical_deaths: list[CriticalDeath] = []


class NightCriticalDeaths(AnalysisModel):
    date: str
    session_id: str
    attempts: list[NightAttempt] = []


class PlayerSurvivalStats(AnalysisModel):
    player_name: str
    total_fights_present: int
    total_deaths: int
    deaths_before_wipe_call: int
    deaths_after_wipe_call: int
    fights_survived_full: int
    average_survival_time: float
    average_survival_time_before_wipe: float
    average_survival_time_after_wipe: float
    survival_times: list[float]
    survival_times_before_wipe: list[float]
    survival_times_after_wipe: list[float]
    fight_durations: list[float]
    survival_rate: float
    # False when presence was inferred from death logs alone
    roster_known: bool

    @model_validator(mode="after")
    def _check_counts(self):
        if self.deaths_before_wipe_call + self.deaths_after_wipe_call != self.total_deaths:
            raise ValueError("before + after wipe call deaths must equal total deaths")
        return self

    @computed_field
    @property
    def median_survival_time(self) -> float:
        return median(self.survival_times) if self.survival_times else 0.0


class FailAnalysis(AnalysisModel):
    player_ranking: list[PlayerFailStats] = []
    ability_ranking: list[AbilityFailStats] = []
    deadly_combos: list[DeadlyCombo] = []
    deaths_by_phase: list[PhaseBucket] = []
    first_deaths: list[FirstDeath] = []
    critical_deaths_by_night: list[NightCriticalDeaths] = []
    survival_stats: list[PlayerSurvivalStats] = []
    global_average_survival: float = 0.0


class AbilityDeathCount(AnalysisModel):
    ability: str
    death_count: int


class FailedAttempt(AnalysisModel):
    session_id: str
    attempt_id: int
    error: str


class BossComparison(AnalysisModel):
    boss_name: str
    difficulty: int | None = None
    comparisons: list[FightComparison] = []
    total_attempts: int = 0
    total_kills: int = 0
    total_wipes: int = 0
    average_deaths_before_wipe: float = 0.0
    most_deadly_abilities: list[AbilityDeathCount] = []
    fail_analysis: FailAnalysis = FailAnalysis()
    failed_attempts: list[FailedAttempt] = []


class SpecBaseline(AnalysisModel):
    average_dps: float
    median_dps: float
    sample_size: int


class SpecComparison(AnalysisModel):
    spec: str
    spec_average_dps: float
    spec_median_dps: float
    vs_average: float
    vs_median: float
    sample_size: int


class PlayerDPSStats(AnalysisModel):
    name: str
    spec: str | None = None
    average_dps: float
    median_dps: float
    min_dps: float
    max_dps: float
    total_damage: float
    total_time: float
    fight_count: int
    consistency: int
    spec_comparison: SpecComparison | None = None


class TimeFilter(AnalysisModel):
    start: float | None = None
    end: float | None = None


class DPSReport(AnalysisModel):
    boss_name: str
    difficulty: int | None = None
    total_fights: int = 0
    average_fight_duration: float = 0.0
    time_filter: TimeFilter = TimeFilter()
    global_average_dps: float = 0.0
    players: list[PlayerDPSStats] = []
