"""Fold many attempts' death analyses into a BossComparison.

``ComparisonAccumulator`` is the pure part: feed it FightComparisons in
processing order (report order, then attempt order) and call ``build()``.
``compare_across_sessions`` drives it from an AttemptSource.
"""

import logging
from bisect import bisect_right
from collections import defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from wipecall.analysis.constants import (
    CRITICAL_DEATHS_PER_ATTEMPT,
    DEADLY_COMBO_MIN_COUNT,
    DEADLY_COMBOS_LIMIT,
    FIRST_DEATHS_LIMIT,
    MOST_DEADLY_ABILITIES_LIMIT,
    PHASE_BUCKETS,
    PLAYER_ACTOR_TYPE,
)
from wipecall.analysis.fight import build_death_analysis
from wipecall.config import AnalysisConfig
from wipecall.models import (
    AbilityDeathCount,
    AbilityFailStats,
    BossComparison,
    CriticalDeath,
    DeadlyCombo,
    DeathEvent,
    FailAnalysis,
    FailedAttempt,
    FightComparison,
    FirstDeath,
    NightAttempt,
    NightCriticalDeaths,
    PhaseBucket,
    PlayerFailStats,
    PlayerSurvivalStats,
)
from wipecall.sources import AttemptSource, NotFoundError
from wipecall.utils import session_date
from wipecall.wcl.models import Attempt, AttemptEvents, Session

logger = logging.getLogger(__name__)

_PHASE_LOWER_BOUNDS = [lower for _, lower in PHASE_BUCKETS]


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def select_attempts(
    session: Session, boss_name: str, difficulty: int | None = None,
) -> list[Attempt]:
    """Attempts whose name contains ``boss_name`` (case-insensitive), in
    chronological order, optionally restricted to one difficulty."""
    needle = boss_name.lower()
    matching = [
        a for a in session.fights
        if needle in a.name.lower()
        and (difficulty is None or a.difficulty == difficulty)
    ]
    return sorted(matching, key=lambda a: a.start_time)


def phase_label(fight_time_seconds: float) -> str:
    """Histogram bucket for a death time. Negative times land in the first bucket."""
    index = max(bisect_right(_PHASE_LOWER_BOUNDS, fight_time_seconds) - 1, 0)
    return PHASE_BUCKETS[index][0]


@dataclass
class _SurvivalTally:
    present: int = 0
    survived: int = 0
    roster_known: bool = True
    death_times: list[float] = field(default_factory=list)
    before_times: list[float] = field(default_factory=list)
    after_times: list[float] = field(default_factory=list)
    durations: list[float] = field(default_factory=list)

    def to_stats(self, player_name: str) -> PlayerSurvivalStats:
        return PlayerSurvivalStats(
            player_name=player_name,
            total_fights_present=self.present,
            total_deaths=len(self.death_times),
            deaths_before_wipe_call=len(self.before_times),
            deaths_after_wipe_call=len(self.after_times),
            fights_survived_full=self.survived,
            average_survival_time=_mean(self.death_times),
            average_survival_time_before_wipe=_mean(self.before_times),
            average_survival_time_after_wipe=_mean(self.after_times),
            survival_times=self.death_times,
            survival_times_before_wipe=self.before_times,
            survival_times_after_wipe=self.after_times,
            fight_durations=self.durations,
            survival_rate=(self.survived / self.present * 100) if self.present else 0.0,
            roster_known=self.roster_known,
        )


class ComparisonAccumulator:
    """Collects analyzed attempts for one boss and builds the comparison."""

    def __init__(self) -> None:
        self._comparisons: list[FightComparison] = []
        self._rosters: list[list[str] | None] = []
        self._failed: list[FailedAttempt] = []

    def add(
        self, comparison: FightComparison, roster: Iterable[str] | None = None,
    ) -> None:
        """Record an analyzed attempt.

        Args:
            comparison: The attempt and its death analysis.
            roster: Names of players present in the attempt, when known.
                Without it, survival statistics treat every player seen in
                the comparison as present.
        """
        self._comparisons.append(comparison)
        self._rosters.append(list(roster) if roster is not None else None)

    def add_failure(self, session_id: str, attempt_id: int, error: str) -> None:
        self._failed.append(
            FailedAttempt(session_id=session_id, attempt_id=attempt_id, error=error)
        )

    def build(self, boss_name: str, difficulty: int | None = None) -> BossComparison:
        comparisons = self._comparisons

        player_deaths: dict[str, list[DeathEvent]] = {}
        first_death_counts: dict[str, int] = defaultdict(int)
        ability_kills: dict[str, list[DeathEvent]] = {}
        combo_counts: dict[tuple[str, str], int] = defaultdict(int)
        relevant_deaths: list[DeathEvent] = []
        first_deaths: list[FirstDeath] = []
        nights: dict[str, tuple[str, list[NightAttempt]]] = {}

        for comparison in comparisons:
            relevant = [
                d for d in comparison.death_analysis.deaths if not d.is_after_wipe_call
            ]

            _, night_attempts = nights.setdefault(
                comparison.session_id, (comparison.session_date, []),
            )
            night_attempts.append(_night_attempt(comparison, relevant))

            if not comparison.kill and relevant:
                first = relevant[0]
                first_deaths.append(FirstDeath(
                    player=first.player_name,
                    ability=first.killing_ability,
                    time=first.fight_time_seconds,
                    attempt=comparison.attempt_number,
                    date=comparison.session_date,
                ))
                first_death_counts[first.player_name] += 1

            for death in relevant:
                relevant_deaths.append(death)
                player_deaths.setdefault(death.player_name, []).append(death)
                ability_kills.setdefault(death.killing_ability, []).append(death)
                combo_counts[(death.player_name, death.killing_ability)] += 1

        total_attempts = len(comparisons)
        total_kills = sum(1 for c in comparisons if c.kill)
        wipes = [c for c in comparisons if not c.kill]

        most_deadly = sorted(
            (
                AbilityDeathCount(ability=name, death_count=len(kills))
                for name, kills in ability_kills.items()
            ),
            key=lambda a: a.death_count,
            reverse=True,
        )[:MOST_DEADLY_ABILITIES_LIMIT]

        survival_stats = _survival_stats(comparisons, self._rosters)
        all_samples = [t for s in survival_stats for t in s.survival_times]

        fail_analysis = FailAnalysis(
            player_ranking=_player_ranking(player_deaths, first_death_counts),
            ability_ranking=_ability_ranking(ability_kills),
            deadly_combos=_deadly_combos(combo_counts),
            deaths_by_phase=_phase_histogram(relevant_deaths),
            # Most recently processed first
            first_deaths=first_deaths[::-1][:FIRST_DEATHS_LIMIT],
            critical_deaths_by_night=[
                NightCriticalDeaths(
                    date=date,
                    session_id=session_id,
                    attempts=sorted(attempts, key=lambda a: a.attempt_number),
                )
                for session_id, (date, attempts) in nights.items()
            ],
            survival_stats=survival_stats,
            global_average_survival=_mean(all_samples),
        )

        return BossComparison(
            boss_name=boss_name,
            difficulty=difficulty,
            comparisons=comparisons,
            total_attempts=total_attempts,
            total_kills=total_kills,
            total_wipes=total_attempts - total_kills,
            average_deaths_before_wipe=_mean(
                [c.death_analysis.deaths_before_wipe_call for c in wipes]
            ),
            most_deadly_abilities=most_deadly,
            fail_analysis=fail_analysis,
            failed_attempts=self._failed,
        )


def _night_attempt(
    comparison: FightComparison, relevant: list[DeathEvent],
) -> NightAttempt:
    critical: list[CriticalDeath] = []
    if not comparison.kill:
        critical = [
            CriticalDeath(
                player=d.player_name,
                ability=d.killing_ability,
                source=d.killing_source or "",
                time=d.fight_time_seconds,
                death_number=rank,
            )
            for rank, d in enumerate(relevant[:CRITICAL_DEATHS_PER_ATTEMPT], start=1)
        ]
    return NightAttempt(
        attempt_number=comparison.attempt_number,
        fight_percentage=comparison.fight_percentage,
        kill=comparison.kill,
        critical_deaths=critical,
    )


def _count_by(deaths: list[DeathEvent], key) -> dict[str, int]:
    counts: dict[str, int] = {}
    for death in deaths:
        k = key(death)
        counts[k] = counts.get(k, 0) + 1
    return counts


def _player_ranking(
    player_deaths: dict[str, list[DeathEvent]],
    first_death_counts: dict[str, int],
) -> list[PlayerFailStats]:
    ranking = [
        PlayerFailStats(
            player_name=name,
            total_deaths=len(deaths),
            deaths_by_ability=_count_by(deaths, lambda d: d.killing_ability),
            average_death_time=_mean([d.fight_time_seconds for d in deaths]),
            first_death_count=first_death_counts.get(name, 0),
        )
        for name, deaths in player_deaths.items()
    ]
    return sorted(ranking, key=lambda p: p.total_deaths, reverse=True)


def _ability_ranking(
    ability_kills: dict[str, list[DeathEvent]],
) -> list[AbilityFailStats]:
    ranking = [
        AbilityFailStats(
            ability_name=name,
            total_kills=len(kills),
            player_victims=_count_by(kills, lambda d: d.player_name),
            average_kill_time=_mean([d.fight_time_seconds for d in kills]),
        )
        for name, kills in ability_kills.items()
    ]
    return sorted(ranking, key=lambda a: a.total_kills, reverse=True)


def _deadly_combos(combo_counts: dict[tuple[str, str], int]) -> list[DeadlyCombo]:
    combos = [
        DeadlyCombo(player=player, ability=ability, count=count)
        for (player, ability), count in combo_counts.items()
        if count >= DEADLY_COMBO_MIN_COUNT
    ]
    return sorted(combos, key=lambda c: c.count, reverse=True)[:DEADLY_COMBOS_LIMIT]


def _phase_histogram(deaths: list[DeathEvent]) -> list[PhaseBucket]:
    buckets: dict[str, list[DeathEvent]] = {label: [] for label, _ in PHASE_BUCKETS}
    for death in deaths:
        buckets[phase_label(death.fight_time_seconds)].append(death)
    return [
        PhaseBucket(
            phase=label,
            count=len(bucket),
            players=list(dict.fromkeys(d.player_name for d in bucket)),
        )
        for label, bucket in buckets.items()
        if bucket
    ]


def _survival_stats(
    comparisons: list[FightComparison],
    rosters: list[list[str] | None],
) -> list[PlayerSurvivalStats]:
    """Per-player survival over every attempt in the comparison.

    The population is every player with a death in any attempt, plus every
    rostered player. When an attempt has no roster, presence cannot be told
    apart from absence, so every player in the population counts as present.
    """
    population: dict[str, None] = {}
    for comparison, roster in zip(comparisons, rosters, strict=True):
        for death in comparison.death_analysis.deaths:
            population.setdefault(death.player_name)
        for name in roster or ():
            population.setdefault(name)

    tallies = {name: _SurvivalTally() for name in population}

    for comparison, roster in zip(comparisons, rosters, strict=True):
        deaths_by_player: dict[str, list[DeathEvent]] = {}
        for death in comparison.death_analysis.deaths:
            deaths_by_player.setdefault(death.player_name, []).append(death)

        if roster is None:
            present: Iterable[str] = population
        else:
            present = dict.fromkeys([*roster, *deaths_by_player])

        for name in present:
            tally = tallies[name]
            tally.present += 1
            tally.durations.append(comparison.duration_seconds)
            if roster is None:
                tally.roster_known = False

            deaths = deaths_by_player.get(name, [])
            if not deaths:
                tally.survived += 1
            for death in deaths:
                tally.death_times.append(death.fight_time_seconds)
                if death.is_after_wipe_call:
                    tally.after_times.append(death.fight_time_seconds)
                else:
                    tally.before_times.append(death.fight_time_seconds)

    stats = [tally.to_stats(name) for name, tally in tallies.items()]
    # Deathless players first, then longest average survival
    return sorted(
        stats,
        key=lambda s: (s.total_deaths == 0, s.average_survival_time),
        reverse=True,
    )


def _roster_names(attempt_events: AttemptEvents) -> list[str] | None:
    player_ids = attempt_events.attempt.friendly_players
    if player_ids is None:
        return None
    actors = attempt_events.actor_directory() or {}
    return [
        actors[actor_id].name
        for actor_id in player_ids
        if actor_id in actors and actors[actor_id].type == PLAYER_ACTOR_TYPE
    ]


async def compare_across_sessions(
    source: AttemptSource,
    session_ids: Iterable[str],
    boss_name: str,
    difficulty: int | None = None,
    config: AnalysisConfig | None = None,
) -> BossComparison:
    """Compare every attempt at one boss across several reports.

    Reports are processed in the given order (duplicates once), attempts in
    chronological order. A report that cannot be fetched or an attempt that
    fails to analyze is logged and skipped; the comparison is built from
    whatever could be analyzed.
    """
    accumulator = ComparisonAccumulator()

    for session_id in dict.fromkeys(session_ids):
        try:
            session = await source.get_session(session_id)
        except NotFoundError:
            logger.warning("Report %s not found, skipping", session_id)
            continue
        except Exception:
            logger.exception("Failed to fetch report %s, skipping", session_id)
            continue

        date = session_date(session.start_time)
        attempts = select_attempts(session, boss_name, difficulty)
        logger.info(
            "Report %s: found %d fights for %r", session_id, len(attempts), boss_name,
        )

        # Numbering is fixed up front: a failed attempt still uses its number
        for attempt_number, attempt in enumerate(attempts, start=1):
            try:
                attempt_events = await source.get_attempt_events(session_id, attempt.id)
                analysis = build_death_analysis(attempt_events, config)
            except Exception as exc:
                logger.exception(
                    "Failed to analyze fight %d in %s", attempt.id, session_id,
                )
                accumulator.add_failure(session_id, attempt.id, str(exc))
                continue

            accumulator.add(
                FightComparison(
                    session_id=session_id,
                    session_date=date,
                    attempt_id=attempt.id,
                    attempt_number=attempt_number,
                    duration_seconds=attempt.duration_seconds,
                    kill=attempt.kill,
                    fight_percentage=attempt.fight_percentage,
                    death_analysis=analysis,
                ),
                roster=_roster_names(attempt_events),
            )

    result = accumulator.build(boss_name, difficulty)
    logger.info(
        "Comparison for %r complete: %d attempts (%d kills), %d players, %d skipped",
        boss_name, result.total_attempts, result.total_kills,
        len(result.fail_analysis.survival_stats), len(result.failed_attempts),
    )
    return result
