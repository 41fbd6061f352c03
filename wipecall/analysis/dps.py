"""DPS aggregation over repeated attempts at one boss, with optional time window."""

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from statistics import median, pstdev

from wipecall.analysis.baselines import compare_to_baseline, spec_from_icon
from wipecall.analysis.comparison import select_attempts
from wipecall.analysis.constants import NON_PLAYER_TABLE_TYPES
from wipecall.models import DPSReport, PlayerDPSStats, SpecBaseline, TimeFilter
from wipecall.sources import DamageTableSource, NotFoundError, SpecBaselineSource
from wipecall.wcl.models import Attempt, DamageTable

logger = logging.getLogger(__name__)


def effective_duration(
    fight_duration: float,
    start_seconds: float | None = None,
    end_seconds: float | None = None,
) -> float:
    """Length of the requested window that overlaps the attempt, in seconds.

    Can be zero or negative when the window lies outside the attempt.
    """
    window_end = fight_duration if end_seconds is None else min(end_seconds, fight_duration)
    window_start = 0.0 if start_seconds is None else max(start_seconds, 0.0)
    return window_end - window_start


def consistency_score(samples: Sequence[float], average: float) -> int:
    """``round((1 - stddev / average) * 100)``, clamped to 0..100.

    A single sample is perfectly consistent.
    """
    if len(samples) <= 1:
        return 100
    spread = pstdev(samples)
    if average <= 0:
        return 100 if spread == 0 else 0
    return max(0, min(100, round((1 - spread / average) * 100)))


@dataclass
class _PlayerDamage:
    total_damage: float = 0
    total_time: float = 0
    fight_count: int = 0
    dps_by_fight: list[float] = field(default_factory=list)
    spec: str | None = None

    def to_stats(
        self, name: str, baselines: Mapping[str, SpecBaseline] | None,
    ) -> PlayerDPSStats:
        average = self.total_damage / self.total_time if self.total_time > 0 else 0.0
        return PlayerDPSStats(
            name=name,
            spec=self.spec,
            average_dps=average,
            median_dps=median(self.dps_by_fight),
            min_dps=min(self.dps_by_fight),
            max_dps=max(self.dps_by_fight),
            total_damage=self.total_damage,
            total_time=self.total_time,
            fight_count=self.fight_count,
            consistency=consistency_score(self.dps_by_fight, average),
            spec_comparison=compare_to_baseline(average, self.spec, baselines),
        )


class DPSAccumulator:
    """Accumulates damage tables for one boss into per-player DPS stats."""

    def __init__(
        self,
        start_seconds: float | None = None,
        end_seconds: float | None = None,
    ) -> None:
        self.start_seconds = start_seconds
        self.end_seconds = end_seconds
        self._players: dict[str, _PlayerDamage] = {}
        self._fight_count = 0
        self._total_duration = 0.0

    def window_for(self, attempt: Attempt) -> float:
        return effective_duration(
            attempt.duration_seconds, self.start_seconds, self.end_seconds,
        )

    def add(self, table: DamageTable) -> bool:
        """Fold one attempt's damage table. Returns False if it was skipped."""
        duration = self.window_for(table.attempt)
        if duration <= 0:
            logger.debug(
                "Skipping fight %d: time window leaves %.1fs",
                table.attempt.id, duration,
            )
            return False

        self._fight_count += 1
        self._total_duration += duration
        actors = {a.id: a for a in table.actors or []}

        for entry in table.entries:
            if not entry.name or entry.type in NON_PLAYER_TABLE_TYPES:
                continue
            player = self._players.setdefault(entry.name, _PlayerDamage())
            player.total_damage += entry.total
            player.total_time += duration
            player.fight_count += 1
            player.dps_by_fight.append(entry.total / duration)
            if player.spec is None:
                actor = actors.get(entry.id)
                player.spec = spec_from_icon(entry.icon) or spec_from_icon(
                    actor.icon if actor else None
                )
        return True

    def build(
        self,
        boss_name: str,
        difficulty: int | None = None,
        baselines: Mapping[str, SpecBaseline] | None = None,
    ) -> DPSReport:
        players = sorted(
            (p.to_stats(name, baselines) for name, p in self._players.items()),
            key=lambda p: p.average_dps,
            reverse=True,
        )
        global_average = (
            sum(p.average_dps for p in players) / len(players) if players else 0.0
        )
        return DPSReport(
            boss_name=boss_name,
            difficulty=difficulty,
            total_fights=self._fight_count,
            average_fight_duration=(
                self._total_duration / self._fight_count if self._fight_count else 0.0
            ),
            time_filter=TimeFilter(start=self.start_seconds, end=self.end_seconds),
            global_average_dps=global_average,
            players=players,
        )


async def aggregate_dps(
    source: DamageTableSource,
    session_ids: Iterable[str],
    boss_name: str,
    difficulty: int | None = None,
    start_seconds: float | None = None,
    end_seconds: float | None = None,
    *,
    baseline_source: SpecBaselineSource | None = None,
    region: str = "US",
    baseline_difficulty: int | None = None,
) -> DPSReport:
    """Per-player DPS across every matching attempt in the given reports.

    Reports or attempts that fail to load are logged and skipped. When a
    baseline source is given, player averages are compared against the
    spec baselines for the first matched attempt's encounter.
    """
    accumulator = DPSAccumulator(start_seconds, end_seconds)
    reference: Attempt | None = None

    for session_id in dict.fromkeys(session_ids):
        try:
            session = await source.get_session(session_id)
        except NotFoundError:
            logger.warning("Report %s not found, skipping", session_id)
            continue
        except Exception:
            logger.exception("Failed to fetch report %s, skipping", session_id)
            continue

        for attempt in select_attempts(session, boss_name, difficulty):
            if reference is None:
                reference = attempt
            if accumulator.window_for(attempt) <= 0:
                continue
            try:
                table = await source.get_damage_table(
                    session_id, attempt.id, start_seconds, end_seconds,
                )
            except Exception:
                logger.exception(
                    "Failed to fetch DPS for fight %d in %s", attempt.id, session_id,
                )
                continue
            accumulator.add(table)

    baselines = None
    if baseline_source is not None and reference is not None and reference.encounter_id > 0:
        enc_difficulty = (
            baseline_difficulty if baseline_difficulty is not None else reference.difficulty
        )
        try:
            baselines = await baseline_source.get_spec_baselines(
                reference.encounter_id, enc_difficulty, region,
            )
        except Exception:
            logger.exception(
                "Failed to fetch spec baselines for encounter %d",
                reference.encounter_id,
            )

    report = accumulator.build(boss_name, difficulty, baselines)
    logger.info(
        "DPS for %r: %d fights, %d players, window %s-%s",
        boss_name, report.total_fights, len(report.players),
        start_seconds, end_seconds,
    )
    return report
