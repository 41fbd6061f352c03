"""Per-specialization DPS baselines from encounter character rankings."""

from collections.abc import Iterable, Mapping
from statistics import mean, median

from wipecall.models import SpecBaseline, SpecComparison
from wipecall.wcl.models import CharacterRanking


def spec_key(class_name: str, spec: str) -> str:
    return f"{class_name}-{spec}"


def spec_from_icon(icon: str | None) -> str | None:
    """WCL actor icons look like ``Mage-Frost``; a bare class icon has no spec."""
    if not icon or "-" not in icon:
        return None
    return icon


def compute_spec_baselines(
    rankings: Iterable[CharacterRanking],
) -> dict[str, SpecBaseline]:
    """Group rankings by ``Class-Spec`` into average/median DPS baselines.

    Rankings without a class, spec or amount are ignored.
    """
    samples: dict[str, list[float]] = {}
    for ranking in rankings:
        if not ranking.class_name or not ranking.spec or not ranking.amount:
            continue
        samples.setdefault(spec_key(ranking.class_name, ranking.spec), []).append(
            ranking.amount
        )

    return {
        key: SpecBaseline(
            average_dps=mean(values),
            median_dps=median(values),
            sample_size=len(values),
        )
        for key, values in samples.items()
    }


def compare_to_baseline(
    average_dps: float,
    spec: str | None,
    baselines: Mapping[str, SpecBaseline] | None,
) -> SpecComparison | None:
    if not spec or not baselines:
        return None
    baseline = baselines.get(spec)
    if baseline is None or baseline.average_dps <= 0 or baseline.median_dps <= 0:
        return None
    return SpecComparison(
        spec=spec,
        spec_average_dps=baseline.average_dps,
        spec_median_dps=baseline.median_dps,
        vs_average=average_dps / baseline.average_dps,
        vs_median=average_dps / baseline.median_dps,
        sample_size=baseline.sample_size,
    )
