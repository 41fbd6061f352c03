"""Boss comparison, DPS and single-fight death analysis endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException

from wipecall.analysis.comparison import compare_across_sessions
from wipecall.analysis.dps import aggregate_dps
from wipecall.analysis.fight import analyze_attempt
from wipecall.api.deps import get_app_settings, get_source
from wipecall.api.models import CompareRequest, DPSRequest
from wipecall.config import Settings
from wipecall.models import BossComparison, DeathAnalysis, DPSReport
from wipecall.sources import NotFoundError
from wipecall.wcl.client import WCLAPIError
from wipecall.wcl.source import WCLSource

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


def _check_report_count(report_codes: list[str], settings: Settings) -> None:
    if len(report_codes) > settings.analysis.max_reports:
        raise HTTPException(
            status_code=400,
            detail=f"At most {settings.analysis.max_reports} reports can be compared",
        )


@router.post("/compare", response_model=BossComparison)
async def compare_boss(
    body: CompareRequest,
    source: WCLSource = Depends(get_source),
    settings: Settings = Depends(get_app_settings),
):
    _check_report_count(body.report_codes, settings)
    try:
        return await compare_across_sessions(
            source, body.report_codes, body.boss_name, body.difficulty,
            config=settings.analysis,
        )
    except Exception:
        logger.exception("Failed to compare %r across %s", body.boss_name, body.report_codes)
        raise HTTPException(status_code=500, detail="Internal server error") from None


@router.post("/dps", response_model=DPSReport)
async def boss_dps(
    body: DPSRequest,
    source: WCLSource = Depends(get_source),
    settings: Settings = Depends(get_app_settings),
):
    _check_report_count(body.report_codes, settings)
    try:
        return await aggregate_dps(
            source, body.report_codes, body.boss_name, body.difficulty,
            body.start_time, body.end_time,
            baseline_source=source,
            region=settings.analysis.baseline_region,
            baseline_difficulty=settings.analysis.baseline_difficulty,
        )
    except Exception:
        logger.exception("Failed to aggregate DPS for %r", body.boss_name)
        raise HTTPException(status_code=500, detail="Internal server error") from None


@router.get(
    "/reports/{report_code}/fights/{fight_id}/deaths",
    response_model=DeathAnalysis,
)
async def fight_deaths(
    report_code: str,
    fight_id: int,
    source: WCLSource = Depends(get_source),
    settings: Settings = Depends(get_app_settings),
):
    try:
        return await analyze_attempt(source, report_code, fight_id, settings.analysis)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from None
    except WCLAPIError as e:
        raise HTTPException(status_code=502, detail=f"Warcraft Logs error: {e}") from None
    except Exception:
        logger.exception("Failed to analyze fight %d in %s", fight_id, report_code)
        raise HTTPException(status_code=500, detail="Internal server error") from None
