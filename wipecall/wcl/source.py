"""Warcraft Logs implementation of the attempt, damage-table and baseline sources."""

import json
import logging
from typing import Any, TypeVar

from pydantic import ValidationError

from wipecall.analysis.baselines import compute_spec_baselines
from wipecall.models import SpecBaseline
from wipecall.sources import AttemptNotFoundError, SessionNotFoundError
from wipecall.wcl.client import WCLClient
from wipecall.wcl.events import MAX_PAGES, fetch_all_events
from wipecall.wcl.models import (
    Ability,
    Actor,
    Attempt,
    AttemptEvents,
    CharacterRanking,
    DamageTable,
    DamageTableEntry,
    Session,
    WCLBaseModel,
)
from wipecall.wcl.queries import (
    ENCOUNTER_CHARACTER_RANKINGS,
    REPORT_DAMAGE_TABLE,
    REPORT_MASTER_DATA,
    REPORT_SESSION,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=WCLBaseModel)


def decode_json(raw: Any) -> Any:
    """WCL returns JSON scalars (tables, rankings) either decoded or as strings."""
    if isinstance(raw, str):
        return json.loads(raw)
    return raw


def parse_table_entries(raw: Any) -> list[dict]:
    """Extract entries from a table() payload of any of its observed shapes."""
    raw = decode_json(raw)
    if isinstance(raw, dict):
        if isinstance(raw.get("data"), dict):
            raw = raw["data"]
        return raw.get("entries") or []
    if isinstance(raw, list):
        return raw
    return []


def validate_each(model: type[ModelT], items: Any) -> list[ModelT]:
    """Validate a list of payload dicts, dropping the ones that do not fit."""
    valid = []
    for item in items or []:
        try:
            valid.append(model.model_validate(item))
        except ValidationError:
            logger.debug("Dropping malformed %s payload: %r", model.__name__, item)
    return valid


class WCLSource:
    """Pulls report metadata, death events, damage tables and rankings from WCL.

    Report metadata and master data are cached per instance, so one source
    should serve one comparison rather than live for the whole process.
    """

    def __init__(self, wcl: WCLClient, *, max_event_pages: int = MAX_PAGES) -> None:
        self._wcl = wcl
        self._max_event_pages = max_event_pages
        self._sessions: dict[str, Session] = {}
        self._master_data: dict[str, tuple[list[Actor], list[Ability]]] = {}

    async def get_session(self, session_id: str) -> Session:
        cached = self._sessions.get(session_id)
        if cached is not None:
            return cached

        raw = await self._wcl.query(REPORT_SESSION, variables={"code": session_id})
        report = (raw.get("reportData") or {}).get("report")
        if not report:
            raise SessionNotFoundError(session_id)

        session = Session.model_validate({"code": session_id, **report})
        self._sessions[session_id] = session
        logger.info(
            "Loaded report %s (%s): %d encounter fights",
            session_id, session.title, len(session.fights),
        )
        return session

    async def _get_attempt(self, session_id: str, attempt_id: int) -> Attempt:
        session = await self.get_session(session_id)
        attempt = session.find_attempt(attempt_id)
        if attempt is None:
            raise AttemptNotFoundError(session_id, attempt_id)
        return attempt

    async def _get_master_data(self, session_id: str) -> tuple[list[Actor], list[Ability]]:
        cached = self._master_data.get(session_id)
        if cached is not None:
            return cached

        raw = await self._wcl.query(REPORT_MASTER_DATA, variables={"code": session_id})
        report = (raw.get("reportData") or {}).get("report") or {}
        master = report.get("masterData") or {}
        result = (
            validate_each(Actor, master.get("actors")),
            validate_each(Ability, master.get("abilities")),
        )
        self._master_data[session_id] = result
        return result

    async def get_attempt_events(self, session_id: str, attempt_id: int) -> AttemptEvents:
        attempt = await self._get_attempt(session_id, attempt_id)
        actors, abilities = await self._get_master_data(session_id)

        events: list[dict] = []
        async for page in fetch_all_events(
            self._wcl, session_id, attempt.id,
            attempt.start_time, attempt.end_time, "Deaths",
            max_pages=self._max_event_pages,
        ):
            events.extend(page)

        return AttemptEvents(
            attempt=attempt, events=events, actors=actors, abilities=abilities,
        )

    async def get_damage_table(
        self,
        session_id: str,
        attempt_id: int,
        start_seconds: float | None = None,
        end_seconds: float | None = None,
    ) -> DamageTable:
        attempt = await self._get_attempt(session_id, attempt_id)

        # Window is relative to the pull; the API wants report timestamps
        start_ms = attempt.start_time
        if start_seconds is not None:
            start_ms += int(max(start_seconds, 0) * 1000)
        end_ms = attempt.end_time
        if end_seconds is not None:
            end_ms = min(attempt.start_time + int(end_seconds * 1000), attempt.end_time)

        raw = await self._wcl.query(REPORT_DAMAGE_TABLE, variables={
            "code": session_id,
            "fightIDs": [attempt.id],
            "startTime": start_ms,
            "endTime": end_ms,
        })
        report = (raw.get("reportData") or {}).get("report") or {}
        entries = validate_each(DamageTableEntry, parse_table_entries(report.get("table")))
        actors, _ = await self._get_master_data(session_id)

        return DamageTable(attempt=attempt, entries=entries, actors=actors)

    async def get_spec_baselines(
        self, encounter_id: int, difficulty: int | None, region: str,
    ) -> dict[str, SpecBaseline]:
        variables: dict[str, Any] = {"encounterID": encounter_id, "serverRegion": region}
        if difficulty is not None:
            variables["difficulty"] = difficulty

        raw = await self._wcl.query(ENCOUNTER_CHARACTER_RANKINGS, variables=variables)
        encounter = (raw.get("worldData") or {}).get("encounter") or {}
        payload = decode_json(encounter.get("characterRankings"))
        if isinstance(payload, dict):
            payload = payload.get("rankings")

        baselines = compute_spec_baselines(validate_each(CharacterRanking, payload))
        logger.info(
            "Loaded %d spec baselines for encounter %d (difficulty %s, %s)",
            len(baselines), encounter_id, difficulty, region,
        )
        return baselines
