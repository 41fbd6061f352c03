"""Interfaces of the data sources the analysis pipelines pull from.

The analysis code only depends on these protocols; ``wipecall.wcl.source``
provides the Warcraft Logs implementation.
"""

from typing import Protocol

from wipecall.models import SpecBaseline
from wipecall.wcl.models import AttemptEvents, DamageTable, Session


class WipecallError(Exception):
    """Base class for analysis errors."""


class NotFoundError(WipecallError, LookupError):
    """A session or attempt could not be located by its identifier."""


class SessionNotFoundError(NotFoundError):
    def __init__(self, session_id: str) -> None:
        super().__init__(f"Report {session_id} not found")
        self.session_id = session_id


class AttemptNotFoundError(NotFoundError):
    def __init__(self, session_id: str, attempt_id: int) -> None:
        super().__init__(f"Fight {attempt_id} not found in report {session_id}")
        self.session_id = session_id
        self.attempt_id = attempt_id


class AttemptSource(Protocol):
    async def get_session(self, session_id: str) -> Session:
        """Return report metadata; raise SessionNotFoundError if unknown."""
        ...

    async def get_attempt_events(
        self, session_id: str, attempt_id: int,
    ) -> AttemptEvents:
        """Return the death stream and master data for one attempt.

        Raises AttemptNotFoundError when the attempt does not exist.
        """
        ...


class DamageTableSource(Protocol):
    async def get_session(self, session_id: str) -> Session:
        ...

    async def get_damage_table(
        self,
        session_id: str,
        attempt_id: int,
        start_seconds: float | None = None,
        end_seconds: float | None = None,
    ) -> DamageTable:
        """Return the DamageDone table, optionally restricted to a window
        expressed in seconds since the attempt started."""
        ...


class SpecBaselineSource(Protocol):
    async def get_spec_baselines(
        self, encounter_id: int, difficulty: int | None, region: str,
    ) -> dict[str, SpecBaseline]:
        """Return per ``Class-Spec`` DPS baselines for an encounter."""
        ...
