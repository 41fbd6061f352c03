"""Shared fixtures for API route tests."""

import pytest
from httpx import ASGITransport, AsyncClient

from tests.factories import (
    FakeSource,
    make_attempt,
    make_attempt_events,
    make_damage_table,
)
from wipecall.api.app import create_app
from wipecall.api.deps import get_app_settings, get_source
from wipecall.config import AnalysisConfig, Settings, WCLConfig
from wipecall.models import SpecBaseline
from wipecall.wcl.models import Session


@pytest.fixture
def settings():
    return Settings(
        wcl=WCLConfig(client_id="cid", client_secret="secret"),
        analysis=AnalysisConfig(max_reports=2),
    )


@pytest.fixture
def source():
    """One report with two Patchwerk wipes and a kill."""
    wipe1 = make_attempt(1, start_time=1_000_000, duration_s=100)
    wipe2 = make_attempt(2, start_time=2_000_000, duration_s=200)
    kill = make_attempt(3, start_time=3_000_000, duration_s=150, kill=True)
    session = Session(code="abc123", start_time=1_768_507_200_000, fights=[wipe1, wipe2, kill])
    return FakeSource(
        [session],
        events={
            ("abc123", 1): make_attempt_events(wipe1, [
                (20, 1, "Hateful Strike"),
                (52, 2, "Slime Bolt"),
                (53, 3, "Slime Bolt"),
                (54, 4, "Slime Bolt"),
                (55, 5, "Slime Bolt"),
                (56, 6, "Slime Bolt"),
            ]),
            ("abc123", 2): make_attempt_events(wipe2, [(30, 1, "Hateful Strike")]),
            ("abc123", 3): make_attempt_events(kill, []),
        },
        tables={
            ("abc123", 1): make_damage_table(wipe1, {"Lyro": 10_000}),
            ("abc123", 2): make_damage_table(wipe2, {"Lyro": 40_000}),
            ("abc123", 3): make_damage_table(kill, {"Lyro": 30_000}),
        },
        baselines={
            "Warrior-Arms": SpecBaseline(average_dps=200, median_dps=200, sample_size=5),
        },
    )


@pytest.fixture
def app(source, settings):
    app = create_app()
    app.dependency_overrides[get_source] = lambda: source
    app.dependency_overrides[get_app_settings] = lambda: settings
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
async def client(app):
    """Test client with DI overrides for the WCL source and settings."""
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac
