from unittest.mock import AsyncMock, patch

import pytest

from wipecall.wcl.client import WCLAPIError


class TestCompareEndpoint:
    async def test_compare(self, client):
        resp = await client.post("/api/compare", json={
            "reportCodes": ["abc123"], "bossName": "patchwerk",
        })

        assert resp.status_code == 200
        data = resp.json()
        assert data["bossName"] == "patchwerk"
        assert data["totalAttempts"] == 3
        assert data["totalKills"] == 1
        assert data["totalWipes"] == 2
        assert data["averageDeathsBeforeWipe"] == 1.5
        assert [c["attemptNumber"] for c in data["comparisons"]] == [1, 2, 3]
        ranking = data["failAnalysis"]["playerRanking"]
        assert ranking[0]["playerName"] == "Lyro"
        assert ranking[0]["totalDeaths"] == 2
        assert ranking[0]["firstDeathCount"] == 2
        night = data["failAnalysis"]["criticalDeathsByNight"][0]
        assert night["date"] == "2026-01-15"
        assert night["sessionId"] == "abc123"

    async def test_snake_case_body_accepted(self, client):
        resp = await client.post("/api/compare", json={
            "report_codes": ["abc123"], "boss_name": "Patchwerk", "difficulty": 4,
        })
        assert resp.status_code == 200
        assert resp.json()["difficulty"] == 4

    async def test_too_many_reports(self, client):
        resp = await client.post("/api/compare", json={
            "reportCodes": ["a", "b", "c"], "bossName": "Patchwerk",
        })
        assert resp.status_code == 400
        assert "At most 2" in resp.json()["detail"]

    @pytest.mark.parametrize("body", [
        {"reportCodes": [], "bossName": "Patchwerk"},
        {"reportCodes": ["abc123"], "bossName": ""},
        {"bossName": "Patchwerk"},
    ])
    async def test_invalid_body(self, client, body):
        resp = await client.post("/api/compare", json=body)
        assert resp.status_code == 422

    async def test_unknown_report_gives_empty_comparison(self, client):
        resp = await client.post("/api/compare", json={
            "reportCodes": ["missing"], "bossName": "Patchwerk",
        })
        assert resp.status_code == 200
        assert resp.json()["totalAttempts"] == 0

    async def test_unexpected_error(self, client):
        with patch(
            "wipecall.api.routes.analysis.compare_across_sessions",
            new_callable=AsyncMock, side_effect=RuntimeError("kaboom"),
        ):
            resp = await client.post("/api/compare", json={
                "reportCodes": ["abc123"], "bossName": "Patchwerk",
            })
        assert resp.status_code == 500
        assert resp.json()["detail"] == "Internal server error"


class TestDPSEndpoint:
    async def test_dps(self, client, source):
        resp = await client.post("/api/dps", json={
            "reportCodes": ["abc123"], "bossName": "Patchwerk",
        })

        assert resp.status_code == 200
        data = resp.json()
        assert data["totalFights"] == 3
        assert data["averageFightDuration"] == pytest.approx(150)
        player = data["players"][0]
        assert player["name"] == "Lyro"
        assert player["averageDps"] == pytest.approx(80_000 / 450)
        assert player["fightCount"] == 3
        assert player["specComparison"]["vsAverage"] == pytest.approx(80_000 / 450 / 200)
        assert source.baseline_calls == [(1118, 4, "US")]

    async def test_time_window(self, client, source):
        resp = await client.post("/api/dps", json={
            "reportCodes": ["abc123"], "bossName": "Patchwerk",
            "startTime": 120, "endTime": 400,
        })

        assert resp.status_code == 200
        data = resp.json()
        assert data["timeFilter"] == {"start": 120, "end": 400}
        assert data["totalFights"] == 2
        assert [c[1] for c in source.table_calls] == [2, 3]

    @pytest.mark.parametrize("window", [
        {"startTime": 60, "endTime": 60},
        {"startTime": 90, "endTime": 30},
        {"startTime": -1},
        {"endTime": 0},
    ])
    async def test_invalid_window(self, client, window):
        resp = await client.post("/api/dps", json={
            "reportCodes": ["abc123"], "bossName": "Patchwerk", **window,
        })
        assert resp.status_code == 422

    async def test_too_many_reports(self, client):
        resp = await client.post("/api/dps", json={
            "reportCodes": ["a", "b", "c"], "bossName": "Patchwerk",
        })
        assert resp.status_code == 400


class TestFightDeathsEndpoint:
    async def test_deaths(self, client):
        resp = await client.get("/api/reports/abc123/fights/1/deaths")

        assert resp.status_code == 200
        data = resp.json()
        assert data["attemptId"] == 1
        assert data["totalDeaths"] == 6
        assert data["estimatedWipeCallTime"] == 52
        assert data["deathsBeforeWipeCall"] == 2
        assert data["deathsAfterWipeCall"] == 4
        assert [d["isAfterWipeCall"] for d in data["deaths"]] == [
            False, False, True, True, True, True,
        ]
        assert data["deaths"][0]["playerName"] == "Lyro"
        assert data["deaths"][0]["killingAbility"] == "Hateful Strike"

    async def test_unknown_fight(self, client):
        resp = await client.get("/api/reports/abc123/fights/99/deaths")
        assert resp.status_code == 404
        assert resp.json()["detail"] == "Fight 99 not found in report abc123"

    async def test_unknown_report(self, client):
        resp = await client.get("/api/reports/nope/fights/1/deaths")
        assert resp.status_code == 404

    async def test_upstream_error(self, client, source):
        source.get_attempt_events = AsyncMock(side_effect=WCLAPIError("rate limited"))
        resp = await client.get("/api/reports/abc123/fights/1/deaths")
        assert resp.status_code == 502
        assert "rate limited" in resp.json()["detail"]

    async def test_unexpected_error(self, client, source):
        source.failing.add(("abc123", 1))
        resp = await client.get("/api/reports/abc123/fights/1/deaths")
        assert resp.status_code == 500
