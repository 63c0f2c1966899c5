"""HTTP API tests against a fresh app and database."""

from __future__ import annotations

import json
from datetime import date, datetime, time, timedelta, timezone

import pytest
from conftest import day_with_challenge, drive_payload
from fastapi import FastAPI
from httpx import AsyncClient

from bomber.dependencies import server_today
from bomber.drives.schemas import DriveEvent
from bomber.events import CHANNEL_ACHIEVEMENT, CHANNEL_CHEST_EARNED
from bomber.leaderboard.service import record_drive

API = "/api/bomber"


class TestCatalogEndpoints:
    @pytest.mark.asyncio
    async def test_levels(self, client: AsyncClient):
        response = await client.get(f"{API}/levels", params={"max_level": 3})
        assert response.status_code == 200
        assert [row["cumulative"] for row in response.json()["levels"]] == [0, 150, 450]

    @pytest.mark.asyncio
    async def test_divisions(self, client: AsyncClient):
        divisions = (await client.get(f"{API}/divisions")).json()["divisions"]
        assert [d["id"] for d in divisions] == ["bronze", "silver", "gold", "platinum", "diamond", "legend"]

    @pytest.mark.asyncio
    async def test_venues(self, client: AsyncClient):
        venues = (await client.get(f"{API}/venues")).json()["venues"]
        assert len(venues) == 6
        assert venues[0]["venue_id"] == "driving_range"
        assert venues[0]["min_division"] == "bronze"

    @pytest.mark.asyncio
    async def test_achievements(self, client: AsyncClient):
        achievements = (await client.get(f"{API}/achievements")).json()["achievements"]
        century = next(a for a in achievements if a["id"] == "century_drive")
        assert century["reward"] == {"coins": 50, "gems": 1, "xp": 25, "chest_type": "silver"}

    @pytest.mark.asyncio
    async def test_equipment(self, client: AsyncClient):
        data = (await client.get(f"{API}/equipment")).json()
        assert len(data["drivers"]) == 5
        assert len(data["balls"]) == 5
        assert data["drivers"][0]["rarity_color"] == "#9E9E9E"


class TestProfileEndpoints:
    @pytest.mark.asyncio
    async def test_new_profile(self, client: AsyncClient, make_user):
        user_id = await make_user("rookie")
        response = await client.get(f"{API}/profile/{user_id}")
        assert response.status_code == 200
        data = response.json()
        assert data["profile"]["xp"] == 0
        assert data["profile"]["level_info"]["level"] == 1
        assert data["profile"]["division"]["id"] == "bronze"
        assert data["profile"]["xp_to_next_division"] == 500
        assert {(e["equipment_type"], e["equipped"]) for e in data["equipment"]} == {("driver", True), ("ball", True)}
        assert data["pending_chests"] == []

    @pytest.mark.asyncio
    async def test_unknown_user(self, client: AsyncClient):
        response = await client.get(f"{API}/profile/999")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_venue_unlocks(self, client: AsyncClient, make_user):
        user_id = await make_user("explorer")
        data = (await client.get(f"{API}/venues/unlocks/{user_id}")).json()
        assert [v["venue_id"] for v in data["unlocked"]] == ["driving_range"]
        assert len(data["locked"]) == 5

    @pytest.mark.asyncio
    async def test_daily_reward_once(self, app: FastAPI, client: AsyncClient, make_user):
        app.dependency_overrides[server_today] = lambda: date(2026, 4, 1)
        user_id = await make_user("daily")
        first = await client.post(f"{API}/daily-reward/{user_id}")
        second = await client.post(f"{API}/daily-reward/{user_id}")
        assert first.status_code == 200
        assert first.json()["chest_type"] == "daily"
        assert second.status_code == 409
        assert second.json()["error"] == "AlreadyClaimedError"

    @pytest.mark.asyncio
    async def test_daily_reward_ignores_client_date(self, app: FastAPI, client: AsyncClient, make_user):
        app.dependency_overrides[server_today] = lambda: date(2026, 4, 1)
        user_id = await make_user("timetraveller")
        codes = []
        for day in ("2030-01-01", "2030-01-02", "2026-03-31"):
            response = await client.post(f"{API}/daily-reward/{user_id}", params={"day": day})
            codes.append(response.status_code)
        assert codes == [200, 409, 409]
        chests = (await client.get(f"{API}/chests/{user_id}")).json()["chests"]
        assert [c["chest_type"] for c in chests] == ["daily"]


class TestDriveEndpoint:
    @pytest.mark.asyncio
    async def test_submit_and_replay(self, client: AsyncClient, make_user):
        user_id = await make_user("driver")
        payload = drive_payload(300, client_drive_id="swing-1")

        response = await client.post(f"{API}/drives/{user_id}", json=payload)
        assert response.status_code == 200
        data = response.json()
        assert data["xp_gained"] == 40
        assert {"first_drive", "century_drive"} <= set(data["new_achievements"])
        assert data["new_rank"]["rank"] == 1
        assert data["new_rank"]["ranked"] is True
        assert data["profile"]["total_drives"] == 1
        assert data["replayed"] is False

        replay = (await client.post(f"{API}/drives/{user_id}", json=payload)).json()
        assert replay["replayed"] is True
        assert replay["xp_gained"] == 0
        assert replay["profile"]["xp"] == data["profile"]["xp"]

    @pytest.mark.asyncio
    async def test_implausible_drive(self, client: AsyncClient, make_user):
        user_id = await make_user("liar")
        response = await client.post(f"{API}/drives/{user_id}", json=drive_payload(700, carry=680))
        assert response.status_code == 422
        assert response.json()["error"] == "ValidationError"

    @pytest.mark.asyncio
    async def test_malformed_drive(self, client: AsyncClient, make_user):
        user_id = await make_user("typo")
        response = await client.post(f"{API}/drives/{user_id}", json=drive_payload(300, carry=100))
        assert response.status_code == 422
        assert response.json()["detail"] == "Validation error"

    @pytest.mark.asyncio
    async def test_venue_must_exist_and_be_unlocked(self, client: AsyncClient, make_user):
        user_id = await make_user("wanderer")
        unknown = await client.post(f"{API}/drives/{user_id}", json=drive_payload(300, venue_id="moon_base"))
        locked = await client.post(f"{API}/drives/{user_id}", json=drive_payload(300, venue_id="coastal_links"))
        assert (unknown.status_code, locked.status_code) == (422, 422)
        assert locked.json()["error"] == "ValidationError"

        board = (await client.get(f"{API}/leaderboard", params={"venue_id": "coastal_links"})).json()
        assert board["entries"] == []

    @pytest.mark.asyncio
    async def test_unowned_gear(self, client: AsyncClient, make_user):
        user_id = await make_user("borrower")
        response = await client.post(
            f"{API}/drives/{user_id}", json=drive_payload(300, ball_id="phantom_ball")
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_unknown_user(self, client: AsyncClient):
        response = await client.post(f"{API}/drives/31337", json=drive_payload(300))
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_events_published(self, client: AsyncClient, make_user, fake_redis):
        user_id = await make_user("broadcaster")
        data = (await client.post(f"{API}/drives/{user_id}", json=drive_payload(300))).json()

        channels = [channel for channel, _ in fake_redis.published]
        assert channels.count(CHANNEL_ACHIEVEMENT) == len(data["new_achievements"])
        assert channels.count(CHANNEL_CHEST_EARNED) == len(data["chests_earned"])
        first = json.loads(fake_redis.published[0][1])
        assert first["user_id"] == user_id


class TestRewardEndpoints:
    @pytest.mark.asyncio
    async def test_open_chest_twice(self, client: AsyncClient, make_user):
        user_id = await make_user("opener")
        chest = (await client.post(f"{API}/daily-reward/{user_id}")).json()

        pending = (await client.get(f"{API}/chests/{user_id}", params={"pending_only": True})).json()
        assert [c["chest_id"] for c in pending["chests"]] == [chest["chest_id"]]

        first = (await client.post(f"{API}/chests/{chest['chest_id']}/open")).json()
        second = (await client.post(f"{API}/chests/{chest['chest_id']}/open")).json()
        assert first["already_opened"] is False
        assert second["already_opened"] is True
        for key in ("coins", "gems", "xp", "equipment", "duplicates"):
            assert first[key] == second[key]

        profile = (await client.get(f"{API}/profile/{user_id}")).json()["profile"]
        assert profile["coins"] == first["coins"]
        assert profile["chests_opened"] == 1

    @pytest.mark.asyncio
    async def test_open_unknown_chest(self, client: AsyncClient):
        response = await client.post(f"{API}/chests/98765/open")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_owned_equipment(self, client: AsyncClient, make_user):
        user_id = await make_user("gearhead")
        data = (await client.get(f"{API}/equipment/{user_id}")).json()
        assert data["equipped_driver_id"] == "standard"
        assert len(data["items"]) == 2

    @pytest.mark.asyncio
    async def test_equip_unowned(self, client: AsyncClient, make_user):
        user_id = await make_user("wishful")
        response = await client.post(
            f"{API}/equipment/{user_id}/equip",
            json={"equipment_type": "driver", "equipment_id": "legend_driver"},
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_equip_bad_type(self, client: AsyncClient, make_user):
        user_id = await make_user("putter")
        response = await client.post(
            f"{API}/equipment/{user_id}/equip",
            json={"equipment_type": "putter", "equipment_id": "standard"},
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_upgrade_without_duplicates(self, client: AsyncClient, make_user):
        user_id = await make_user("impatient")
        response = await client.post(
            f"{API}/equipment/{user_id}/upgrade",
            json={"equipment_type": "driver", "equipment_id": "standard"},
        )
        assert response.status_code == 409
        assert response.json()["error"] == "InsufficientFundsError"


class TestLeaderboardEndpoints:
    @pytest.mark.asyncio
    async def test_board_and_rank(self, client: AsyncClient, make_user):
        long_id = await make_user("long", "Long Larry")
        short_id = await make_user("short")
        idle_id = await make_user("idle")
        await client.post(f"{API}/drives/{long_id}", json=drive_payload(340))
        await client.post(f"{API}/drives/{short_id}", json=drive_payload(260))

        board = (await client.get(f"{API}/leaderboard", params={"limit": 10})).json()
        assert [(e["display_name"], e["distance"]) for e in board["entries"]] == [("Long Larry", 340), ("short", 260)]

        rank = (await client.get(f"{API}/leaderboard/rank/{short_id}")).json()
        assert (rank["rank"], rank["total_ranked"], rank["ranked"]) == (2, 2, True)

        idle = (await client.get(f"{API}/leaderboard/rank/{idle_id}")).json()
        assert idle["ranked"] is False
        assert idle["rank"] is None

        personal = (await client.get(f"{API}/leaderboard/personal/{long_id}")).json()
        assert [d["distance"] for d in personal["drives"]] == [340]

    @pytest.mark.asyncio
    async def test_rank_unknown_user(self, client: AsyncClient):
        assert (await client.get(f"{API}/leaderboard/rank/5555")).status_code == 404


class TestAchievementAndChallengeEndpoints:
    @pytest.mark.asyncio
    async def test_user_achievements(self, client: AsyncClient, make_user):
        user_id = await make_user("collector")
        await client.post(f"{API}/drives/{user_id}", json=drive_payload(120))
        data = (await client.get(f"{API}/achievements/{user_id}")).json()
        assert [u["achievement_id"] for u in data["unlocked"]] == ["first_drive"]
        assert data["unlocked"][0]["name"] == "First Swing"
        assert data["total_available"] == 15

    @pytest.mark.asyncio
    async def test_challenge_status(self, client: AsyncClient, make_user):
        user_id = await make_user("curious")
        day = day_with_challenge("headwind_hero")
        data = (await client.get(f"{API}/daily-challenge/{user_id}", params={"day": day.isoformat()})).json()
        assert data["challenge"]["id"] == "headwind_hero"
        assert data["challenge"]["condition"] == "headwind"
        assert data["claimed"] is False

    @pytest.mark.asyncio
    async def test_claim_without_drives(self, app: FastAPI, client: AsyncClient, make_user):
        app.dependency_overrides[server_today] = lambda: date(2026, 2, 2)
        user_id = await make_user("lazy")
        response = await client.post(f"{API}/daily-challenge/{user_id}/claim")
        assert response.status_code == 200
        assert response.json()["active_date"] == "2026-02-02"
        assert response.json()["status"] == "not_qualified"
        assert response.json()["reward"] is None

    @pytest.mark.asyncio
    async def test_claim_uses_server_date(self, app: FastAPI, client: AsyncClient, make_user, session_factory):
        user_id = await make_user("backfiller")
        past = day_with_challenge("night_lights")
        async with session_factory() as db:
            drive = DriveEvent(distance=290, ball_speed=160, launch_angle=12, night_mode=True)
            await record_drive(
                db, user_id, drive, driver_id="standard", ball_id="standard",
                now=datetime.combine(past, time(21, 0), tzinfo=timezone.utc),
            )
            await db.commit()

        app.dependency_overrides[server_today] = lambda: past + timedelta(days=1)
        late = await client.post(f"{API}/daily-challenge/{user_id}/claim", params={"day": past.isoformat()})
        assert late.json()["active_date"] == (past + timedelta(days=1)).isoformat()
        assert late.json()["status"] == "not_qualified"

        app.dependency_overrides[server_today] = lambda: past
        on_time = await client.post(f"{API}/daily-challenge/{user_id}/claim")
        assert on_time.json()["status"] == "granted"
        assert on_time.json()["challenge"]["id"] == "night_lights"
