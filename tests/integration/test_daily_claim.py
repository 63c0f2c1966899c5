"""Daily challenge claim tests."""

from __future__ import annotations

from datetime import datetime, time, timezone

import pytest
import pytest_asyncio
from conftest import day_with_challenge
from sqlalchemy.ext.asyncio import AsyncSession

from bomber.challenges.daily import (
    ALREADY_CLAIMED,
    GRANTED,
    NOT_QUALIFIED,
    DriveStats,
    best_drive_on,
    challenge_status,
    claim,
)
from bomber.drives.schemas import DriveEvent
from bomber.leaderboard.service import record_drive
from bomber.progression.ledger import get_or_create_profile
from bomber.users.service import get_or_create_user

DAY = day_with_challenge("night_lights")
NOW = datetime.combine(DAY, time(21, 0), tzinfo=timezone.utc)


@pytest_asyncio.fixture
async def player(db_session: AsyncSession):
    user, _ = await get_or_create_user(db_session, "nightowl")
    await get_or_create_profile(db_session, user.id, now=NOW)
    await db_session.commit()
    return db_session, user.id


class TestClaim:
    @pytest.mark.asyncio
    async def test_granted_once(self, player, tuning):
        db, user_id = player
        stats = DriveStats(300, night_mode=True)

        first = await claim(db, user_id, DAY, stats, now=NOW, tuning=tuning)
        second = await claim(db, user_id, DAY, stats, now=NOW, tuning=tuning)

        assert first.status == GRANTED
        assert first.challenge.id == "night_lights"
        assert second.status == ALREADY_CLAIMED
        assert second.reward == first.reward
        profile = await get_or_create_profile(db, user_id)
        assert (profile.coins, profile.gems, profile.xp) == (60, 1, 35)

    @pytest.mark.asyncio
    async def test_condition_not_met(self, player, tuning):
        db, user_id = player
        result = await claim(db, user_id, DAY, DriveStats(350, night_mode=False), now=NOW, tuning=tuning)
        assert result.status == NOT_QUALIFIED
        status = await challenge_status(db, user_id, DAY)
        assert status["claimed"] is False

    @pytest.mark.asyncio
    async def test_no_drive(self, player, tuning):
        db, user_id = player
        result = await claim(db, user_id, DAY, None, now=NOW, tuning=tuning)
        assert result.status == NOT_QUALIFIED


class TestBestDriveOn:
    @pytest.mark.asyncio
    async def test_prefers_qualifying_drive_over_longest(self, player):
        db, user_id = player
        for distance, night in ((340, False), (290, True), (200, True)):
            drive = DriveEvent(distance=distance, ball_speed=160, launch_angle=12, night_mode=night)
            await record_drive(db, user_id, drive, driver_id="standard", ball_id="standard", now=NOW)

        best = await best_drive_on(db, user_id, DAY)
        assert best.distance == 290
        assert best.night_mode

    @pytest.mark.asyncio
    async def test_nothing_recorded(self, player):
        db, user_id = player
        assert await best_drive_on(db, user_id, DAY) is None
