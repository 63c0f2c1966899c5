"""Achievement evaluator tests: predicates and at-most-once unlocks."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
import pytest_asyncio
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from bomber.achievements.evaluator import (
    StatsSnapshot,
    evaluate,
    get_unlocked,
    qualifying_achievements,
)
from bomber.db.models import AchievementUnlock
from bomber.progression.ledger import get_or_create_profile
from bomber.users.service import get_or_create_user

NOW = datetime(2026, 3, 10, 18, 0, tzinfo=timezone.utc)


def _ids(achievements):
    return [a.id for a in achievements]


class TestQualifying:
    def test_nothing_for_a_new_player(self):
        assert qualifying_achievements(StatsSnapshot()) == []

    def test_first_drive(self):
        assert _ids(qualifying_achievements(StatsSnapshot(total_drives=1, last_distance=150))) == ["first_drive"]

    def test_century_drive_needs_this_drive_at_300(self):
        snapshot = StatsSnapshot(total_drives=2, best_distance=310, last_distance=280)
        assert "century_drive" not in _ids(qualifying_achievements(snapshot))
        snapshot = StatsSnapshot(total_drives=2, best_distance=310, last_distance=300)
        assert "century_drive" in _ids(qualifying_achievements(snapshot))

    def test_night_owl_needs_night_mode(self):
        day = StatsSnapshot(total_drives=1, last_distance=290)
        night = StatsSnapshot(total_drives=1, last_distance=290, last_night_mode=True)
        assert "night_owl" not in _ids(qualifying_achievements(day))
        assert "night_owl" in _ids(qualifying_achievements(night))

    def test_already_unlocked_are_skipped(self):
        snapshot = StatsSnapshot(total_drives=1, last_distance=100)
        assert qualifying_achievements(snapshot, already_unlocked=["first_drive"]) == []

    def test_collection_and_division(self):
        ids = _ids(qualifying_achievements(StatsSnapshot(equipment_owned=4, division_rank=2, xp=2000)))
        assert ids == ["silver_division", "gold_division", "collector"]


@pytest_asyncio.fixture
async def player(db_session: AsyncSession):
    user, _ = await get_or_create_user(db_session, "achiever")
    await get_or_create_profile(db_session, user.id, now=NOW)
    await db_session.commit()
    return db_session, user.id


class TestEvaluate:
    @pytest.mark.asyncio
    async def test_unlock_credits_reward(self, player, tuning):
        db, user_id = player
        snapshot = StatsSnapshot(total_drives=1, best_distance=305, last_distance=305)

        unlocked = await evaluate(db, user_id, snapshot, now=NOW, tuning=tuning)

        assert unlocked == ["first_drive", "century_drive"]
        profile = await get_or_create_profile(db, user_id)
        assert profile.coins == 75
        assert profile.gems == 1
        assert profile.xp == 35

    @pytest.mark.asyncio
    async def test_second_evaluation_grants_nothing(self, player, tuning):
        db, user_id = player
        snapshot = StatsSnapshot(total_drives=1, last_distance=100)
        assert await evaluate(db, user_id, snapshot, now=NOW, tuning=tuning) == ["first_drive"]
        assert await evaluate(db, user_id, snapshot, now=NOW, tuning=tuning) == []

        profile = await get_or_create_profile(db, user_id)
        assert profile.coins == 25

    @pytest.mark.asyncio
    async def test_stale_unlock_list_hits_unique_key(self, player, tuning):
        """A caller working from an outdated unlock list still cannot double-grant."""
        db, user_id = player
        snapshot = StatsSnapshot(total_drives=1, last_distance=100)
        await evaluate(db, user_id, snapshot, now=NOW, tuning=tuning)

        again = await evaluate(db, user_id, snapshot, already_unlocked=[], now=NOW, tuning=tuning)

        assert again == []
        count = await db.execute(
            select(func.count()).select_from(AchievementUnlock).where(AchievementUnlock.user_id == user_id)
        )
        assert count.scalar_one() == 1
        profile = await get_or_create_profile(db, user_id)
        assert profile.coins == 25

    @pytest.mark.asyncio
    async def test_unlocks_listed_in_order(self, player, tuning):
        db, user_id = player
        await evaluate(db, user_id, StatsSnapshot(total_drives=1, last_distance=100), now=NOW, tuning=tuning)
        await evaluate(db, user_id, StatsSnapshot(total_drives=1, current_streak=3), now=NOW, tuning=tuning)
        assert [u.achievement_id for u in await get_unlocked(db, user_id)] == ["first_drive", "hot_streak"]
