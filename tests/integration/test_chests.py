"""Chest open and equipment ownership integration tests."""

from __future__ import annotations

import random
from datetime import datetime, timezone

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession

from bomber.errors import InsufficientFundsError, NotFoundError
from bomber.progression.ledger import credit_currency, enqueue_chest, get_or_create_profile
from bomber.progression.tuning import EconomyTuning
from bomber.rewards.catalog import Rarity, get_achievement
from bomber.rewards.chest_service import list_chests, open_chest
from bomber.rewards.equipment_service import (
    equip_item,
    grant_equipment,
    list_equipment,
    upgrade_cost,
    upgrade_equipment,
)
from bomber.users.service import get_or_create_user

NOW = datetime(2026, 3, 10, 18, 0, tzinfo=timezone.utc)


@pytest_asyncio.fixture
async def player(db_session: AsyncSession):
    user, _ = await get_or_create_user(db_session, "chesty")
    await get_or_create_profile(db_session, user.id, now=NOW)
    await db_session.commit()
    return db_session, user.id


class TestOpenChest:
    @pytest.mark.asyncio
    async def test_open_credits_contents(self, player, tuning):
        db, user_id = player
        chest = await enqueue_chest(db, user_id, "diamond", "test", now=NOW)

        opened = await open_chest(db, chest.id, now=NOW, rng=random.Random(42), tuning=tuning)

        profile = await get_or_create_profile(db, user_id)
        assert not opened.already_opened
        assert opened.chest.opened_at is not None
        earned = [get_achievement(a).reward for a in opened.new_achievements]
        assert profile.coins == opened.bundle.coins + sum(r.coins for r in earned)
        assert profile.gems == opened.bundle.gems + sum(r.gems for r in earned)
        assert profile.xp == opened.bundle.xp + sum(r.xp for r in earned)
        assert profile.chests_opened == 1
        owned = {(r.equipment_type, r.equipment_id) for r in await list_equipment(db, user_id)}
        for drop in opened.bundle.equipment:
            assert (drop.equipment_type, drop.equipment_id) in owned

    @pytest.mark.asyncio
    async def test_second_open_returns_stored_contents(self, player, tuning):
        db, user_id = player
        chest = await enqueue_chest(db, user_id, "gold", "test", now=NOW)
        first = await open_chest(db, chest.id, now=NOW, rng=random.Random(1), tuning=tuning)
        await db.commit()

        second = await open_chest(db, chest.id, now=NOW, rng=random.Random(2), tuning=tuning)

        assert second.already_opened
        assert second.bundle == first.bundle
        profile = await get_or_create_profile(db, user_id)
        bonus = sum(get_achievement(a).reward.coins for a in first.new_achievements)
        assert profile.coins == first.bundle.coins + bonus
        assert profile.chests_opened == 1
        assert second.new_achievements == []

    @pytest.mark.asyncio
    async def test_pending_list_shrinks_after_open(self, player, tuning):
        db, user_id = player
        a = await enqueue_chest(db, user_id, "bronze", "test", now=NOW)
        await enqueue_chest(db, user_id, "silver", "test", now=NOW)
        await open_chest(db, a.id, now=NOW, rng=random.Random(3), tuning=tuning)

        pending = await list_chests(db, user_id, pending_only=True)
        assert [c.chest_type for c in pending] == ["silver"]
        assert len(await list_chests(db, user_id)) == 2

    @pytest.mark.asyncio
    async def test_open_uses_configured_weights(self, player):
        db, user_id = player
        tuning = EconomyTuning(chest_rarity_weights={"diamond": {Rarity.EPIC: 1.0}})
        chest = await enqueue_chest(db, user_id, "diamond", "test", now=NOW)

        opened = await open_chest(db, chest.id, now=NOW, rng=random.Random(9), tuning=tuning)

        drops = opened.bundle.equipment + opened.bundle.duplicates
        assert [d.rarity for d in drops] == ["epic"]

    @pytest.mark.asyncio
    async def test_open_unlocks_collector(self, player, tuning):
        db, user_id = player
        await grant_equipment(db, user_id, "driver", "power_driver", NOW)
        await grant_equipment(db, user_id, "ball", "distance_ball", NOW)
        chest = await enqueue_chest(db, user_id, "bronze", "test", now=NOW)

        opened = await open_chest(db, chest.id, now=NOW, rng=random.Random(5), tuning=tuning)
        assert opened.new_achievements == ["collector"]
        await db.commit()

        again = await open_chest(db, chest.id, now=NOW, tuning=tuning)
        assert again.new_achievements == []

    @pytest.mark.asyncio
    async def test_tenth_open_unlocks_treasure_hunter(self, player, tuning):
        db, user_id = player
        profile = await get_or_create_profile(db, user_id, for_update=True)
        profile.chests_opened = 9
        chest = await enqueue_chest(db, user_id, "bronze", "test", now=NOW)

        opened = await open_chest(db, chest.id, now=NOW, rng=random.Random(6), tuning=tuning)

        assert "treasure_hunter" in opened.new_achievements
        assert profile.chests_opened == 10
        assert profile.gems >= 1

    @pytest.mark.asyncio
    async def test_unknown_chest(self, player):
        db, _ = player
        with pytest.raises(NotFoundError):
            await open_chest(db, 123456)

    @pytest.mark.asyncio
    async def test_other_players_chest_is_not_found(self, player):
        db, user_id = player
        chest = await enqueue_chest(db, user_id, "bronze", "test", now=NOW)
        with pytest.raises(NotFoundError):
            await open_chest(db, chest.id, user_id=user_id + 1)


class TestEquipment:
    @pytest.mark.asyncio
    async def test_repeat_grant_counts_duplicate(self, player):
        db, user_id = player
        row, is_new = await grant_equipment(db, user_id, "ball", "tour_ball", NOW)
        assert is_new
        row, is_new = await grant_equipment(db, user_id, "ball", "tour_ball", NOW)
        assert not is_new
        assert row.duplicates_owned == 1

    @pytest.mark.asyncio
    async def test_equip_requires_ownership(self, player):
        db, user_id = player
        with pytest.raises(NotFoundError):
            await equip_item(db, user_id, "driver", "titan_driver")

        await grant_equipment(db, user_id, "driver", "titan_driver", NOW)
        profile = await equip_item(db, user_id, "driver", "titan_driver")
        assert profile.equipped_driver_id == "titan_driver"

    @pytest.mark.asyncio
    async def test_upgrade_spends_duplicates_and_coins(self, player, tuning):
        db, user_id = player
        for _ in range(3):
            await grant_equipment(db, user_id, "driver", "standard", NOW)
        profile = await get_or_create_profile(db, user_id, for_update=True)
        credit_currency(profile, coins=upgrade_cost(1, tuning) + 5)

        row = await upgrade_equipment(db, user_id, "driver", "standard", tuning)

        assert row.level == 2
        assert row.duplicates_owned == 0
        assert profile.coins == 5

    @pytest.mark.asyncio
    async def test_upgrade_without_duplicates(self, player, tuning):
        db, user_id = player
        with pytest.raises(InsufficientFundsError):
            await upgrade_equipment(db, user_id, "driver", "standard", tuning)

    @pytest.mark.asyncio
    async def test_upgrade_without_coins_changes_nothing(self, player):
        db, user_id = player
        for _ in range(3):
            await grant_equipment(db, user_id, "ball", "standard", NOW)
        tuning = EconomyTuning(upgrade_coin_cost=100)
        with pytest.raises(InsufficientFundsError):
            await upgrade_equipment(db, user_id, "ball", "standard", tuning)
        rows = {r.equipment_id: r for r in await list_equipment(db, user_id) if r.equipment_type == "ball"}
        assert rows["standard"].level == 1
        assert rows["standard"].duplicates_owned == 3

