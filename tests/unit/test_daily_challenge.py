"""Daily challenge rotation and qualification tests."""

from datetime import date, timedelta

from bomber.challenges.daily import CROSSWIND_MIN_MPH, DriveStats, current_challenge, qualifies
from bomber.rewards.catalog import CHALLENGES, get_challenge


class TestRotation:
    def test_same_day_same_challenge(self):
        day = date(2026, 5, 17)
        assert current_challenge(day) is current_challenge(date(2026, 5, 17))

    def test_ten_consecutive_days_cover_catalog(self):
        start = date(2026, 1, 1)
        seen = [current_challenge(start + timedelta(days=i)).id for i in range(len(CHALLENGES))]
        assert sorted(seen) == sorted(c.id for c in CHALLENGES)

    def test_cycle_repeats(self):
        day = date(2026, 7, 4)
        assert current_challenge(day) is current_challenge(day + timedelta(days=len(CHALLENGES)))


class TestQualifies:
    def test_any_condition(self):
        challenge = get_challenge("day_bomber")
        assert qualifies(challenge, DriveStats(300))
        assert not qualifies(challenge, DriveStats(299))

    def test_out_of_bounds_never_counts(self):
        assert not qualifies(get_challenge("day_bomber"), DriveStats(350, in_bounds=False))

    def test_night(self):
        challenge = get_challenge("night_lights")
        assert qualifies(challenge, DriveStats(280, night_mode=True))
        assert not qualifies(challenge, DriveStats(320, night_mode=False))

    def test_headwind(self):
        challenge = get_challenge("into_the_wind")
        assert qualifies(challenge, DriveStats(270, wind=-3.0))
        assert not qualifies(challenge, DriveStats(270, wind=0.0))
        assert not qualifies(challenge, DriveStats(270, wind=8.0))

    def test_crosswind(self):
        challenge = get_challenge("crosswind_king")
        assert qualifies(challenge, DriveStats(290, crosswind=-CROSSWIND_MIN_MPH))
        assert not qualifies(challenge, DriveStats(290, crosswind=2.0))
