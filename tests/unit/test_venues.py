"""Venue unlock tests."""

from bomber.progression.venues import is_unlocked, unlocked_venues
from bomber.rewards.catalog import get_venue


def _ids(venues):
    return [v.venue_id for v in venues]


class TestVenueUnlocks:
    def test_new_player_has_driving_range_only(self):
        assert _ids(unlocked_venues(0, 0, 0)) == ["driving_range"]

    def test_silver_and_drive_count(self):
        assert _ids(unlocked_venues(500, 25, 250)) == ["driving_range", "coastal_links", "desert_canyon"]

    def test_best_distance_gate(self):
        alpine = get_venue("alpine_ridge")
        assert not is_unlocked(alpine, 2000, 0, 299)
        assert is_unlocked(alpine, 2000, 0, 300)

    def test_everything_open_for_a_legend(self):
        assert len(unlocked_venues(60000, 1000, 400)) == 6
