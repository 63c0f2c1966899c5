"""Level curve tests: the game client derives levels from the same constants."""

import pytest

from bomber.progression.level_curve import compute_level, cumulative_xp_for_level, level_table, xp_for_level


class TestXpForLevel:
    def test_level_1_costs_150(self):
        assert xp_for_level(1) == 150

    def test_cost_grows_with_level(self):
        costs = [xp_for_level(n) for n in range(1, 20)]
        assert costs == sorted(costs)
        assert len(set(costs)) == len(costs)

    def test_custom_constants(self):
        assert xp_for_level(3, base=200, growth=1.0) == 600

    def test_level_zero_rejected(self):
        with pytest.raises(ValueError):
            xp_for_level(0)


class TestComputeLevel:
    def test_level_1_at_zero_xp(self):
        assert compute_level(0) == {"level": 1, "current_xp_in_level": 0, "xp_required_for_next_level": 150}

    def test_boundary_149_xp(self):
        """149 XP is still level 1."""
        result = compute_level(149)
        assert result["level"] == 1
        assert result["current_xp_in_level"] == 149

    def test_level_2_at_150_xp(self):
        result = compute_level(150)
        assert result["level"] == 2
        assert result["current_xp_in_level"] == 0
        assert result["xp_required_for_next_level"] == 300

    def test_level_3_at_450_xp(self):
        assert compute_level(449)["level"] == 2
        assert compute_level(450)["level"] == 3

    def test_invariants_hold_across_range(self):
        for xp in range(0, 20_000, 37):
            result = compute_level(xp)
            assert result["level"] >= 1
            assert 0 <= result["current_xp_in_level"] < result["xp_required_for_next_level"]
            assert cumulative_xp_for_level(result["level"]) + result["current_xp_in_level"] == xp

    def test_level_is_monotonic(self):
        levels = [compute_level(xp)["level"] for xp in range(0, 5000, 10)]
        assert levels == sorted(levels)

    def test_negative_xp_rejected(self):
        with pytest.raises(ValueError):
            compute_level(-1)


class TestLevelTable:
    def test_first_rows(self):
        table = level_table(3)
        assert table == [
            {"level": 1, "xp_required": 150, "cumulative": 0},
            {"level": 2, "xp_required": 300, "cumulative": 150},
            {"level": 3, "xp_required": 450, "cumulative": 450},
        ]

    def test_cumulative_matches_helper(self):
        for row in level_table(30):
            assert row["cumulative"] == cumulative_xp_for_level(row["level"])
