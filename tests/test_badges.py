"""Unit tests for the badge rule table and evaluator."""

from datetime import date, datetime

from services.badges import (
    BADGE_RULES,
    BadgeRule,
    GroupStats,
    badge_catalog,
    evaluate_badges,
    longest_daily_streak,
    merge_badges,
)


class TestEvaluateBadges:
    def test_no_activity_earns_nothing(self):
        assert evaluate_badges(GroupStats()) == []

    def test_twenty_memories_earn_memory_badge(self):
        assert evaluate_badges(GroupStats(memory_count=20)) == ["memory-count-20"]

    def test_thresholds_are_inclusive_lower_bounds(self):
        assert evaluate_badges(GroupStats(memory_count=19)) == []
        assert evaluate_badges(GroupStats(memory_streak_days=6)) == []
        assert evaluate_badges(GroupStats(memory_streak_days=7)) == ["memory-streak-7"]
        assert evaluate_badges(GroupStats(space_received_bytes=9999)) == []
        assert evaluate_badges(GroupStats(like_count=10000)) == ["like-count-10000"]

    def test_all_badges_follow_rule_table_order(self):
        stats = GroupStats(
            memory_count=25,
            memory_streak_days=10,
            space_received_bytes=20000,
            like_count=12000,
        )
        assert evaluate_badges(stats) == [rule.badge_id for rule in BADGE_RULES]

    def test_same_input_gives_same_output(self):
        stats = GroupStats(memory_count=30, like_count=10000)
        assert evaluate_badges(stats) == evaluate_badges(stats)

    def test_mapping_input_accepts_camel_case(self):
        assert evaluate_badges({"memoryCount": 20, "likeCount": 3}) == ["memory-count-20"]

    def test_missing_or_malformed_fields_count_as_zero(self):
        assert evaluate_badges({"memory_count": "lots", "like_count": -5}) == []
        assert evaluate_badges({}) == []

    def test_non_stats_input_yields_empty_list(self):
        assert evaluate_badges(None) == []
        assert evaluate_badges("memory_count=20") == []

    def test_custom_rule_table(self):
        rules = (BadgeRule("first-like", lambda stats: stats.like_count >= 1),)
        assert evaluate_badges(GroupStats(like_count=1), rules) == ["first-like"]

    def test_duplicate_badge_ids_reported_once(self):
        rules = (
            BadgeRule("busy", lambda stats: stats.memory_count >= 1),
            BadgeRule("busy", lambda stats: stats.like_count >= 1),
        )
        assert evaluate_badges(GroupStats(memory_count=1, like_count=1), rules) == ["busy"]


class TestMergeBadges:
    def test_existing_badges_are_never_revoked(self):
        assert merge_badges(["like-count-10000"], []) == ["like-count-10000"]

    def test_new_badges_are_appended_once(self):
        merged = merge_badges(["memory-count-20"], ["memory-count-20", "memory-streak-7"])
        assert merged == ["memory-count-20", "memory-streak-7"]

    def test_none_existing(self):
        assert merge_badges(None, ["memory-count-20"]) == ["memory-count-20"]


def test_badge_catalog_lists_every_rule():
    catalog = badge_catalog()
    assert [entry["id"] for entry in catalog] == [
        "memory-count-20",
        "memory-streak-7",
        "space-received-10000",
        "like-count-10000",
    ]
    assert all(entry["description"] for entry in catalog)


class TestLongestDailyStreak:
    def test_empty(self):
        assert longest_daily_streak([]) == 0
        assert longest_daily_streak([None]) == 0

    def test_gaps_reset_the_run(self):
        days = [date(2024, 1, 1), date(2024, 1, 2), date(2024, 1, 4), date(2024, 1, 5), date(2024, 1, 6)]
        assert longest_daily_streak(days) == 3

    def test_same_day_counts_once_and_order_does_not_matter(self):
        moments = [
            datetime(2024, 3, 2, 18, 0),
            datetime(2024, 3, 1, 9, 0),
            datetime(2024, 3, 1, 21, 30),
        ]
        assert longest_daily_streak(moments) == 2

    def test_month_boundary(self):
        assert longest_daily_streak([date(2024, 1, 31), date(2024, 2, 1)]) == 2
