"""
services/badges.py - Group Badge Rules

Badges are achievement markers a group earns once its aggregate activity
crosses a fixed threshold. The rules live in a table (BADGE_RULES) and are
evaluated in order on every call:

    memory-count-20        20 or more memories posted
    memory-streak-7        memories posted on 7 consecutive days
    space-received-10000   10000 bytes or more of images received
    like-count-10000       10000 or more group likes

Adding a badge means adding one BadgeRule to the table. Nothing else in the
application needs to change.

The evaluator is a pure function: it never touches the database and never
raises. Persisting the result is the caller's job (see crud.refresh_group_badges).
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Callable, Iterable, List, Mapping, Optional, Union

logger = logging.getLogger(__name__)


# ==============================================================================
# GROUP STATISTICS
# ==============================================================================

def _non_negative_int(value: Any) -> int:
    """Coerce a raw aggregate to an int >= 0 (anything unusable counts as zero)."""
    if isinstance(value, bool):
        return 0
    try:
        number = int(value)
    except (TypeError, ValueError):
        return 0
    return number if number > 0 else 0


@dataclass(frozen=True)
class GroupStats:
    """
    Aggregate statistics for a group, computed fresh for each evaluation.

    Attributes:
        memory_count (int): Number of memories (posts) in the group
        memory_streak_days (int): Longest run of consecutive posting days
        space_received_bytes (int): Total bytes of images attached to memories
        like_count (int): Likes the group has received
    """
    memory_count: int = 0
    memory_streak_days: int = 0
    space_received_bytes: int = 0
    like_count: int = 0

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "GroupStats":
        """
        Build stats from a loose mapping (e.g. a JSON body).

        Both snake_case and camelCase keys are accepted. Missing, non-numeric
        or negative values are treated as zero.
        """
        def pick(snake: str, camel: str) -> int:
            return _non_negative_int(data.get(snake, data.get(camel, 0)))

        return cls(
            memory_count=pick("memory_count", "memoryCount"),
            memory_streak_days=pick("memory_streak_days", "memoryStreakDays"),
            space_received_bytes=pick("space_received_bytes", "spaceReceivedBytes"),
            like_count=pick("like_count", "likeCount"),
        )


# ==============================================================================
# RULE TABLE
# ==============================================================================

@dataclass(frozen=True)
class BadgeRule:
    """A single (predicate, badge id) pair."""
    badge_id: str
    predicate: Callable[[GroupStats], bool]
    description: str = ""


BADGE_RULES = (
    BadgeRule(
        "memory-count-20",
        lambda stats: stats.memory_count >= 20,
        "Posted 20 or more memories",
    ),
    BadgeRule(
        "memory-streak-7",
        lambda stats: stats.memory_streak_days >= 7,
        "Posted memories 7 days in a row",
    ),
    BadgeRule(
        "space-received-10000",
        lambda stats: stats.space_received_bytes >= 10000,
        "Received 10000 bytes of memory images",
    ),
    BadgeRule(
        "like-count-10000",
        lambda stats: stats.like_count >= 10000,
        "Received 10000 group likes",
    ),
)


# ==============================================================================
# EVALUATION
# ==============================================================================

def evaluate_badges(
        stats: Union[GroupStats, Mapping[str, Any], None],
        rules: Iterable[BadgeRule] = BADGE_RULES,
) -> List[str]:
    """
    Return the badge ids a group qualifies for.

    Every rule is checked on every call. The result follows rule-table order
    and contains each badge id at most once, so identical input always gives
    identical output.

    Args:
        stats: GroupStats, or a mapping of aggregate fields
        rules: Rule table to evaluate (defaults to BADGE_RULES)

    Returns:
        list[str]: Earned badge ids; empty if stats is missing or malformed
    """
    if isinstance(stats, Mapping):
        stats = GroupStats.from_mapping(stats)
    elif not isinstance(stats, GroupStats):
        logger.warning(f"Invalid group stats for badge evaluation: {type(stats).__name__}")
        return []

    earned = []
    for rule in rules:
        if rule.badge_id not in earned and rule.predicate(stats):
            earned.append(rule.badge_id)
    return earned


def merge_badges(existing: Optional[Iterable[str]], earned: Iterable[str]) -> List[str]:
    """
    Combine stored badges with newly earned ones.

    Badges are never revoked: anything already stored is kept, in its
    original order, and new badges are appended.
    """
    return list(dict.fromkeys([*(existing or []), *earned]))


def badge_catalog(rules: Iterable[BadgeRule] = BADGE_RULES) -> List[dict]:
    """Describe every badge in the rule table."""
    return [{"id": rule.badge_id, "description": rule.description} for rule in rules]


# ==============================================================================
# STREAKS
# ==============================================================================

def longest_daily_streak(moments: Iterable[Union[date, datetime, None]]) -> int:
    """
    Longest run of consecutive calendar days found in `moments`.

    Several moments on the same day count once. None values are ignored.

    >>> longest_daily_streak([date(2024, 1, 1), date(2024, 1, 2), date(2024, 1, 4)])
    2
    """
    days = sorted({
        moment.date() if isinstance(moment, datetime) else moment
        for moment in moments
        if moment is not None
    })
    if not days:
        return 0

    longest = current = 1
    for previous, day in zip(days, days[1:]):
        if day - previous == timedelta(days=1):
            current += 1
            longest = max(longest, current)
        else:
            current = 1
    return longest
