"""
services - Domain Logic Package

Pure, storage-independent components used by the routers:
- badges: Group badge rule table and evaluator
- query_planner: Pagination/sort/filter planning for list endpoints
"""

from services.badges import (
    BADGE_RULES,
    BadgeRule,
    GroupStats,
    badge_catalog,
    evaluate_badges,
    longest_daily_streak,
    merge_badges,
)
from services.query_planner import (
    SORT_KEYS,
    ErrorKind,
    ListQueryPlan,
    ListQueryRequest,
    PaginationEnvelope,
    QueryValidationError,
    plan_list_query,
)

__all__ = [
    "BADGE_RULES",
    "BadgeRule",
    "GroupStats",
    "badge_catalog",
    "evaluate_badges",
    "longest_daily_streak",
    "merge_badges",
    "SORT_KEYS",
    "ErrorKind",
    "ListQueryPlan",
    "ListQueryRequest",
    "PaginationEnvelope",
    "QueryValidationError",
    "plan_list_query",
]
