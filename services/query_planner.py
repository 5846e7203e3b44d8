"""
services/query_planner.py - List Query Planning

Turns raw list-endpoint parameters (page, pageSize, sortBy, keyword,
isPublic) into a validated ListQueryPlan: filters, a sort directive and
skip/limit. The plan says nothing about storage; repository.py translates
it into SQL or in-memory predicates.

Validation Rules:
    - page and pageSize must be positive integers (ints or plain ASCII digit strings)
    - sortBy must be one of SORT_KEYS (or the subset a resource allows)
    - isPublic filters only for the literal strings "true" and "false";
      any other value means "no visibility filter"

Errors are raised as QueryValidationError, a ValueError subclass carrying
a `kind` so the HTTP layer can report which rule failed.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, List, Mapping, Optional

from config import DEFAULT_PAGE, DEFAULT_PAGE_SIZE


# ==============================================================================
# ERRORS
# ==============================================================================

class ErrorKind(str, Enum):
    INVALID_PAGINATION = "InvalidPagination"
    UNKNOWN_SORT_KEY = "UnknownSortKey"


class QueryValidationError(ValueError):
    """Raised when list query parameters cannot be planned."""

    def __init__(self, kind: ErrorKind, message: str):
        super().__init__(message)
        self.kind = kind


# ==============================================================================
# SORTING
# ==============================================================================

class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class SortSpec:
    """Sort directive for query results."""
    field: str
    order: SortOrder = SortOrder.DESC


# Logical sort key -> single-field descending sort
SORT_KEYS = {
    "latest": SortSpec("created_at"),
    "mostLiked": SortSpec("like_count"),
    "mostCommented": SortSpec("comment_count"),
    "mostPosted": SortSpec("post_count"),
    "mostBadge": SortSpec("badge_count"),
}


# ==============================================================================
# FILTERING
# ==============================================================================

@dataclass(frozen=True)
class TextSearchFilter:
    """Case-insensitive substring match on a text field."""
    field: str
    pattern: str


@dataclass(frozen=True)
class BooleanFilter:
    """Exact match on a boolean field."""
    field: str
    value: bool


@dataclass(frozen=True)
class EqualityFilter:
    """Exact match on any field (used for scoping, e.g. posts of one group)."""
    field: str
    value: Any


@dataclass
class FilterSpec:
    """All active filters. Builder methods return self and skip empty values."""

    text_searches: List[TextSearchFilter] = field(default_factory=list)
    boolean_filters: List[BooleanFilter] = field(default_factory=list)
    equality_filters: List[EqualityFilter] = field(default_factory=list)

    def add_text_search(self, field_name: str, pattern: str) -> "FilterSpec":
        if pattern:
            self.text_searches.append(TextSearchFilter(field_name, pattern))
        return self

    def add_boolean(self, field_name: str, value: Optional[bool]) -> "FilterSpec":
        if value is not None:
            self.boolean_filters.append(BooleanFilter(field_name, value))
        return self

    def add_equality(self, field_name: str, value: Any) -> "FilterSpec":
        self.equality_filters.append(EqualityFilter(field_name, value))
        return self


# ==============================================================================
# REQUEST / PLAN / ENVELOPE
# ==============================================================================

@dataclass(frozen=True)
class ListQueryRequest:
    """Raw list parameters as they arrive from the query string."""
    page: Any = DEFAULT_PAGE
    page_size: Any = DEFAULT_PAGE_SIZE
    sort_key: str = "latest"
    keyword: str = ""
    visibility: Optional[str] = None


@dataclass(frozen=True)
class ListQueryPlan:
    """Normalized query: filters, sort and window."""
    page: int
    page_size: int
    sort: SortSpec
    filters: FilterSpec

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.page_size

    @property
    def limit(self) -> int:
        return self.page_size


@dataclass(frozen=True)
class PaginationEnvelope:
    """Pagination metadata returned alongside a page of results."""
    current_page: int
    total_pages: int
    total_item_count: int

    @classmethod
    def from_total(cls, plan: ListQueryPlan, total_item_count: int) -> "PaginationEnvelope":
        return cls(
            current_page=plan.page,
            total_pages=math.ceil(total_item_count / plan.page_size),
            total_item_count=total_item_count,
        )

    def to_dict(self) -> dict:
        return {
            "currentPage": self.current_page,
            "totalPages": self.total_pages,
            "totalItemCount": self.total_item_count,
        }


# ==============================================================================
# PARSING HELPERS
# ==============================================================================

def parse_positive_int(value: Any, name: str) -> int:
    """
    Parse a page-like parameter as a positive integer.

    Args:
        value: Raw value (int or a string of ASCII digits)
        name: Parameter name, used in the error message

    Returns:
        int: Parsed value (>= 1)

    Raises:
        QueryValidationError: If the value is missing, non-numeric or < 1
    """
    number = None
    if isinstance(value, int) and not isinstance(value, bool):
        number = value
    elif isinstance(value, str):
        digits = value.strip()
        if digits.isascii() and digits.isdigit():
            number = int(digits)

    if number is None or number < 1:
        raise QueryValidationError(
            ErrorKind.INVALID_PAGINATION,
            f"{name} must be a positive integer, got {value!r}"
        )
    return number


def parse_visibility(value: Optional[str]) -> Optional[bool]:
    """Only the exact strings "true"/"false" filter; anything else means no filter."""
    if value == "true":
        return True
    if value == "false":
        return False
    return None


# ==============================================================================
# PLANNER
# ==============================================================================

def plan_list_query(
        request: ListQueryRequest,
        *,
        search_field: str = "title",
        sort_keys: Iterable[str] = SORT_KEYS,
        scope: Optional[Mapping[str, Any]] = None,
) -> ListQueryPlan:
    """
    Validate list parameters and build a query plan.

    Args:
        request: Raw list parameters
        search_field: Field the keyword is matched against (name or title)
        sort_keys: Sort keys this resource accepts (subset of SORT_KEYS)
        scope: Equality filters always applied (e.g. {"group_id": 3})

    Returns:
        ListQueryPlan: Validated plan

    Raises:
        QueryValidationError: INVALID_PAGINATION or UNKNOWN_SORT_KEY
    """
    page = parse_positive_int(request.page, "page")
    page_size = parse_positive_int(request.page_size, "pageSize")

    allowed = [key for key in sort_keys if key in SORT_KEYS]
    if request.sort_key not in allowed:
        raise QueryValidationError(
            ErrorKind.UNKNOWN_SORT_KEY,
            f"Unknown sort key {request.sort_key!r}. Allowed: {', '.join(allowed)}"
        )

    filters = FilterSpec()
    for field_name, value in (scope or {}).items():
        filters.add_equality(field_name, value)
    filters.add_text_search(search_field, request.keyword or "")
    filters.add_boolean("is_public", parse_visibility(request.visibility))

    return ListQueryPlan(
        page=page,
        page_size=page_size,
        sort=SORT_KEYS[request.sort_key],
        filters=filters,
    )
