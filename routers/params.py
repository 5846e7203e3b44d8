"""
routers/params.py - Shared Query Parameters

FastAPI dependency that collects the list-endpoint query string into a
ListQueryRequest. Values are taken as raw strings so the query planner,
not FastAPI, decides what is valid (and reports it as InvalidPagination
or UnknownSortKey).
"""

from typing import Optional

from fastapi import Query

from config import DEFAULT_PAGE, DEFAULT_PAGE_SIZE
from services.query_planner import ListQueryRequest


def list_query_request(
        page: str = Query(str(DEFAULT_PAGE), description="Page number (1-based)"),
        page_size: str = Query(str(DEFAULT_PAGE_SIZE), alias="pageSize", description="Items per page"),
        sort_by: str = Query("latest", alias="sortBy", description="Sort key"),
        keyword: str = Query("", description="Case-insensitive substring search"),
        is_public: Optional[str] = Query(
            None,
            alias="isPublic",
            description="'true' or 'false' to filter by visibility; anything else is ignored"
        ),
) -> ListQueryRequest:
    return ListQueryRequest(
        page=page,
        page_size=page_size,
        sort_key=sort_by,
        keyword=keyword,
        visibility=is_public,
    )
