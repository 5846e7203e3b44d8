"""
repository.py - Storage Adapters for List Queries

A ListQueryPlan (services/query_planner.py) describes filters, sort and
window in storage-neutral terms. The adapters here execute it:

    SQLAlchemyRepository  - translates the plan into a SQLAlchemy query
    InMemoryRepository    - same semantics over a list of dicts

Both expose the Repository interface: insert, find, count_matching and
find_page (find + count wrapped with a PaginationEnvelope).
"""

import logging
from typing import Any, List, Optional, Protocol, Tuple, Type

from sqlalchemy import func
from sqlalchemy.orm import Session

from services.query_planner import (
    FilterSpec,
    ListQueryPlan,
    PaginationEnvelope,
    SortOrder,
    SortSpec,
)

logger = logging.getLogger(__name__)


class Repository(Protocol):
    """Storage interface consumed by the list endpoints."""

    def insert(self, record: Any) -> Any: ...

    def find(
            self,
            filters: FilterSpec,
            sort: Optional[SortSpec] = None,
            skip: int = 0,
            limit: Optional[int] = None,
    ) -> List[Any]: ...

    def count_matching(self, filters: FilterSpec) -> int: ...

    def find_page(self, plan: ListQueryPlan) -> Tuple[List[Any], PaginationEnvelope]: ...


class _PagingMixin:
    def find_page(self, plan: ListQueryPlan) -> Tuple[List[Any], PaginationEnvelope]:
        """
        Fetch one page of results plus its pagination envelope.

        Pages past the last item come back empty without querying. The
        window is clamped to the matching total so oversized page or
        pageSize values never reach OFFSET/LIMIT.
        """
        total = self.count_matching(plan.filters)
        if plan.skip >= total:
            items = []
        else:
            items = self.find(plan.filters, plan.sort, plan.skip, min(plan.limit, total - plan.skip))
        envelope = PaginationEnvelope.from_total(plan, total)
        logger.info(
            f"Retrieved {len(items)} {self.name} "
            f"(page={plan.page}, size={plan.page_size}, total={total})"
        )
        return items, envelope


# ==============================================================================
# SQLALCHEMY
# ==============================================================================

class SQLAlchemyRepository(_PagingMixin):
    """
    Repository over one SQLAlchemy model.

    Field names in the plan are model attribute names (e.g. "like_count").
    Keyword search uses lower(column) LIKE '%keyword%' with LIKE wildcards
    escaped, so '%' and '_' in a keyword match literally.
    """

    def __init__(self, db: Session, model: Type[Any]):
        self.db = db
        self.model = model
        self.name = model.__tablename__

    def _column(self, field_name: str):
        column = getattr(self.model, field_name, None)
        if column is None:
            raise ValueError(f"{self.model.__name__} has no field '{field_name}'")
        return column

    def _filtered(self, filters: FilterSpec):
        query = self.db.query(self.model)
        for equality in filters.equality_filters:
            query = query.filter(self._column(equality.field) == equality.value)
        for search in filters.text_searches:
            query = query.filter(
                func.lower(self._column(search.field)).contains(search.pattern.lower(), autoescape=True)
            )
        for flag in filters.boolean_filters:
            query = query.filter(self._column(flag.field) == flag.value)
        return query

    def insert(self, record: Any) -> Any:
        self.db.add(record)
        self.db.commit()
        self.db.refresh(record)
        return record

    def find(self, filters, sort=None, skip=0, limit=None):
        query = self._filtered(filters)
        if sort is not None:
            column = self._column(sort.field)
            query = query.order_by(column.desc() if sort.order == SortOrder.DESC else column.asc())
        query = query.offset(skip)
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def count_matching(self, filters: FilterSpec) -> int:
        return self._filtered(filters).count()


# ==============================================================================
# IN-MEMORY
# ==============================================================================

class InMemoryRepository(_PagingMixin):
    """
    Repository over a list of dicts.

    Sorting is stable, so ties keep insertion order. Records without a
    value for the sort field go last.
    """

    def __init__(self, records: Optional[List[dict]] = None, name: str = "records"):
        self.records = list(records or [])
        self.name = name

    def _matches(self, record: dict, filters: FilterSpec) -> bool:
        for equality in filters.equality_filters:
            if record.get(equality.field) != equality.value:
                return False
        for search in filters.text_searches:
            if search.pattern.lower() not in str(record.get(search.field) or "").lower():
                return False
        for flag in filters.boolean_filters:
            if record.get(flag.field) is not flag.value:
                return False
        return True

    def insert(self, record: dict) -> dict:
        self.records.append(record)
        return record

    def find(self, filters, sort=None, skip=0, limit=None):
        matching = [record for record in self.records if self._matches(record, filters)]
        if sort is not None:
            present = [record for record in matching if record.get(sort.field) is not None]
            missing = [record for record in matching if record.get(sort.field) is None]
            present.sort(key=lambda record: record[sort.field], reverse=sort.order == SortOrder.DESC)
            matching = present + missing
        end = None if limit is None else skip + limit
        return matching[skip:end]

    def count_matching(self, filters: FilterSpec) -> int:
        return sum(1 for record in self.records if self._matches(record, filters))
