"""Tests for the storage adapters executing list query plans."""

from datetime import datetime, timedelta, timezone

import pytest

import models
from repository import InMemoryRepository, SQLAlchemyRepository
from services.query_planner import ListQueryRequest, plan_list_query


def _records(count):
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)
    return [
        {
            "id": index,
            "title": f"Memory {index}",
            "is_public": index % 2 == 0,
            "like_count": index % 4,
            "created_at": start + timedelta(hours=index),
        }
        for index in range(1, count + 1)
    ]


class TestInMemoryRepository:
    def test_last_partial_page(self):
        repo = InMemoryRepository(_records(25))
        plan = plan_list_query(ListQueryRequest(page="3", page_size="10"))

        items, envelope = repo.find_page(plan)

        assert len(items) == 5
        assert envelope.to_dict() == {"currentPage": 3, "totalPages": 3, "totalItemCount": 25}

    def test_latest_first(self):
        repo = InMemoryRepository(_records(3))
        items, _ = repo.find_page(plan_list_query(ListQueryRequest()))
        assert [item["id"] for item in items] == [3, 2, 1]

    def test_ties_keep_insertion_order(self):
        repo = InMemoryRepository(_records(8))
        items, _ = repo.find_page(plan_list_query(ListQueryRequest(sort_key="mostLiked")))
        assert [item["id"] for item in items] == [3, 7, 2, 6, 1, 5, 4, 8]

    def test_visibility_false_keeps_private_records(self):
        repo = InMemoryRepository(_records(6))
        items, envelope = repo.find_page(plan_list_query(ListQueryRequest(visibility="false")))
        assert all(item["is_public"] is False for item in items)
        assert envelope.total_item_count == 3

    def test_unrecognised_visibility_applies_no_filter(self):
        repo = InMemoryRepository(_records(6))
        _, envelope = repo.find_page(plan_list_query(ListQueryRequest(visibility="no")))
        assert envelope.total_item_count == 6

    def test_keyword_is_case_insensitive(self):
        repo = InMemoryRepository(_records(12))
        items, _ = repo.find_page(plan_list_query(ListQueryRequest(keyword="memory 1")))
        assert sorted(item["id"] for item in items) == [1, 10, 11, 12]

    def test_records_missing_sort_value_go_last(self):
        repo = InMemoryRepository([{"id": 1}, {"id": 2, "like_count": 5}])
        items, _ = repo.find_page(plan_list_query(ListQueryRequest(sort_key="mostLiked")))
        assert [item["id"] for item in items] == [2, 1]

    def test_insert(self):
        repo = InMemoryRepository()
        repo.insert({"id": 1, "title": "Hello"})
        assert repo.count_matching(plan_list_query(ListQueryRequest()).filters) == 1


class TestSQLAlchemyRepository:
    def _add_groups(self, db, names):
        for index, name in enumerate(names):
            db.add(models.Group(
                name=name,
                password="hash",
                is_public=index % 2 == 0,
                like_count=index,
                badges=[],
            ))
        db.commit()

    def test_keyword_matches_name_case_insensitively(self, db):
        self._add_groups(db, ["Seoul Trip", "Busan", "SEOUL food"])
        repo = SQLAlchemyRepository(db, models.Group)

        items, envelope = repo.find_page(
            plan_list_query(ListQueryRequest(keyword="seoul"), search_field="name")
        )

        assert sorted(group.name for group in items) == ["SEOUL food", "Seoul Trip"]
        assert envelope.total_item_count == 2

    def test_keyword_wildcards_match_literally(self, db):
        self._add_groups(db, ["100% fun", "100 fun"])
        repo = SQLAlchemyRepository(db, models.Group)

        items, _ = repo.find_page(plan_list_query(ListQueryRequest(keyword="0%"), search_field="name"))

        assert [group.name for group in items] == ["100% fun"]

    def test_sort_and_visibility(self, db):
        self._add_groups(db, ["a", "b", "c", "d", "e"])
        repo = SQLAlchemyRepository(db, models.Group)

        items, envelope = repo.find_page(
            plan_list_query(ListQueryRequest(sort_key="mostLiked", visibility="true"))
        )

        assert [group.name for group in items] == ["e", "c", "a"]
        assert envelope.total_pages == 1

    def test_unknown_field_raises(self, db):
        repo = SQLAlchemyRepository(db, models.Group)
        plan = plan_list_query(ListQueryRequest(keyword="x"), search_field="title")
        with pytest.raises(ValueError):
            repo.find_page(plan)


def test_page_beyond_data_is_empty_with_correct_total_pages():
    repo = InMemoryRepository(_records(25))
    items, envelope = repo.find_page(plan_list_query(ListQueryRequest(page="9", page_size="10")))

    assert items == []
    assert envelope.to_dict() == {"currentPage": 9, "totalPages": 3, "totalItemCount": 25}


class _CountingRepository(InMemoryRepository):
    def __init__(self, records):
        super().__init__(records)
        self.find_calls = []

    def find(self, filters, sort=None, skip=0, limit=None):
        self.find_calls.append((skip, limit))
        return super().find(filters, sort, skip, limit)


def test_page_past_the_end_skips_the_find_query():
    repo = _CountingRepository(_records(3))

    items, _ = repo.find_page(plan_list_query(ListQueryRequest(page="10000000000000000000")))

    assert items == []
    assert repo.find_calls == []


def test_window_is_clamped_to_matching_total():
    repo = _CountingRepository(_records(3))

    items, envelope = repo.find_page(plan_list_query(ListQueryRequest(page_size="10000000000000000000")))

    assert len(items) == 3
    assert repo.find_calls == [(0, 3)]
    assert envelope.total_pages == 1


def test_sqlalchemy_huge_page_and_page_size(db):
    db.add(models.Group(name="Only", password="hash", is_public=True, badges=[]))
    db.commit()
    repo = SQLAlchemyRepository(db, models.Group)

    items, envelope = repo.find_page(plan_list_query(ListQueryRequest(page="10000000000000000000")))
    assert items == []
    assert envelope.total_item_count == 1

    items, _ = repo.find_page(plan_list_query(ListQueryRequest(page_size="10000000000000000000")))
    assert [group.name for group in items] == ["Only"]
