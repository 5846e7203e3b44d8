"""API tests for /api/groups."""

from datetime import timedelta

import pytest

import crud
import models
import schemas
from tests.conftest import group_payload, post_payload


async def _create_group(client, **overrides):
    response = await client.post("/api/groups", json=group_payload(**overrides))
    assert response.status_code == 201
    return response.json()


@pytest.mark.asyncio
class TestGroupCrud:
    async def test_create_group_returns_camel_case_without_password(self, client):
        group = await _create_group(client)

        assert group["name"] == "Travel Buddies"
        assert group["isPublic"] is True
        assert group["likeCount"] == 0
        assert group["postCount"] == 0
        assert group["badgeCount"] == 0
        assert group["badges"] == []
        assert "password" not in group
        assert "createdAt" in group

    async def test_create_group_rejects_string_visibility(self, client):
        response = await client.post("/api/groups", json=group_payload(isPublic="yes"))
        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid request"

    async def test_create_group_rejects_blank_name(self, client):
        response = await client.post("/api/groups", json=group_payload(name="   "))
        assert response.status_code == 400

    async def test_read_missing_group(self, client):
        response = await client.get("/api/groups/999")
        assert response.status_code == 404

    async def test_update_requires_matching_password(self, client):
        group = await _create_group(client)

        response = await client.put(
            f"/api/groups/{group['id']}",
            json=group_payload(name="Renamed", password="wrong"),
        )
        assert response.status_code == 403

        response = await client.put(
            f"/api/groups/{group['id']}",
            json=group_payload(name="Renamed", imageUrl="", introduction=""),
        )
        assert response.status_code == 200
        body = response.json()
        assert body["name"] == "Renamed"
        assert body["imageUrl"] == "http://example.com/group.png"
        assert body["introduction"] == "Trips we took together"

    async def test_delete_group_cascades_to_posts(self, client):
        group = await _create_group(client)
        post = (await client.post(f"/api/groups/{group['id']}/posts", json=post_payload())).json()

        response = await client.request(
            "DELETE", f"/api/groups/{group['id']}", json={"password": "wrong"}
        )
        assert response.status_code == 403

        response = await client.request(
            "DELETE", f"/api/groups/{group['id']}", json={"password": "group-pass"}
        )
        assert response.status_code == 200
        assert (await client.get(f"/api/groups/{group['id']}")).status_code == 404
        assert (await client.get(f"/api/posts/{post['id']}")).status_code == 404

    async def test_verify_password(self, client):
        group = await _create_group(client)
        url = f"/api/groups/{group['id']}/verify-password"

        assert (await client.post(url, json={"password": "group-pass"})).status_code == 200
        assert (await client.post(url, json={"password": "nope"})).status_code == 401

    async def test_like_and_visibility(self, client):
        group = await _create_group(client, isPublic=False)

        response = await client.post(f"/api/groups/{group['id']}/like")
        assert response.status_code == 200
        assert (await client.get(f"/api/groups/{group['id']}")).json()["likeCount"] == 1

        response = await client.get(f"/api/groups/{group['id']}/public-status")
        assert response.json() == {"id": group["id"], "isPublic": False}

        assert (await client.post("/api/groups/999/like")).status_code == 404


@pytest.mark.asyncio
class TestGroupListing:
    async def test_pagination_envelope(self, client):
        for index in range(12):
            await _create_group(client, name=f"Group {index}")

        response = await client.get("/api/groups", params={"page": "2", "pageSize": "5"})

        assert response.status_code == 200
        body = response.json()
        assert body["currentPage"] == 2
        assert body["totalPages"] == 3
        assert body["totalItemCount"] == 12
        assert len(body["data"]) == 5

    async def test_latest_first_by_default(self, client):
        for name in ("First", "Second", "Third"):
            await _create_group(client, name=name)

        body = (await client.get("/api/groups")).json()

        assert [group["name"] for group in body["data"]] == ["Third", "Second", "First"]

    async def test_most_liked(self, client):
        quiet = await _create_group(client, name="Quiet")
        popular = await _create_group(client, name="Popular")
        for _ in range(2):
            await client.post(f"/api/groups/{popular['id']}/like")
        await client.post(f"/api/groups/{quiet['id']}/like")

        body = (await client.get("/api/groups", params={"sortBy": "mostLiked"})).json()

        assert [group["name"] for group in body["data"]] == ["Popular", "Quiet"]

    async def test_keyword_and_visibility(self, client):
        await _create_group(client, name="Seoul Trip", isPublic=True)
        await _create_group(client, name="seoul secret", isPublic=False)
        await _create_group(client, name="Busan", isPublic=False)

        body = (await client.get("/api/groups", params={"keyword": "SEOUL", "isPublic": "false"})).json()
        assert [group["name"] for group in body["data"]] == ["seoul secret"]

        body = (await client.get("/api/groups", params={"isPublic": "no"})).json()
        assert body["totalItemCount"] == 3

    async def test_huge_page_returns_empty_data(self, client):
        await _create_group(client)

        response = await client.get("/api/groups", params={"page": "10000000000000000000"})

        assert response.status_code == 200
        body = response.json()
        assert body["data"] == []
        assert body["currentPage"] == 10000000000000000000
        assert body["totalPages"] == 1
        assert body["totalItemCount"] == 1

    async def test_huge_page_size_returns_everything(self, client):
        await _create_group(client, name="One")
        await _create_group(client, name="Two")

        response = await client.get("/api/groups", params={"pageSize": "10000000000000000000"})

        assert response.status_code == 200
        body = response.json()
        assert [group["name"] for group in body["data"]] == ["Two", "One"]
        assert body["totalPages"] == 1

    @pytest.mark.parametrize("page", ["1_000", "٣", "+2"])
    async def test_page_must_be_plain_digits(self, client, page):
        response = await client.get("/api/groups", params={"page": page})
        assert response.status_code == 400
        assert response.json()["kind"] == "InvalidPagination"

    async def test_old_visibility_route_is_gone(self, client):
        group = await _create_group(client)
        assert (await client.get(f"/api/groups/{group['id']}/is-public")).status_code == 404

    async def test_invalid_page(self, client):
        response = await client.get("/api/groups", params={"page": "0"})
        assert response.status_code == 400
        assert response.json()["kind"] == "InvalidPagination"

    async def test_unknown_sort_key(self, client):
        response = await client.get("/api/groups", params={"sortBy": "mostCommented"})
        assert response.status_code == 400
        assert response.json()["kind"] == "UnknownSortKey"


@pytest.mark.asyncio
class TestGroupBadges:
    async def test_twenty_memories_earn_badge(self, client):
        group = await _create_group(client)
        for index in range(20):
            response = await client.post(
                f"/api/groups/{group['id']}/posts", json=post_payload(title=f"Memory {index}")
            )
            assert response.status_code == 201

        body = (await client.get(f"/api/groups/{group['id']}")).json()

        assert body["postCount"] == 20
        assert "memory-count-20" in body["badges"]
        assert body["badgeCount"] == len(body["badges"])

    async def test_badges_sort(self, client, db):
        plain = await _create_group(client, name="Plain")
        decorated = await _create_group(client, name="Decorated")
        db_group = crud.get_group(db, decorated["id"])
        db_group.badges = ["like-count-10000"]
        db.commit()

        body = (await client.get("/api/groups", params={"sortBy": "mostBadge"})).json()

        assert [group["id"] for group in body["data"]] == [decorated["id"], plain["id"]]
        assert body["data"][0]["badgeCount"] == 1


class TestGroupStats:
    def _make_group(self, db):
        return crud.create_group(db, schemas.GroupCreate(
            name="Stats", password="pw", is_public=True,
        ))

    def _make_post(self, db, group, **overrides):
        data = {
            "nickname": "n",
            "title": "t",
            "content": "c",
            "post_password": "pp",
            "group_password": "pw",
            "moment": "2024-01-01T00:00:00Z",
            "is_public": True,
        }
        data.update(overrides)
        return crud.create_post(db, group, schemas.PostCreate(**data))

    def test_seven_day_streak_earns_badge(self, db):
        group = self._make_group(db)
        posts = [self._make_post(db, group, title=f"Day {day}") for day in range(7)]
        start = posts[0].created_at
        for day, post in enumerate(posts):
            post.created_at = start + timedelta(days=day)
        db.commit()

        assert crud.get_group_stats(db, group).memory_streak_days == 7
        assert "memory-streak-7" in crud.refresh_group_badges(db, group).badges

    def test_space_received_counts_uploaded_images_used_by_posts(self, db):
        group = self._make_group(db)
        crud.create_image(db, filename="a.png", url="http://test/uploads/a.png", size_bytes=6000)
        crud.create_image(db, filename="b.png", url="http://test/uploads/b.png", size_bytes=5000)
        crud.create_image(db, filename="c.png", url="http://test/uploads/c.png", size_bytes=90000)
        self._make_post(db, group, image_url="http://test/uploads/a.png")
        self._make_post(db, group, image_url="http://test/uploads/b.png")

        db.refresh(group)

        assert crud.get_group_stats(db, group).space_received_bytes == 11000
        assert "space-received-10000" in group.badges

    def test_badges_are_not_revoked(self, db):
        group = self._make_group(db)
        group.badges = ["like-count-10000"]
        db.commit()

        refreshed = crud.refresh_group_badges(db, group)

        assert refreshed.badges == ["like-count-10000"]
        assert db.query(models.Group).filter(models.Group.id == group.id).one().badge_count == 1
