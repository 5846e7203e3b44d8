"""Tests for the system endpoints."""

import pytest

import crud
from tests.conftest import group_payload


@pytest.mark.asyncio
class TestSystemEndpoints:
    async def test_root(self, client):
        response = await client.get("/")

        assert response.status_code == 200
        assert response.json()["message"] == "Memories API is running"
        assert response.json()["badges"] == 4
        assert "X-Process-Time" in response.headers

    async def test_health_reports_content_counts(self, client):
        await client.post("/api/groups", json=group_payload())

        response = await client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["checks"]["content"]["counts"] == {"groups": 1, "posts": 0, "comments": 0}
        assert body["checks"]["uploads"]["status"] == "healthy"
        assert body["checks"]["images"] == {
            "status": "healthy",
            "records": 0,
            "total_bytes": 0,
            "missing_files": 0,
        }

    async def test_health_degraded_when_image_file_missing(self, client, db):
        crud.create_image(db, filename="gone.png", url="http://test/uploads/gone.png", size_bytes=321)

        response = await client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "degraded"
        assert body["checks"]["images"]["records"] == 1
        assert body["checks"]["images"]["total_bytes"] == 321
        assert body["checks"]["images"]["missing_files"] == 1

    async def test_badge_catalog(self, client):
        response = await client.get("/api/badges")

        assert response.status_code == 200
        assert [badge["id"] for badge in response.json()] == [
            "memory-count-20",
            "memory-streak-7",
            "space-received-10000",
            "like-count-10000",
        ]
