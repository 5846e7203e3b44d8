"""Shared fixtures for the API tests.

The application is pointed at a shared in-memory SQLite database and a
temporary upload directory before any project module is imported. The
schema is rebuilt for every test.
"""

import os
import tempfile

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENVIRONMENT"] = "testing"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="memories-uploads-")

import httpx
import pytest
import pytest_asyncio

import models
from database import SessionLocal, engine
from main import app


@pytest.fixture(autouse=True)
def reset_schema():
    models.Base.metadata.drop_all(bind=engine)
    models.Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    yield session
    session.close()


@pytest_asyncio.fixture
async def client():
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


def group_payload(**overrides):
    payload = {
        "name": "Travel Buddies",
        "password": "group-pass",
        "imageUrl": "http://example.com/group.png",
        "isPublic": True,
        "introduction": "Trips we took together",
    }
    payload.update(overrides)
    return payload


def post_payload(**overrides):
    payload = {
        "nickname": "JohnDoe",
        "title": "My First Post",
        "content": "This is the content of the post.",
        "postPassword": "post-pass",
        "groupPassword": "group-pass",
        "imageUrl": "http://example.com/image.png",
        "tags": ["tag1", "tag2"],
        "location": "Seoul",
        "moment": "2024-02-21T00:00:00Z",
        "isPublic": True,
    }
    payload.update(overrides)
    return payload


def comment_payload(**overrides):
    payload = {
        "nickname": "Alice",
        "content": "This is Alice's comment!",
        "password": "comment-pass",
    }
    payload.update(overrides)
    return payload
