"""
seeds.py - Demo Data

Replaces all groups, memories and comments with a small demo data set:
one public group holding two memories, each with a single comment.

Usage:
    python seeds.py
"""

import logging
from datetime import datetime, timezone

from sqlalchemy.orm import Session

import crud
import models
import schemas
from database import SessionLocal, engine

logger = logging.getLogger(__name__)

DEMO_GROUP = schemas.GroupCreate(
    name="Travel Buddies",
    password="abcd",
    image_url="http://example.com/group.png",
    is_public=True,
    introduction="Trips we took together",
)

DEMO_POSTS = [
    {
        "post": schemas.PostCreate(
            nickname="JohnDoe",
            title="My First Post",
            content="This is the content of the post.",
            post_password="1234",
            group_password="abcd",
            image_url="http://example.com/image.png",
            tags=["tag1", "tag2"],
            location="Seoul",
            moment=datetime(2024, 2, 21, tzinfo=timezone.utc),
            is_public=True,
        ),
        "comment": schemas.CommentCreate(
            nickname="Alice",
            content="This is Alice's comment!",
            password="alice123",
        ),
    },
    {
        "post": schemas.PostCreate(
            nickname="JaneDoe",
            title="Another Post",
            content="Here is some different content.",
            post_password="5678",
            group_password="abcd",
            image_url="http://example.com/image2.png",
            tags=["tag3"],
            location="Busan",
            moment=datetime(2024, 3, 1, tzinfo=timezone.utc),
            is_public=True,
        ),
        "comment": schemas.CommentCreate(
            nickname="Bob",
            content="Bob's comment here.",
            password="bobsecure",
        ),
    },
]


def seed(db: Session) -> models.Group:
    """
    Clear existing groups, posts and comments and insert the demo data.

    Returns:
        models.Group: The demo group
    """
    db.query(models.Comment).delete()
    db.query(models.Post).delete()
    db.query(models.Group).delete()
    db.commit()
    logger.info("Old groups, posts and comments removed")

    group = crud.create_group(db, DEMO_GROUP)
    for entry in DEMO_POSTS:
        post = crud.create_post(db, group, entry["post"])
        crud.create_comment(db, post.id, entry["comment"])

    db.refresh(group)
    logger.info(f"Seeded group {group.id} with {group.post_count} posts")
    return group


if __name__ == "__main__":
    models.Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        seed(session)
    finally:
        session.close()
