"""
crud.py - Database CRUD Operations

This module provides Create, Read, Update, Delete operations for groups,
posts (memories), comments, users and images. It acts as a data access
layer between the API routers and the database.

Operations Provided:
    GROUPS:
        - get_group(), list_groups(), create_group(), update_group(), delete_group()
        - increment_group_likes(): Atomic like counter
        - get_group_stats(), refresh_group_badges(): Badge bookkeeping

    POSTS:
        - get_post(), list_posts(), create_post(), update_post(), delete_post()
        - increment_post_likes()

    COMMENTS:
        - get_comment(), list_comments(), create_comment(), update_comment(), delete_comment()

    USERS:
        - get_user(), username_exists(), email_exists()
        - create_user(), update_user(), change_password()

    IMAGES:
        - create_image(), get_image_usage()

    STATISTICS:
        - count_content(): Row counts for the health check

    PASSWORDS:
        - get_password_hash(), verify_password()

Counters (likes, post counts, comment counts) are updated with a single
"UPDATE ... SET col = col + n" statement so concurrent requests never lose
an increment.

Error Handling:
    Every write goes through _committing(), which rolls back on failure and:
    - re-raises ValueError (validation errors, returned to user as 400)
    - converts IntegrityError into ValueError
    - converts any other SQLAlchemyError into RuntimeError (500)
"""

from contextlib import contextmanager
from typing import List, Optional, Tuple

from sqlalchemy import func, select  # SQL functions and subqueries
from sqlalchemy.exc import IntegrityError, SQLAlchemyError  # Database exceptions
from sqlalchemy.orm import Session  # Database session type
from passlib.context import CryptContext  # Password hashing
import logging

import models
import schemas
from repository import SQLAlchemyRepository
from services.badges import GroupStats, evaluate_badges, longest_daily_streak, merge_badges
from services.query_planner import ListQueryPlan, PaginationEnvelope

# ==============================================================================
# LOGGING SETUP
# ==============================================================================

logger = logging.getLogger(__name__)

# ==============================================================================
# CONSTANTS
# ==============================================================================

DATABASE_ERROR_MSG = "Database error occurred"

# ==============================================================================
# PASSWORD HASHING CONFIGURATION
# ==============================================================================

pwd_context = CryptContext(
    schemes=["argon2"],
    deprecated="auto"
)


def get_password_hash(password: str) -> str:
    """
    Hash a password using Argon2.

    Used for user, group, post and comment passwords alike.
    """
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a password against its hash (timing-safe).

    Returns:
        bool: True if password matches, False otherwise (including malformed hashes)
    """
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except Exception as e:
        logger.error(f"Password verification error: {e}")
        return False


# ==============================================================================
# TRANSACTION HELPERS
# ==============================================================================

@contextmanager
def _committing(db: Session, action: str):
    """
    Run a write block and commit it, rolling back on any failure.

    Args:
        db: Database session
        action: Human readable description used in log messages
    """
    try:
        yield
        db.commit()

    except ValueError:
        db.rollback()
        raise

    except IntegrityError as e:
        db.rollback()
        logger.error(f"Integrity error {action}: {e}")
        raise ValueError("Database constraint violation")

    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Database error {action}: {e}")
        raise RuntimeError(DATABASE_ERROR_MSG)

    except Exception as e:
        db.rollback()
        logger.error(f"Unexpected error {action}: {e}")
        raise


def _add_to_counter(db: Session, column, row_id: int, amount: int) -> bool:
    """
    Atomically add `amount` to a counter column, never going below zero.

    Returns:
        bool: True if a row was updated
    """
    model = column.class_
    updated = (
        db.query(model)
        .filter(model.id == row_id, column + amount >= 0)
        .update({column: column + amount}, synchronize_session=False)
    )
    return updated > 0


# ==============================================================================
# GROUPS
# ==============================================================================

def get_group(db: Session, group_id: int) -> Optional[models.Group]:
    return db.query(models.Group).filter(models.Group.id == group_id).first()


def list_groups(db: Session, plan: ListQueryPlan) -> Tuple[List[models.Group], PaginationEnvelope]:
    """Run a planned list query against the groups table."""
    return SQLAlchemyRepository(db, models.Group).find_page(plan)


def create_group(db: Session, group: schemas.GroupCreate) -> models.Group:
    """
    Create a new group and evaluate its starting badges.

    Args:
        db: Database session
        group: Group data from request

    Returns:
        models.Group: Created group

    Raises:
        ValueError: If validation fails
        RuntimeError: If database error occurs
    """
    db_group = models.Group(
        name=group.name,
        password=get_password_hash(group.password),
        image_url=group.image_url,
        is_public=group.is_public,
        introduction=group.introduction or "",
        badges=[],
    )
    with _committing(db, "creating group"):
        db.add(db_group)
    db.refresh(db_group)

    logger.info(f"Created group: {db_group.name} (ID: {db_group.id})")
    return refresh_group_badges(db, db_group)


def update_group(db: Session, db_group: models.Group, group: schemas.GroupUpdate) -> models.Group:
    """
    Replace a group's editable fields. The caller has already checked the password.

    An empty imageUrl or introduction keeps the current value.
    """
    with _committing(db, f"updating group {db_group.id}"):
        db_group.name = group.name
        db_group.is_public = group.is_public
        db_group.image_url = group.image_url or db_group.image_url
        db_group.introduction = group.introduction or db_group.introduction
    db.refresh(db_group)

    logger.info(f"Updated group: {db_group.name} (ID: {db_group.id})")
    return refresh_group_badges(db, db_group)


def delete_group(db: Session, db_group: models.Group) -> None:
    """Delete a group together with its posts and their comments."""
    group_id = db_group.id
    with _committing(db, f"deleting group {group_id}"):
        db.delete(db_group)
    logger.info(f"Deleted group {group_id}")


def increment_group_likes(db: Session, group_id: int) -> Optional[models.Group]:
    """
    Add one like to a group and re-evaluate its badges.

    Returns:
        models.Group: Updated group, or None if it does not exist
    """
    with _committing(db, f"liking group {group_id}"):
        updated = _add_to_counter(db, models.Group.like_count, group_id, 1)
    if not updated:
        return None

    db_group = get_group(db, group_id)
    return refresh_group_badges(db, db_group)


# ==============================================================================
# BADGES
# ==============================================================================

def get_group_stats(db: Session, group: models.Group) -> GroupStats:
    """
    Compute the aggregate statistics the badge rules look at.

    - memory_count: the group's post counter
    - memory_streak_days: longest run of consecutive days with a new post
    - space_received_bytes: total size of uploaded images used by its posts
    - like_count: the group's like counter
    """
    post_times = [
        created_at for (created_at,) in
        db.query(models.Post.created_at).filter(models.Post.group_id == group.id)
    ]

    image_urls = select(models.Post.image_url).where(
        models.Post.group_id == group.id,
        models.Post.image_url.isnot(None),
    )
    space_received = (
        db.query(func.coalesce(func.sum(models.Image.size_bytes), 0))
        .filter(models.Image.url.in_(image_urls))
        .scalar()
    )

    return GroupStats(
        memory_count=group.post_count or 0,
        memory_streak_days=longest_daily_streak(post_times),
        space_received_bytes=int(space_received or 0),
        like_count=group.like_count or 0,
    )


def refresh_group_badges(db: Session, group: models.Group) -> models.Group:
    """
    Evaluate a group's badges and persist any newly earned ones.

    Badges are never revoked, so the stored set only grows.
    """
    earned = evaluate_badges(get_group_stats(db, group))
    badges = merge_badges(group.badges, earned)

    if badges != list(group.badges or []):
        with _committing(db, f"updating badges of group {group.id}"):
            group.badges = badges
        db.refresh(group)
        logger.info(f"Group {group.id} badges: {', '.join(badges)}")

    return group


# ==============================================================================
# POSTS
# ==============================================================================

def get_post(db: Session, post_id: int) -> Optional[models.Post]:
    return db.query(models.Post).filter(models.Post.id == post_id).first()


def list_posts(db: Session, plan: ListQueryPlan) -> Tuple[List[models.Post], PaginationEnvelope]:
    return SQLAlchemyRepository(db, models.Post).find_page(plan)


def create_post(db: Session, group: models.Group, post: schemas.PostCreate) -> models.Post:
    """
    Post a memory to a group.

    The post row and the group's post counter are written in one transaction,
    then the group's badges are re-evaluated.

    Args:
        db: Database session
        group: Group the memory belongs to (password already verified)
        post: Memory data from request

    Returns:
        models.Post: Created post
    """
    db_post = models.Post(
        group_id=group.id,
        nickname=post.nickname,
        title=post.title,
        content=post.content,
        password=get_password_hash(post.post_password),
        image_url=post.image_url,
        tags=post.tags,
        location=post.location,
        moment=post.moment,
        is_public=post.is_public,
    )
    with _committing(db, f"creating post in group {group.id}"):
        db.add(db_post)
        _add_to_counter(db, models.Group.post_count, group.id, 1)
    db.refresh(db_post)
    db.refresh(group)

    logger.info(f"Created post: {db_post.title} (ID: {db_post.id}, group {group.id})")
    refresh_group_badges(db, group)
    return db_post


def update_post(db: Session, db_post: models.Post, post: schemas.PostUpdate) -> models.Post:
    with _committing(db, f"updating post {db_post.id}"):
        db_post.nickname = post.nickname
        db_post.title = post.title
        db_post.content = post.content
        db_post.image_url = post.image_url
        db_post.tags = post.tags
        db_post.location = post.location
        db_post.moment = post.moment
        db_post.is_public = post.is_public
    db.refresh(db_post)

    logger.info(f"Updated post: {db_post.title} (ID: {db_post.id})")
    return db_post


def delete_post(db: Session, db_post: models.Post) -> None:
    """Delete a post and its comments, and decrement the group's post counter."""
    post_id, group_id = db_post.id, db_post.group_id
    with _committing(db, f"deleting post {post_id}"):
        db.delete(db_post)
        _add_to_counter(db, models.Group.post_count, group_id, -1)
    logger.info(f"Deleted post {post_id} from group {group_id}")


def increment_post_likes(db: Session, post_id: int) -> bool:
    with _committing(db, f"liking post {post_id}"):
        updated = _add_to_counter(db, models.Post.like_count, post_id, 1)
    return updated


# ==============================================================================
# COMMENTS
# ==============================================================================

def get_comment(db: Session, comment_id: int) -> Optional[models.Comment]:
    return db.query(models.Comment).filter(models.Comment.id == comment_id).first()


def list_comments(db: Session, plan: ListQueryPlan) -> Tuple[List[models.Comment], PaginationEnvelope]:
    return SQLAlchemyRepository(db, models.Comment).find_page(plan)


def create_comment(db: Session, post_id: int, comment: schemas.CommentCreate) -> models.Comment:
    db_comment = models.Comment(
        post_id=post_id,
        nickname=comment.nickname,
        content=comment.content,
        password=get_password_hash(comment.password),
    )
    with _committing(db, f"creating comment on post {post_id}"):
        db.add(db_comment)
        _add_to_counter(db, models.Post.comment_count, post_id, 1)
    db.refresh(db_comment)

    logger.info(f"Created comment {db_comment.id} on post {post_id}")
    return db_comment


def update_comment(db: Session, db_comment: models.Comment, comment: schemas.CommentCreate) -> models.Comment:
    with _committing(db, f"updating comment {db_comment.id}"):
        db_comment.nickname = comment.nickname
        db_comment.content = comment.content
    db.refresh(db_comment)
    return db_comment


def delete_comment(db: Session, db_comment: models.Comment) -> None:
    comment_id, post_id = db_comment.id, db_comment.post_id
    with _committing(db, f"deleting comment {comment_id}"):
        db.delete(db_comment)
        _add_to_counter(db, models.Post.comment_count, post_id, -1)
    logger.info(f"Deleted comment {comment_id} from post {post_id}")


# ==============================================================================
# USERS
# ==============================================================================

def get_user(db: Session, user_id: int) -> Optional[models.User]:
    return db.query(models.User).filter(models.User.id == user_id).first()


def username_exists(db: Session, username: str, exclude_id: Optional[int] = None) -> bool:
    """
    Check if a username already exists (case-insensitive).

    Args:
        db: Database session
        username: Username to check
        exclude_id: Optional user ID to exclude (useful for updates)
    """
    query = db.query(models.User).filter(
        func.lower(models.User.username) == username.strip().lower()
    )
    if exclude_id is not None:
        query = query.filter(models.User.id != exclude_id)
    return query.first() is not None


def email_exists(db: Session, email: str, exclude_id: Optional[int] = None) -> bool:
    query = db.query(models.User).filter(models.User.email == email.strip().lower())
    if exclude_id is not None:
        query = query.filter(models.User.id != exclude_id)
    return query.first() is not None


def create_user(db: Session, user: schemas.UserRegister) -> models.User:
    """
    Register a new user with a hashed password.

    Raises:
        ValueError: If username or email is taken, or validation fails
        RuntimeError: If database error occurs
    """
    if username_exists(db, user.username):
        raise ValueError(f"Username '{user.username}' is already taken")
    if email_exists(db, user.email):
        raise ValueError(f"Email '{user.email}' is already registered")

    with _committing(db, f"creating user {user.username}"):
        db_user = models.User(
            username=user.username,
            email=user.email,
            password=get_password_hash(user.password),
        )
        db.add(db_user)
    db.refresh(db_user)

    logger.info(f"Created user: {db_user.username} (ID: {db_user.id})")
    return db_user


def update_user(db: Session, db_user: models.User, user: schemas.UserUpdate) -> models.User:
    """
    Apply a partial profile update.

    Raises:
        ValueError: If the new username or email is taken
    """
    if user.username and username_exists(db, user.username, exclude_id=db_user.id):
        raise ValueError(f"Username '{user.username}' is already taken")
    if user.email and email_exists(db, user.email, exclude_id=db_user.id):
        raise ValueError(f"Email '{user.email}' is already registered")

    with _committing(db, f"updating user {db_user.id}"):
        if user.username:
            db_user.username = user.username
        if user.email:
            db_user.email = user.email
        if user.profile_picture:
            db_user.profile_picture = user.profile_picture
    db.refresh(db_user)

    logger.info(f"Updated user: {db_user.username} (ID: {db_user.id})")
    return db_user


def change_password(db: Session, db_user: models.User, new_password: str) -> None:
    with _committing(db, f"changing password of user {db_user.id}"):
        db_user.password = get_password_hash(new_password)
    logger.info(f"Password updated for user {db_user.id}")


# ==============================================================================
# IMAGES
# ==============================================================================

def create_image(db: Session, filename: str, url: str, size_bytes: int) -> models.Image:
    db_image = models.Image(filename=filename, url=url, size_bytes=size_bytes)
    with _committing(db, f"saving image {filename}"):
        db.add(db_image)
    db.refresh(db_image)

    logger.info(f"Saved image record: {filename} ({size_bytes} bytes)")
    return db_image


def get_image_usage(db: Session) -> Tuple[int, int, List[str]]:
    """
    Summarize stored image records.

    Returns:
        tuple: (record count, total bytes, filenames of every record)
    """
    count, total_bytes = db.query(
        func.count(models.Image.id),
        func.coalesce(func.sum(models.Image.size_bytes), 0),
    ).one()
    filenames = [filename for (filename,) in db.query(models.Image.filename)]
    return count, int(total_bytes), filenames


# ==============================================================================
# STATISTICS
# ==============================================================================

def count_content(db: Session) -> dict:
    """Row counts of the content tables, used by the health check."""
    return {
        "groups": db.query(func.count(models.Group.id)).scalar(),
        "posts": db.query(func.count(models.Post.id)).scalar(),
        "comments": db.query(func.count(models.Comment.id)).scalar(),
    }
