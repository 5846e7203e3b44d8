import re
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean, CheckConstraint, Column, DateTime, ForeignKey, Index, Integer, JSON, String, Text, event,
)
from sqlalchemy.orm import relationship, validates
from sqlalchemy.sql import func

from database import Base

EMAIL_PATTERN = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')


def utcnow():
    return datetime.now(timezone.utc)


# ==============================================================================
# GROUP MODEL
# ==============================================================================

class Group(Base):
    """
    A group of people sharing memories.

    Attributes:
        id (int): Primary key, auto-incrementing
        name (str): Display name (searched by keyword)
        password (str): Argon2 hash guarding edits and deletion
        image_url (str): Optional cover image URL
        is_public (bool): Whether the group is listed publicly
        introduction (str): Free-form description
        like_count (int): Likes received
        post_count (int): Memories posted
        badges (list[str]): Earned badge ids, never revoked
        badge_count (int): len(badges), stored for sorting
        created_at (datetime): Creation timestamp
    """

    __tablename__ = "groups"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(255), nullable=False, comment="Group name")
    password = Column(String(255), nullable=False, comment="Hashed group password (Argon2)")
    image_url = Column(String(1000), nullable=True)
    is_public = Column(Boolean, nullable=False, default=True)
    introduction = Column(Text, nullable=False, default="")

    # Aggregates
    like_count = Column(Integer, nullable=False, default=0)
    post_count = Column(Integer, nullable=False, default=0)
    badges = Column(JSON, nullable=False, default=list)
    badge_count = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)

    posts = relationship("Post", back_populates="group", cascade="all, delete-orphan", passive_deletes=True)

    __table_args__ = (
        Index('idx_group_name', 'name'),
        Index('idx_group_public_created', 'is_public', 'created_at'),
        CheckConstraint("like_count >= 0", name='check_group_like_count'),
        CheckConstraint("post_count >= 0", name='check_group_post_count'),
    )

    @validates('name')
    def validate_name(self, key, name):
        if not name or not name.strip():
            raise ValueError("Group name cannot be empty")
        return name.strip()

    def __repr__(self):
        return f"<Group(id={self.id}, name='{self.name}', public={self.is_public})>"


# ==============================================================================
# POST (MEMORY) MODEL
# ==============================================================================

class Post(Base):
    """A memory posted to a group."""

    __tablename__ = "posts"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    group_id = Column(Integer, ForeignKey("groups.id", ondelete="CASCADE"), nullable=False, index=True)
    nickname = Column(String(100), nullable=False)
    title = Column(String(255), nullable=False, comment="Memory title (searched by keyword)")
    content = Column(Text, nullable=False)
    password = Column(String(255), nullable=False, comment="Hashed post password (Argon2)")
    image_url = Column(String(1000), nullable=True)
    tags = Column(JSON, nullable=False, default=list)
    location = Column(String(255), nullable=True)
    moment = Column(DateTime(timezone=True), nullable=False, comment="When the memory happened")
    is_public = Column(Boolean, nullable=False, default=True)
    like_count = Column(Integer, nullable=False, default=0)
    comment_count = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow, nullable=False)

    group = relationship("Group", back_populates="posts")
    comments = relationship("Comment", back_populates="post", cascade="all, delete-orphan", passive_deletes=True)

    __table_args__ = (
        Index('idx_post_group_created', 'group_id', 'created_at'),
        Index('idx_post_title', 'title'),
        CheckConstraint("comment_count >= 0", name='check_post_comment_count'),
    )

    @validates('tags')
    def validate_tags(self, key, tags):
        """Strip tags, drop blanks and duplicates"""
        return list(dict.fromkeys(tag.strip() for tag in (tags or []) if tag and tag.strip()))

    def __repr__(self):
        return f"<Post(id={self.id}, group_id={self.group_id}, title='{self.title}')>"


# ==============================================================================
# COMMENT MODEL
# ==============================================================================

class Comment(Base):
    __tablename__ = "comments"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    post_id = Column(Integer, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False, index=True)
    nickname = Column(String(100), nullable=False)
    content = Column(Text, nullable=False)
    password = Column(String(255), nullable=False)

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow, nullable=False)

    post = relationship("Post", back_populates="comments")

    def __repr__(self):
        return f"<Comment(id={self.id}, post_id={self.post_id}, nickname='{self.nickname}')>"


# ==============================================================================
# USER MODEL
# ==============================================================================

class User(Base):
    """
    Registered application user.

    Attributes:
        id (int): Primary key
        username (str): Unique username (3-50 characters, alphanumeric + underscore)
        email (str): Unique email address
        password (str): Hashed password (Argon2)
        profile_picture (str): Optional profile picture URL
        role (str): 'user' or 'admin'
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    username = Column(String(50), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password = Column(String(255), nullable=False, comment="Hashed password (Argon2)")
    profile_picture = Column(String(1000), nullable=True)
    role = Column(String(20), nullable=False, default="user")

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint("role IN ('user', 'admin')", name='check_role_valid'),
    )

    @validates('username')
    def validate_username(self, key, username):
        """
        Validate username format and length.

        Rules:
        - Must be 3-50 characters
        - Can only contain letters, numbers, and underscores

        Raises:
            ValueError: If username doesn't meet requirements
        """
        if not username:
            raise ValueError("Username cannot be empty")

        username = username.strip()

        if len(username) < 3 or len(username) > 50:
            raise ValueError("Username must be 3-50 characters long")

        if not re.match(r'^[a-zA-Z0-9_]+$', username):
            raise ValueError("Username can only contain letters, numbers, and underscores")

        return username

    @validates('email')
    def validate_email(self, key, email):
        if not email or not EMAIL_PATTERN.match(email.strip()):
            raise ValueError("Email address is not valid")
        return email.strip().lower()

    @validates('role')
    def validate_role(self, key, role):
        if role not in ('user', 'admin'):
            raise ValueError(f"Role must be 'user' or 'admin'. Got: '{role}'")
        return role

    def __repr__(self):
        return f"<User(id={self.id}, username='{self.username}', role='{self.role}')>"


# ==============================================================================
# IMAGE MODEL
# ==============================================================================

class Image(Base):
    """Uploaded image stored on local disk."""

    __tablename__ = "images"

    id = Column(Integer, primary_key=True, autoincrement=True)
    filename = Column(String(255), unique=True, nullable=False)
    url = Column(String(1000), nullable=False, index=True)
    size_bytes = Column(Integer, nullable=False, default=0)
    uploaded_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)


# ==============================================================================
# EVENT LISTENERS
# ==============================================================================

@event.listens_for(Group, 'before_insert')
@event.listens_for(Group, 'before_update')
def sync_badge_count(mapper, connection, target):
    """Keep badge_count equal to the number of stored badges."""
    target.badge_count = len(target.badges or [])
