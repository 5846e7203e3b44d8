from pydantic import BaseModel, ConfigDict, Field, StrictBool, field_validator
from pydantic.alias_generators import to_camel
from typing import List, Optional
from datetime import datetime
import re


class CamelModel(BaseModel):
    """
    Base schema for the public API.

    Fields are snake_case in Python and camelCase on the wire
    (image_url <-> imageUrl). Either form is accepted on input.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,  # Allows conversion from SQLAlchemy models
    )


def _not_blank(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("Field cannot be blank")
    return value


# ==============================================================================
# GROUP SCHEMAS
# ==============================================================================

class GroupCreate(CamelModel):
    """
    Schema for creating or replacing a group.
    The password guards later edits and deletion.
    """
    name: str = Field(..., min_length=1, max_length=255, description="Group name")
    password: str = Field(..., min_length=1, description="Group password")
    image_url: Optional[str] = Field(None, max_length=1000, description="Cover image URL")
    is_public: StrictBool = Field(..., description="Whether the group is listed publicly")
    introduction: str = Field("", description="Group introduction")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        return _not_blank(v)


class GroupUpdate(GroupCreate):
    """Same fields as creation; the password must match the stored one."""


class PasswordBody(CamelModel):
    password: str = Field(..., min_length=1)


class GroupSummary(CamelModel):
    """Group as shown in list responses."""
    id: int
    name: str
    image_url: Optional[str] = None
    is_public: bool
    like_count: int = 0
    badge_count: int = 0
    post_count: int = 0
    created_at: Optional[datetime] = None
    introduction: str = ""


class GroupDetail(GroupSummary):
    """Group with its earned badges."""
    badges: List[str] = Field(default_factory=list)


# ==============================================================================
# POST SCHEMAS
# ==============================================================================

class PostBase(CamelModel):
    nickname: str = Field(..., min_length=1, max_length=100)
    title: str = Field(..., min_length=1, max_length=255)
    content: str = Field(..., min_length=1)
    image_url: Optional[str] = Field(None, max_length=1000)
    tags: List[str] = Field(default_factory=list)
    location: Optional[str] = Field(None, max_length=255)
    moment: datetime = Field(..., description="When the memory happened")
    is_public: StrictBool

    @field_validator("nickname", "title")
    @classmethod
    def validate_text(cls, v):
        return _not_blank(v)

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v):
        """Trim tags and drop empty ones"""
        return [tag.strip() for tag in v if tag and tag.strip()]


class PostCreate(PostBase):
    """
    Schema for posting a memory to a group.
    groupPassword must match the group's password.
    """
    post_password: str = Field(..., min_length=1)
    group_password: str = Field(..., min_length=1)


class PostUpdate(PostBase):
    post_password: str = Field(..., min_length=1)


class PostPasswordBody(CamelModel):
    post_password: str = Field(..., min_length=1)


class PostSummary(CamelModel):
    """Memory as shown in list responses (no content)."""
    id: int
    group_id: int
    nickname: str
    title: str
    image_url: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    location: Optional[str] = None
    moment: datetime
    is_public: bool
    like_count: int = 0
    comment_count: int = 0
    created_at: Optional[datetime] = None


class PostDetail(PostSummary):
    content: str


# ==============================================================================
# COMMENT SCHEMAS
# ==============================================================================

class CommentCreate(CamelModel):
    nickname: str = Field(..., min_length=1, max_length=100)
    content: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)

    @field_validator("nickname", "content")
    @classmethod
    def validate_text(cls, v):
        return _not_blank(v)


class Comment(CamelModel):
    id: int
    nickname: str
    content: str
    created_at: Optional[datetime] = None


# ==============================================================================
# USER SCHEMAS
# ==============================================================================

class UserRegister(CamelModel):
    """
    Schema for registering a new user.
    """
    username: str = Field(..., min_length=3, max_length=50, description="Unique username")
    email: str = Field(..., max_length=255, description="Unique email address")
    password: str = Field(..., min_length=8, description="User password (minimum 8 characters)")

    @field_validator("username")
    @classmethod
    def validate_username(cls, v):
        """Validate username format"""
        if not re.match(r'^[a-zA-Z0-9_]+$', v):
            raise ValueError('Username can only contain letters, numbers, and underscores')
        return v.strip()


class UserUpdate(CamelModel):
    """
    Partial profile update. At least one field must be provided.
    """
    username: Optional[str] = Field(None, min_length=3, max_length=50)
    email: Optional[str] = Field(None, max_length=255)
    profile_picture: Optional[str] = Field(None, max_length=1000)


class PasswordChange(CamelModel):
    old_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=8)


class User(CamelModel):
    """
    User as returned by the API. The password hash is never exposed.
    """
    id: int
    username: str
    email: str
    profile_picture: Optional[str] = None
    role: str = "user"
    created_at: Optional[datetime] = None


# ==============================================================================
# API RESPONSE SCHEMAS
# ==============================================================================

class PageEnvelope(CamelModel):
    current_page: int
    total_pages: int
    total_item_count: int


class GroupList(PageEnvelope):
    data: List[GroupSummary]


class PostList(PageEnvelope):
    data: List[PostSummary]


class CommentList(PageEnvelope):
    data: List[Comment]


class VisibilityStatus(CamelModel):
    id: int
    is_public: bool


class MessageResponse(BaseModel):
    """
    Generic message response schema.
    """
    message: str


class ImageUpload(CamelModel):
    image_url: str


class BadgeInfo(BaseModel):
    id: str
    description: str
