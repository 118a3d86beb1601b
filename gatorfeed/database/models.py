"""
GatorFeed Data Models
=====================

Pydantic data models for type safety and validation throughout the application.
These models correspond to the database schema and provide validation,
serialization, and type hints.
"""

from datetime import datetime, timezone
from typing import Optional
from pydantic import BaseModel, Field, field_validator
import uuid


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


def to_db_timestamp(value: Optional[datetime]) -> Optional[str]:
    """Serialize a datetime as a UTC ISO-8601 string for storage.

    All stored timestamps share this format so they sort correctly as text.
    Naive values are taken to be UTC.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


class User(BaseModel):
    """Registered user."""
    id: str = Field(default_factory=_new_id, description="Unique user ID")
    name: str = Field(..., min_length=1, max_length=255, description="Unique user name")
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    def __str__(self) -> str:
        return f"User({self.name})"


class Feed(BaseModel):
    """RSS feed source model."""
    id: str = Field(default_factory=_new_id, description="Unique feed ID")
    name: str = Field(..., min_length=1, max_length=255, description="Feed display name")
    url: str = Field(..., min_length=1, description="RSS feed URL")
    user_id: str = Field(..., description="Owning user ID")
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)
    last_fetched_at: Optional[datetime] = Field(default=None, description="Last fetch attempt")

    def __str__(self) -> str:
        return f"Feed({self.name})"


class FeedFollow(BaseModel):
    """A user's subscription to a feed."""
    id: str = Field(default_factory=_new_id)
    user_id: str = Field(...)
    feed_id: str = Field(...)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class NewPost(BaseModel):
    """Normalized feed item ready to be stored."""
    feed_id: str = Field(..., description="Owning feed ID")
    title: str = Field(default="", max_length=1000, description="Item title")
    url: str = Field(..., min_length=1, description="Item link, unique across posts")
    description: Optional[str] = Field(default=None, description="Item description")
    published_at: Optional[datetime] = Field(default=None, description="Parsed publish date")

    @field_validator("url")
    @classmethod
    def strip_url(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Post URL cannot be blank")
        return v

    @field_validator("title", mode="before")
    @classmethod
    def truncate_title(cls, v):
        """Keep overly long titles within the column limit."""
        return str(v or "").strip()[:1000]


class Post(BaseModel):
    """Persisted, normalized feed item."""
    id: str = Field(default_factory=_new_id, description="Unique post ID")
    feed_id: str = Field(...)
    title: str = Field(default="")
    url: str = Field(...)
    description: Optional[str] = Field(default=None)
    published_at: Optional[datetime] = Field(default=None)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    @classmethod
    def from_new_post(cls, item: NewPost) -> "Post":
        return cls(
            feed_id=item.feed_id,
            title=item.title,
            url=item.url,
            description=item.description,
            published_at=item.published_at,
        )

    def __str__(self) -> str:
        return f"Post({self.title[:50]})"


class FeedWithOwner(BaseModel):
    """Feed joined with the name of the user who added it."""
    feed: Feed
    user_name: str


class FollowedFeed(BaseModel):
    """Follow record joined with user and feed names."""
    follow: FeedFollow
    user_name: str
    feed_name: str
    feed_url: str


class PostView(BaseModel):
    """Post joined with the name of its feed, for browsing."""
    post: Post
    feed_name: str

