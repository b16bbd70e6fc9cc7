from typing import Any, Optional, Union
from datetime import datetime
from uuid import UUID

from pydantic import Field, field_validator

from .base import BaseSchema
from .enums import VoteType


class PostCreate(BaseSchema):
    """Schema for creating a post."""
    title: str
    content: Union[str, list[Any]]
    topic: str = "Interview"
    is_anonymous: bool = False

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Title and content required")
        return v

    @field_validator("content")
    @classmethod
    def content_not_empty(cls, v: Union[str, list[Any]]) -> Union[str, list[Any]]:
        if isinstance(v, str):
            v = v.strip()
        if not v:
            raise ValueError("Title and content required")
        return v


class CommentCreate(BaseSchema):
    """Schema for commenting on a post."""
    content: str

    @field_validator("content")
    @classmethod
    def content_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Content required")
        return v


class VoteCreate(BaseSchema):
    vote_type: VoteType


class CommentResponse(BaseSchema):
    id: UUID
    post_id: UUID
    user_id: UUID
    username: str
    content: str
    created_at: datetime
    is_owner: bool = False


class PostResponse(BaseSchema):
    """Post as rendered to a viewer.

    For anonymous posts ``user_id`` and ``username`` are withheld from everyone
    but the author.
    """
    id: UUID
    user_id: Optional[UUID] = None
    username: str
    title: str
    content: Union[str, list[Any]]
    topic: str
    is_anonymous: bool
    created_at: datetime
    expires_at: datetime
    votes: int = 0
    user_vote: VoteType = VoteType.NONE
    is_owner: bool = False
    comment_count: int = 0
    comments: list[CommentResponse] = Field(default_factory=list)


class VoteTally(BaseSchema):
    post_id: UUID
    votes: int
    user_vote: VoteType
