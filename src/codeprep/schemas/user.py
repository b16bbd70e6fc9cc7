from typing import Optional
from datetime import datetime
from uuid import UUID
from pydantic import EmailStr, Field

from .base import BaseSchema, BaseResponseSchema
from .enums import AuthProvider, Role


# request
# Properties to receive on object creation
# in
class UserCreate(BaseSchema):
    """Schema for creating a user with credentials."""
    email: EmailStr
    password: str = Field(min_length=6)
    username: Optional[str] = Field(default=None, min_length=3, max_length=40)
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)


class OAuthUserCreate(BaseSchema):
    """Profile forwarded by the external auth framework after an OAuth login."""
    email: EmailStr
    provider: AuthProvider
    name: Optional[str] = None
    profile_picture: Optional[str] = None


# Properties to receive on User update
# in
class UserUpdate(BaseSchema):
    """Schema for updating the current user's profile."""
    username: Optional[str] = Field(default=None, min_length=3, max_length=40)
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_picture: Optional[str] = None


# Properties to return to client
# out
class UserPublic(BaseSchema):
    """Public user schema without sensitive fields."""
    id: UUID
    username: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_picture: Optional[str] = None
    created_at: datetime


class UserResponse(BaseResponseSchema):
    """The signed-in user's own account."""
    email: EmailStr
    username: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_picture: Optional[str] = None
    role: Role
    auth_provider: str
    is_subscribed: bool
    subscription_plan: Optional[str] = None
    subscription_expires_at: Optional[datetime] = None


class UserStatistics(BaseSchema):
    """Solved-problem statistics of one user.

    ``user_acceptance_rate`` is a whole percentage of distinct solved problems
    over all of the user's submissions. It is not the per-problem rate.
    """
    total_submissions: int
    total_solved: int
    user_acceptance_rate: int
    solved_by_difficulty: dict[str, int]
    solved_by_language: dict[str, int]
