from typing import Any, Literal, Optional
from datetime import datetime
from uuid import UUID

from pydantic import Field, model_validator

from .base import BaseSchema, BaseResponseSchema, CreateBase
from .enums import Difficulty, InterviewStatus


class InterviewCreate(CreateBase):
    """Schema for scheduling an interview."""
    position: str = Field(min_length=1)
    company_name: Optional[str] = None
    job_description: Optional[str] = None
    interview_type: str = Field(min_length=1)
    duration: str = Field(min_length=1)
    difficulty: Difficulty = Difficulty.MEDIUM
    interviewer_name: Optional[str] = None
    scheduled_at: Optional[datetime] = None


class InterviewUpdate(BaseSchema):
    """Schema for updating an interview. Only fields sent are changed."""
    status: Optional[InterviewStatus] = None
    feedback: Optional[str] = None
    rating: Optional[int] = Field(default=None, ge=1, le=10)

    @model_validator(mode="after")
    def status_not_cleared(self) -> "InterviewUpdate":
        if "status" in self.model_fields_set and self.status is None:
            raise ValueError("status cannot be null")
        return self


class InterviewResponse(BaseResponseSchema):
    """Stored interview."""
    user_id: UUID
    position: str
    company_name: Optional[str] = None
    job_description: Optional[str] = None
    interview_type: str
    difficulty: str
    duration: str
    questions: list[Any]
    interviewer_name: Optional[str] = None
    scheduled_at: Optional[datetime] = None
    status: str
    feedback: Optional[str] = None
    rating: Optional[int] = None


class TranscriptTurn(BaseSchema):
    role: Literal["assistant", "user"]
    text: str


class FollowUpRequest(BaseSchema):
    """Candidate answer to the current question."""
    user_input: str = Field(min_length=1)
    question_index: int = Field(default=0, ge=0)
    candidate_name: Optional[str] = None


class FollowUpResponse(BaseSchema):
    response: str
    fallback: bool


class FeedbackRequest(BaseSchema):
    """Transcript of a finished interview."""
    transcript: list[TranscriptTurn] = []
    completion_rate: Optional[float] = Field(default=None, ge=0, le=100)


class FeedbackResponse(BaseSchema):
    feedback: str
    fallback: bool
