from datetime import date
from typing import Any, Optional
from uuid import UUID

from pydantic import AliasChoices, Field, field_validator, model_validator

from .base import BaseSchema, BaseResponseSchema
from .enums import Difficulty

# Columns a caller may pick with ``GET /problems?fields=``
LISTABLE_FIELDS = ("id", "title", "difficulty", "tags", "companies", "is_premium")


class TestCase(BaseSchema):
    """One input/output pair; order within a problem is significant."""
    input: str = ""
    output: str = ""


class ProblemFields(BaseSchema):
    """Optional problem attributes shared by create and update."""
    editorial: Optional[Any] = None
    tags: Optional[list[str]] = None
    companies: Optional[list[Any]] = None
    starter_code: Optional[dict[str, str]] = None
    top_code: Optional[dict[str, str]] = None
    bottom_code: Optional[dict[str, str]] = None
    solution: Optional[dict[str, str]] = Field(
        default=None,
        validation_alias=AliasChoices("referenceSolution", "reference_solution", "solution"),
    )
    test_cases: Optional[list[TestCase]] = None
    hints: Optional[list[str]] = None
    is_premium: Optional[bool] = None


class ProblemCreate(ProblemFields):
    """Schema for creating a problem."""
    title: str
    difficulty: Difficulty
    description: list[Any]

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Title is required")
        return v

    def to_row(self) -> dict[str, Any]:
        """Column values, with empty collections for omitted optional fields."""
        data = self.model_dump()
        for key, empty in (
            ("tags", []), ("companies", []), ("starter_code", {}), ("top_code", {}),
            ("bottom_code", {}), ("solution", {}), ("test_cases", []), ("hints", []),
            ("is_premium", False),
        ):
            if data[key] is None:
                data[key] = empty
        return data


class ProblemUpdate(ProblemFields):
    """Schema for updating a problem. Only fields sent are changed."""
    title: Optional[str] = None
    difficulty: Optional[Difficulty] = None
    description: Optional[list[Any]] = None

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is not None:
            v = v.strip()
            if not v:
                raise ValueError("Title cannot be empty")
        return v

    @model_validator(mode="after")
    def required_fields_not_cleared(self) -> "ProblemUpdate":
        for name in ("title", "difficulty", "description"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self


class ProblemResponse(BaseResponseSchema):
    """Full problem detail."""
    title: str
    description: list[Any]
    editorial: Optional[Any] = None
    difficulty: str
    tags: list[str]
    companies: list[Any]
    starter_code: dict[str, str]
    top_code: dict[str, str]
    bottom_code: dict[str, str]
    solution: dict[str, str]
    test_cases: list[TestCase]
    hints: list[str]
    is_premium: bool
    total_submissions: int = 0
    accepted_submissions: int = 0
    problem_acceptance_rate: float = 0.0


class ProblemSummary(BaseSchema):
    """Listing row. Only the columns asked for are set."""
    id: Optional[UUID] = None
    title: Optional[str] = None
    difficulty: Optional[str] = None
    tags: Optional[list[str]] = None
    companies: Optional[list[Any]] = None
    is_premium: Optional[bool] = None
    total_submissions: int = 0
    accepted_submissions: int = 0
    problem_acceptance_rate: float = 0.0


class ProblemList(BaseSchema):
    problems: list[dict[str, Any]]


class DailyChallengeResponse(BaseSchema):
    """Problem of the day, with the same columns the listing exposes."""
    challenge_date: date
    problem_id: UUID
    title: str
    difficulty: str
    tags: list[str]
    is_premium: bool
