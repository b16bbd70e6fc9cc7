from typing import Optional
from uuid import UUID

from pydantic import AliasChoices, Field

from .base import BaseSchema, BaseResponseSchema


class SubmissionCreate(BaseSchema):
    """Code sent for evaluation against a problem's test cases."""
    code: str = Field(
        min_length=1,
        validation_alias=AliasChoices("code", "sourceCode", "source_code"),
    )
    # Display name ("Python") or evaluator language id ("71")
    language: str = Field(min_length=1)


class EvaluationOutcome(BaseSchema):
    """What the evaluator reported for one run."""
    status: str
    runtime: Optional[str] = None
    memory: Optional[str] = None
    test_cases_passed: int
    total_test_cases: int


class SubmissionResponse(BaseResponseSchema):
    """Stored submission."""
    problem_id: UUID
    user_id: UUID
    code: str
    language: str
    status: str
    runtime: Optional[str] = None
    memory: Optional[str] = None
    test_cases_passed: int
    total_test_cases: int
