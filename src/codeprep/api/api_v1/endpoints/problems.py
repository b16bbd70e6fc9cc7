import logging
from datetime import date
from typing import Annotated, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic.alias_generators import to_camel

from src.codeprep.api.auth_deps import OptionalUser, can_view_premium
from src.codeprep.core.pbac import require_permission
from src.codeprep.crud.crud_daily_challenge import daily_challenge as crud_daily_challenge
from src.codeprep.crud.crud_problem import problem as crud_problem
from src.codeprep.crud.crud_submission import submission as crud_submission
from src.codeprep.db.session import SessionDep
from src.codeprep.models.base import utcnow
from src.codeprep.models.problem import Problem
from src.codeprep.models.user import User
from src.codeprep.schemas import (
    ApiResponse,
    DailyChallengeResponse,
    EvaluationOutcome,
    MessageResponse,
    ProblemCreate,
    ProblemList,
    ProblemResponse,
    ProblemSummary,
    ProblemUpdate,
    SubmissionCreate,
    SubmissionResponse,
)
from src.codeprep.schemas.problem import LISTABLE_FIELDS
from src.codeprep.services.evaluator import (
    EvaluationResult,
    EvaluatorClient,
    EvaluatorUnavailableError,
    build_evaluation_request,
    get_evaluator,
)
from src.codeprep.utils.languages import get_language_id, get_language_name

logger = logging.getLogger(__name__)

router = APIRouter()

EvaluatorDep = Annotated[EvaluatorClient, Depends(get_evaluator)]

_FIELD_NAMES = {name: name for name in LISTABLE_FIELDS} | {to_camel(name): name for name in LISTABLE_FIELDS}


def parse_fields(fields: Optional[str]) -> List[str]:
    """Listing columns from a comma-separated ``fields`` query, in either case style."""
    if not fields:
        return list(LISTABLE_FIELDS)
    selected = []
    for raw in fields.split(","):
        name = raw.strip()
        if not name:
            continue
        if name not in _FIELD_NAMES:
            raise HTTPException(status_code=400, detail=f"Unknown field: {name}")
        if _FIELD_NAMES[name] not in selected:
            selected.append(_FIELD_NAMES[name])
    return selected or list(LISTABLE_FIELDS)


async def get_problem_or_404(db: SessionDep, problem_id: UUID) -> Problem:
    problem = await crud_problem.get(db, id=problem_id)
    if not problem:
        raise HTTPException(status_code=404, detail="Problem not found")
    return problem


def ensure_premium_access(problem: Problem, user: Optional[User]) -> None:
    if problem.is_premium and not can_view_premium(user):
        raise HTTPException(status_code=403, detail="This problem requires an active subscription")


async def to_response(db: SessionDep, problem: Problem) -> ProblemResponse:
    stats = await crud_problem.get_stats(db, problem_id=problem.id)
    return ProblemResponse.model_validate(problem).model_copy(update=stats)


async def evaluate_submission(
    evaluator: EvaluatorClient, problem: Problem, submission_in: SubmissionCreate
) -> EvaluationResult:
    """Run code against the problem's stored test cases.

    Raises:
        HTTPException: 400 for an unsupported language or a problem without
            test cases, 500 when the evaluator is unavailable
    """
    language_id = get_language_id(submission_in.language)
    if language_id is None:
        raise HTTPException(status_code=400, detail=f"Unsupported language: {submission_in.language}")
    if not problem.test_cases:
        raise HTTPException(status_code=400, detail="Problem has no test cases")

    request = build_evaluation_request(problem, source_code=submission_in.code, language_id=language_id)
    try:
        return await evaluator.evaluate(request)
    except EvaluatorUnavailableError as e:
        logger.error(f"Evaluation of problem {problem.id} failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Code execution service is unavailable",
        )


@router.get("", response_model=ApiResponse[ProblemList])
async def read_problems(db: SessionDep, fields: Optional[str] = None):
    """
    List problems, oldest first.

    Premium problems are listed too; only their detail is gated.

    Args:
        fields: Comma-separated subset of id, title, difficulty, tags,
            companies and isPremium. Submission stats are always included.
    """
    rows = await crud_problem.list_with_stats(db, fields=parse_fields(fields))
    problems = [ProblemSummary(**row).model_dump(by_alias=True, exclude_unset=True) for row in rows]
    return ApiResponse(data=ProblemList(problems=problems))


@router.post("", response_model=ApiResponse[ProblemResponse], status_code=status.HTTP_201_CREATED)
async def create_problem(
    problem_in: ProblemCreate,
    db: SessionDep,
    current_user: Annotated[User, Depends(require_permission("create", "problems"))]
):
    """Create a problem. Admin only."""
    problem = await crud_problem.create(db, obj_in=problem_in)
    logger.info(f"Problem {problem.id} created by {current_user.id}")
    return ApiResponse(message="Problem created", data=await to_response(db, problem))


@router.get("/daily", response_model=ApiResponse[DailyChallengeResponse])
async def read_daily_challenge(
    db: SessionDep,
    day: Annotated[Optional[date], Query(alias="date")] = None,
):
    """
    Problem of the day.

    Args:
        day: Calendar day as ``YYYY-MM-DD``; today (UTC) when omitted

    Premium problems are named here like in the listing; their detail stays gated.
    """
    day = day or utcnow().date()
    found = await crud_daily_challenge.get_for_date(db, day=day)
    if not found:
        raise HTTPException(status_code=404, detail="No daily challenge for this date")
    challenge, problem = found
    return ApiResponse(data=DailyChallengeResponse(
        challenge_date=challenge.challenge_date,
        problem_id=problem.id,
        title=problem.title,
        difficulty=problem.difficulty,
        tags=problem.tags or [],
        is_premium=problem.is_premium,
    ))


@router.get("/{problem_id}", response_model=ApiResponse[ProblemResponse])
async def read_problem(problem_id: UUID, db: SessionDep, current_user: OptionalUser):
    """Get a problem. Premium problems need an active subscription."""
    problem = await get_problem_or_404(db, problem_id)
    ensure_premium_access(problem, current_user)
    return ApiResponse(data=await to_response(db, problem))


@router.put("/{problem_id}", response_model=ApiResponse[ProblemResponse])
async def update_problem(
    problem_id: UUID,
    problem_in: ProblemUpdate,
    db: SessionDep,
    current_user: Annotated[User, Depends(require_permission("update", "problems"))]
):
    """Update a problem. Admin only; only fields sent are changed."""
    problem = await get_problem_or_404(db, problem_id)
    problem = await crud_problem.update(db, db_obj=problem, obj_in=problem_in)
    return ApiResponse(message="Problem updated", data=await to_response(db, problem))


@router.delete("/{problem_id}", response_model=MessageResponse)
async def delete_problem(
    problem_id: UUID,
    db: SessionDep,
    current_user: Annotated[User, Depends(require_permission("delete", "problems"))]
):
    """Delete a problem. Admin only; its submissions are kept."""
    problem = await crud_problem.remove(db, id=problem_id)
    if not problem:
        raise HTTPException(status_code=404, detail="Problem not found")
    logger.info(f"Problem {problem_id} deleted by {current_user.id}")
    return MessageResponse(message="Problem deleted")


@router.get("/{problem_id}/submissions", response_model=ApiResponse[List[SubmissionResponse]])
async def read_problem_submissions(
    problem_id: UUID,
    db: SessionDep,
    current_user: Annotated[User, Depends(require_permission("read", "submissions"))],
    user_id: Annotated[Optional[UUID], Query(alias="userId")] = None,
):
    """The caller's own submissions to a problem, newest first, at most 50.

    Naming another user with ``userId`` is rejected, not filtered.
    """
    if user_id is not None and user_id != current_user.id:
        raise HTTPException(status_code=403, detail="You can only view your own submissions")
    submissions = await crud_submission.get_for_user_and_problem(
        db, user_id=current_user.id, problem_id=problem_id
    )
    return ApiResponse(data=[SubmissionResponse.model_validate(s) for s in submissions])


@router.post(
    "/{problem_id}/submissions",
    response_model=ApiResponse[SubmissionResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_problem_submission(
    problem_id: UUID,
    submission_in: SubmissionCreate,
    db: SessionDep,
    evaluator: EvaluatorDep,
    current_user: Annotated[User, Depends(require_permission("create", "submissions"))],
):
    """
    Evaluate code against the problem's test cases and store the verdict.

    Nothing is stored when the evaluator is unavailable.
    """
    problem = await get_problem_or_404(db, problem_id)
    ensure_premium_access(problem, current_user)
    # Captured before any commit touches the session
    user_id = current_user.id

    result = await evaluate_submission(evaluator, problem, submission_in)
    submission = await crud_submission.create_from_result(
        db,
        problem_id=problem.id,
        user_id=user_id,
        code=submission_in.code,
        language=get_language_name(submission_in.language),
        result=result,
    )
    logger.info(f"Submission {submission.id} on problem {problem.id}: {result.status}")
    return ApiResponse(data=SubmissionResponse.model_validate(submission))


@router.post("/{problem_id}/run", response_model=ApiResponse[EvaluationOutcome])
async def run_problem_code(
    problem_id: UUID,
    submission_in: SubmissionCreate,
    db: SessionDep,
    evaluator: EvaluatorDep,
    current_user: Annotated[User, Depends(require_permission("create", "submissions"))],
):
    """Evaluate code against the problem's test cases without storing anything."""
    problem = await get_problem_or_404(db, problem_id)
    ensure_premium_access(problem, current_user)
    result = await evaluate_submission(evaluator, problem, submission_in)
    return ApiResponse(data=EvaluationOutcome(
        status=result.status,
        runtime=result.runtime,
        memory=result.memory,
        test_cases_passed=result.test_cases_passed,
        total_test_cases=result.total_test_cases,
    ))
