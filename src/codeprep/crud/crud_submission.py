from typing import List
from uuid import UUID

from pydantic import BaseModel
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.codeprep.crud.base import CRUDBase
from src.codeprep.models.problem import Problem as ProblemModel
from src.codeprep.models.submission import Submission as SubmissionModel
from src.codeprep.services.evaluator import EvaluationResult
from src.codeprep.services.statistics import summarize_solved

MAX_SUBMISSIONS_LISTED = 50


class CRUDSubmission(CRUDBase[SubmissionModel, BaseModel, BaseModel]):
    """CRUD operations for submissions. Rows are written once and never updated."""

    async def create_from_result(
        self,
        db: AsyncSession,
        *,
        problem_id: UUID,
        user_id: UUID,
        code: str,
        language: str,
        result: EvaluationResult,
    ) -> SubmissionModel:
        """Persist the evaluator's verdict exactly as reported."""
        return await self.create(db, obj_in={
            "problem_id": problem_id,
            "user_id": user_id,
            "code": code,
            "language": language,
            "status": result.status,
            "runtime": result.runtime,
            "memory": result.memory,
            "test_cases_passed": result.test_cases_passed,
            "total_test_cases": result.total_test_cases,
        })

    async def get_for_user_and_problem(
        self, db: AsyncSession, *, user_id: UUID, problem_id: UUID, limit: int = MAX_SUBMISSIONS_LISTED
    ) -> List[SubmissionModel]:
        """One user's submissions to one problem, newest first."""
        stmt = (
            select(SubmissionModel)
            .where(SubmissionModel.user_id == user_id, SubmissionModel.problem_id == problem_id)
            .order_by(SubmissionModel.created_at.desc())
            .limit(limit)
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())

    async def get_user_statistics(self, db: AsyncSession, *, user_id: UUID) -> dict:
        """Solved-problem statistics for one user.

        Accepted submissions to problems that were since deleted are not
        counted as solved, but still count towards total submissions.
        """
        total_stmt = select(func.count(SubmissionModel.id)).where(SubmissionModel.user_id == user_id)
        total = (await db.execute(total_stmt)).scalar_one()

        accepted_stmt = (
            select(SubmissionModel.problem_id, ProblemModel.difficulty, SubmissionModel.language)
            .join(ProblemModel, ProblemModel.id == SubmissionModel.problem_id)
            .where(SubmissionModel.user_id == user_id, SubmissionModel.status == "accepted")
        )
        accepted_rows = (await db.execute(accepted_stmt)).all()
        return summarize_solved(accepted_rows, total)


submission = CRUDSubmission(SubmissionModel)
