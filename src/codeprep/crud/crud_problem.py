from typing import Any, Dict, Iterable, List, Sequence
from uuid import UUID

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.codeprep.crud.base import CRUDBase
from src.codeprep.models.problem import Problem as ProblemModel
from src.codeprep.models.submission import Submission as SubmissionModel
from src.codeprep.schemas import ProblemCreate, ProblemUpdate
from src.codeprep.schemas.problem import LISTABLE_FIELDS
from src.codeprep.services.statistics import problem_acceptance_rate

ACCEPTED = "accepted"


def empty_stats() -> Dict[str, Any]:
    return {"total_submissions": 0, "accepted_submissions": 0, "problem_acceptance_rate": 0.0}


class CRUDProblem(CRUDBase[ProblemModel, ProblemCreate, ProblemUpdate]):
    """CRUD operations for the problem catalog."""

    async def submission_stats(self, db: AsyncSession, *, problem_ids: Iterable[UUID]) -> Dict[UUID, Dict[str, Any]]:
        """
        Submission counts for many problems in one grouped query.

        Args:
            db: Database session
            problem_ids: Problems to count; ids without submissions get zeros

        Returns:
            Dict[UUID, Dict[str, Any]]: total_submissions, accepted_submissions
            and problem_acceptance_rate per problem id
        """
        problem_ids = list(problem_ids)
        stats = {problem_id: empty_stats() for problem_id in problem_ids}
        if not problem_ids:
            return stats

        stmt = (
            select(
                SubmissionModel.problem_id,
                func.count(SubmissionModel.id),
                func.sum(case((SubmissionModel.status == ACCEPTED, 1), else_=0)),
            )
            .where(SubmissionModel.problem_id.in_(problem_ids))
            .group_by(SubmissionModel.problem_id)
        )
        result = await db.execute(stmt)
        for problem_id, total, accepted in result.all():
            accepted = int(accepted or 0)
            stats[problem_id] = {
                "total_submissions": total,
                "accepted_submissions": accepted,
                "problem_acceptance_rate": problem_acceptance_rate(accepted, total),
            }
        return stats

    async def list_with_stats(self, db: AsyncSession, *, fields: Sequence[str] = LISTABLE_FIELDS) -> List[Dict[str, Any]]:
        """Listing rows with only the requested columns plus submission stats.

        ``id`` is always selected since the stats are keyed on it.
        """
        columns = ["id"] + [name for name in fields if name != "id"]
        stmt = select(*(getattr(ProblemModel, name) for name in columns)).order_by(ProblemModel.created_at)
        result = await db.execute(stmt)
        rows = [dict(zip(columns, row)) for row in result.all()]

        stats = await self.submission_stats(db, problem_ids=[row["id"] for row in rows])
        for row in rows:
            row.update(stats[row["id"]])
        return rows

    async def get_stats(self, db: AsyncSession, *, problem_id: UUID) -> Dict[str, Any]:
        stats = await self.submission_stats(db, problem_ids=[problem_id])
        return stats[problem_id]

    async def create(self, db: AsyncSession, *, obj_in: ProblemCreate) -> ProblemModel:
        return await super().create(db, obj_in=obj_in.to_row())

    async def update(self, db: AsyncSession, *, db_obj: ProblemModel, obj_in: ProblemUpdate) -> ProblemModel:
        # model_dump turns nested TestCase models into plain dicts for the JSON column
        return await super().update(db, db_obj=db_obj, obj_in=obj_in.model_dump(exclude_unset=True))


problem = CRUDProblem(ProblemModel)
