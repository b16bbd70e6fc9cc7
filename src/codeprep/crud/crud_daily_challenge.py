import calendar
import random
from datetime import date
from typing import List, Optional, Sequence, Tuple
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.codeprep.crud.base import CRUDBase
from src.codeprep.models.daily_challenge import DailyChallenge as DailyChallengeModel
from src.codeprep.models.problem import Problem as ProblemModel
from src.codeprep.schemas import DailyChallengeResponse


def month_key(day: date) -> str:
    return f"{day.year}-{day.month:02d}"


class CRUDDailyChallenge(CRUDBase[DailyChallengeModel, DailyChallengeResponse, DailyChallengeResponse]):
    """Problem of the day calendar."""

    async def get_for_date(
        self, db: AsyncSession, *, day: date
    ) -> Optional[Tuple[DailyChallengeModel, ProblemModel]]:
        """The challenge of a day joined with its problem, or None."""
        stmt = (
            select(DailyChallengeModel, ProblemModel)
            .join(ProblemModel, ProblemModel.id == DailyChallengeModel.problem_id)
            .where(DailyChallengeModel.challenge_date == day)
        )
        result = await db.execute(stmt)
        row = result.first()
        return tuple(row) if row else None

    async def fill_month(
        self,
        db: AsyncSession,
        *,
        year: int,
        month: int,
        problem_ids: Sequence[UUID],
        rng: Optional[random.Random] = None,
    ) -> int:
        """Pick a random problem for every day of the month that has none.

        Rows are added to the session; the caller commits.

        Returns:
            int: Number of challenges added
        """
        if not problem_ids:
            return 0
        rng = rng or random.Random()
        result = await db.execute(
            select(DailyChallengeModel.challenge_date).where(
                DailyChallengeModel.month == month_key(date(year, month, 1))
            )
        )
        taken = set(result.scalars().all())

        added: List[DailyChallengeModel] = []
        for day_number in range(1, calendar.monthrange(year, month)[1] + 1):
            day = date(year, month, day_number)
            if day in taken:
                continue
            added.append(DailyChallengeModel(
                problem_id=rng.choice(problem_ids),
                challenge_date=day,
                month=month_key(day),
            ))
        db.add_all(added)
        return len(added)


daily_challenge = CRUDDailyChallenge(DailyChallengeModel)
