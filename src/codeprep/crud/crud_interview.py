from typing import List
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.codeprep.crud.base import CRUDBase
from src.codeprep.models.interview import Interview as InterviewModel
from src.codeprep.schemas import InterviewCreate, InterviewUpdate


class CRUDInterview(CRUDBase[InterviewModel, InterviewCreate, InterviewUpdate]):
    """CRUD operations for mock interviews."""

    async def create_for_user(
        self, db: AsyncSession, *, obj_in: InterviewCreate, user_id: UUID, questions: List[str]
    ) -> InterviewModel:
        data = obj_in.model_dump()
        data.update(user_id=user_id, questions=questions, status="scheduled")
        return await self.create(db, obj_in=data)

    async def get_multi_by_user(self, db: AsyncSession, *, user_id: UUID) -> List[InterviewModel]:
        """A user's interviews, newest first."""
        stmt = (
            select(InterviewModel)
            .where(InterviewModel.user_id == user_id)
            .order_by(InterviewModel.created_at.desc())
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())


interview = CRUDInterview(InterviewModel)
