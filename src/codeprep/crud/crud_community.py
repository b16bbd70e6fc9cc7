import logging
from datetime import timedelta
from typing import Dict, Iterable, List, Optional, Tuple
from uuid import UUID

from pydantic import BaseModel
from sqlalchemy import case, delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.codeprep.crud.base import CRUDBase
from src.codeprep.models.base import utcnow
from src.codeprep.models.community import Comment as CommentModel
from src.codeprep.models.community import Post as PostModel
from src.codeprep.models.community import Vote as VoteModel
from src.codeprep.models.user import User as UserModel
from src.codeprep.schemas import CommentCreate, PostCreate

logger = logging.getLogger(__name__)

POST_LIFETIME = timedelta(days=30)
FEED_LIMIT = 50
# Posts under this topic belong to problem pages, not the community feed
PROBLEM_DISCUSSION_TOPIC = "Problem Discussion"

Tally = Tuple[int, str]


class CRUDPost(CRUDBase[PostModel, PostCreate, BaseModel]):
    """CRUD operations for community posts and their votes."""

    async def create_for_user(self, db: AsyncSession, *, obj_in: PostCreate, user: UserModel) -> PostModel:
        return await self.create(db, obj_in={
            "user_id": user.id,
            "username": user.username,
            "title": obj_in.title,
            "content": obj_in.content,
            "topic": obj_in.topic or "Interview",
            "is_anonymous": obj_in.is_anonymous,
            "expires_at": utcnow() + POST_LIFETIME,
        })

    async def get_feed(self, db: AsyncSession, *, topic: Optional[str] = None, limit: int = FEED_LIMIT) -> List[PostModel]:
        """Unexpired posts, newest first.

        Without a topic, problem discussions are left out.
        """
        stmt = select(PostModel).where(PostModel.expires_at > utcnow())
        if topic:
            stmt = stmt.where(PostModel.topic == topic)
        else:
            stmt = stmt.where(PostModel.topic != PROBLEM_DISCUSSION_TOPIC)
        stmt = stmt.order_by(PostModel.created_at.desc()).limit(limit)
        result = await db.execute(stmt)
        return list(result.scalars().all())

    async def tallies(
        self, db: AsyncSession, *, post_ids: Iterable[UUID], viewer_id: Optional[UUID] = None
    ) -> Dict[UUID, Tally]:
        """
        Net votes and the viewer's own vote for each post.

        Args:
            db: Database session
            post_ids: Posts to tally
            viewer_id: User whose vote is reported, None for anonymous viewers

        Returns:
            Dict[UUID, Tally]: (upvotes - downvotes, "upvote" | "downvote" | "none")
        """
        post_ids = list(post_ids)
        tallies = {post_id: (0, "none") for post_id in post_ids}
        if not post_ids:
            return tallies

        net = func.sum(
            case(
                (VoteModel.vote_type == "upvote", 1),
                (VoteModel.vote_type == "downvote", -1),
                else_=0,
            )
        )
        stmt = (
            select(VoteModel.post_id, net)
            .where(VoteModel.post_id.in_(post_ids))
            .group_by(VoteModel.post_id)
        )
        for post_id, votes in (await db.execute(stmt)).all():
            tallies[post_id] = (int(votes or 0), "none")

        if viewer_id is not None:
            own_stmt = select(VoteModel.post_id, VoteModel.vote_type).where(
                VoteModel.post_id.in_(post_ids), VoteModel.user_id == viewer_id
            )
            for post_id, vote_type in (await db.execute(own_stmt)).all():
                tallies[post_id] = (tallies[post_id][0], vote_type)
        return tallies

    async def _apply_vote(self, db: AsyncSession, *, post_id: UUID, user_id: UUID, vote_type: str) -> None:
        stmt = select(VoteModel).where(VoteModel.post_id == post_id, VoteModel.user_id == user_id)
        existing = (await db.execute(stmt)).scalar_one_or_none()
        if vote_type == "none":
            if existing:
                await db.delete(existing)
        elif existing:
            existing.vote_type = vote_type
            existing.updated_at = utcnow()
        else:
            db.add(VoteModel(post_id=post_id, user_id=user_id, vote_type=vote_type))
        await db.flush()

    async def cast_vote(self, db: AsyncSession, *, post_id: UUID, user_id: UUID, vote_type: str) -> Tally:
        """Insert, change or remove a user's vote and return the new tally.

        The write and the tally run in one transaction. A concurrent first
        vote by the same user trips the unique constraint; the write is then
        retried against the row that won.
        """
        try:
            await self._apply_vote(db, post_id=post_id, user_id=user_id, vote_type=vote_type)
        except IntegrityError:
            await db.rollback()
            logger.info(f"Concurrent vote on post {post_id} by {user_id}, retrying as update")
            await self._apply_vote(db, post_id=post_id, user_id=user_id, vote_type=vote_type)

        tally = (await self.tallies(db, post_ids=[post_id], viewer_id=user_id))[post_id]
        await db.commit()
        return tally

    async def delete_with_children(self, db: AsyncSession, *, db_obj: PostModel) -> None:
        """Hard-delete a post together with its comments and votes."""
        await db.execute(delete(VoteModel).where(VoteModel.post_id == db_obj.id))
        await db.execute(delete(CommentModel).where(CommentModel.post_id == db_obj.id))
        await db.delete(db_obj)
        await db.commit()


class CRUDComment(CRUDBase[CommentModel, CommentCreate, BaseModel]):
    """CRUD operations for comments on posts."""

    async def create_for_post(
        self, db: AsyncSession, *, obj_in: CommentCreate, post_id: UUID, user: UserModel
    ) -> CommentModel:
        return await self.create(db, obj_in={
            "post_id": post_id,
            "user_id": user.id,
            "username": user.username,
            "content": obj_in.content,
        })

    async def get_for_posts(self, db: AsyncSession, *, post_ids: Iterable[UUID]) -> Dict[UUID, List[CommentModel]]:
        """Comments of many posts in one query, newest first per post."""
        post_ids = list(post_ids)
        comments = {post_id: [] for post_id in post_ids}
        if not post_ids:
            return comments
        stmt = (
            select(CommentModel)
            .where(CommentModel.post_id.in_(post_ids))
            .order_by(CommentModel.created_at.desc())
        )
        for comment in (await db.execute(stmt)).scalars().all():
            comments[comment.post_id].append(comment)
        return comments


post = CRUDPost(PostModel)
comment = CRUDComment(CommentModel)
