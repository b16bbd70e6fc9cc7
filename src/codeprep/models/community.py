from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, ForeignKey, JSON, String, UniqueConstraint, UUID as SQLUUID

from .base import Base


class Post(Base):
    """Community post.

    ``username`` is a snapshot taken when the post is written. Renaming an
    account does not update it. Anonymous posts keep the real ``user_id`` for
    ownership checks; only the rendered author is hidden.
    """
    __tablename__ = "community_posts"

    user_id = Column(SQLUUID, ForeignKey("users.id"), nullable=False, index=True)
    username = Column(String, nullable=False)
    title = Column(String, nullable=False)
    content = Column(JSON, nullable=False)  # plain string or block document
    topic = Column(String, nullable=False, default="Interview")
    is_anonymous = Column(Boolean, nullable=False, default=False)
    expires_at = Column(DateTime, nullable=False)


class Comment(Base):
    """Comment on a community post; ``username`` is a snapshot like on Post."""
    __tablename__ = "community_comments"

    post_id = Column(SQLUUID, ForeignKey("community_posts.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(SQLUUID, ForeignKey("users.id"), nullable=False)
    username = Column(String, nullable=False)
    content = Column(String, nullable=False)


class Vote(Base):
    """One vote per (post, user), enforced by a unique constraint."""
    __tablename__ = "community_votes"
    __table_args__ = (
        UniqueConstraint("post_id", "user_id", name="uq_community_votes_post_user"),
        CheckConstraint("vote_type IN ('upvote', 'downvote')", name="ck_community_votes_type"),
    )

    post_id = Column(SQLUUID, ForeignKey("community_posts.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(SQLUUID, ForeignKey("users.id"), nullable=False)
    vote_type = Column(String, nullable=False)
