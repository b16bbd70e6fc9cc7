import logging
from typing import Annotated, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status

from src.codeprep.api.auth_deps import OptionalUser
from src.codeprep.core.pbac import require_permission
from src.codeprep.crud.crud_community import Tally, comment as crud_comment, post as crud_post
from src.codeprep.db.session import SessionDep
from src.codeprep.models.base import utcnow
from src.codeprep.models.community import Comment, Post
from src.codeprep.models.user import User
from src.codeprep.schemas import (
    ApiResponse,
    CommentCreate,
    CommentResponse,
    MessageResponse,
    PostCreate,
    PostResponse,
    VoteCreate,
    VoteTally,
)

logger = logging.getLogger(__name__)

router = APIRouter()

ANONYMOUS_AUTHOR = "Anonymous"


def render_comment(comment: Comment, viewer_id: Optional[UUID]) -> CommentResponse:
    return CommentResponse(
        id=comment.id,
        post_id=comment.post_id,
        user_id=comment.user_id,
        username=comment.username,
        content=comment.content,
        created_at=comment.created_at,
        is_owner=viewer_id is not None and comment.user_id == viewer_id,
    )


def render_post(
    post: Post,
    viewer_id: Optional[UUID],
    tally: Tally = (0, "none"),
    comments: Optional[List[Comment]] = None,
) -> PostResponse:
    """Post as the viewer may see it; anonymous authors are hidden from everyone else."""
    is_owner = viewer_id is not None and post.user_id == viewer_id
    hidden = post.is_anonymous and not is_owner
    comments = comments or []
    votes, user_vote = tally
    return PostResponse(
        id=post.id,
        user_id=None if hidden else post.user_id,
        username=ANONYMOUS_AUTHOR if hidden else post.username,
        title=post.title,
        content=post.content,
        topic=post.topic,
        is_anonymous=post.is_anonymous,
        created_at=post.created_at,
        expires_at=post.expires_at,
        votes=votes,
        user_vote=user_vote,
        is_owner=is_owner,
        comment_count=len(comments),
        comments=[render_comment(c, viewer_id) for c in comments],
    )


async def get_live_post_or_404(db: SessionDep, post_id: UUID) -> Post:
    post = await crud_post.get(db, id=post_id)
    if not post or post.expires_at <= utcnow():
        raise HTTPException(status_code=404, detail="Post not found")
    return post


@router.get("/posts", response_model=ApiResponse[List[PostResponse]])
async def read_posts(db: SessionDep, current_user: OptionalUser, topic: Optional[str] = None):
    """
    Community feed, newest first.

    Votes, the viewer's own vote and comments for every listed post come
    from one query each, whatever the number of posts.
    """
    viewer_id = current_user.id if current_user else None
    posts = await crud_post.get_feed(db, topic=topic)
    post_ids = [p.id for p in posts]
    tallies = await crud_post.tallies(db, post_ids=post_ids, viewer_id=viewer_id)
    comments = await crud_comment.get_for_posts(db, post_ids=post_ids)
    return ApiResponse(data=[render_post(p, viewer_id, tallies[p.id], comments[p.id]) for p in posts])


@router.post("/posts", response_model=ApiResponse[PostResponse], status_code=status.HTTP_201_CREATED)
async def create_post(
    post_in: PostCreate,
    db: SessionDep,
    current_user: Annotated[User, Depends(require_permission("create", "community_posts"))],
):
    post = await crud_post.create_for_user(db, obj_in=post_in, user=current_user)
    return ApiResponse(message="Post created", data=render_post(post, current_user.id))


@router.get("/posts/{post_id}", response_model=ApiResponse[PostResponse])
async def read_post(post_id: UUID, db: SessionDep, current_user: OptionalUser):
    viewer_id = current_user.id if current_user else None
    post = await get_live_post_or_404(db, post_id)
    tallies = await crud_post.tallies(db, post_ids=[post.id], viewer_id=viewer_id)
    comments = await crud_comment.get_for_posts(db, post_ids=[post.id])
    return ApiResponse(data=render_post(post, viewer_id, tallies[post.id], comments[post.id]))


@router.delete("/posts/{post_id}", response_model=MessageResponse)
async def delete_post(
    post_id: UUID,
    db: SessionDep,
    current_user: Annotated[User, Depends(require_permission("delete", "community_posts"))],
):
    """Delete a post with its comments and votes. Only the author may delete it."""
    post = await crud_post.get(db, id=post_id)
    if not post:
        raise HTTPException(status_code=404, detail="Post not found")
    if post.user_id != current_user.id:
        raise HTTPException(status_code=403, detail="Not authorized")
    await crud_post.delete_with_children(db, db_obj=post)
    logger.info(f"Post {post_id} deleted by its author")
    return MessageResponse(message="Post deleted")


@router.get("/posts/{post_id}/comments", response_model=ApiResponse[List[CommentResponse]])
async def read_comments(post_id: UUID, db: SessionDep, current_user: OptionalUser):
    viewer_id = current_user.id if current_user else None
    post = await get_live_post_or_404(db, post_id)
    comments = await crud_comment.get_for_posts(db, post_ids=[post.id])
    return ApiResponse(data=[render_comment(c, viewer_id) for c in comments[post.id]])


@router.post(
    "/posts/{post_id}/comments",
    response_model=ApiResponse[CommentResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_comment(
    post_id: UUID,
    comment_in: CommentCreate,
    db: SessionDep,
    current_user: Annotated[User, Depends(require_permission("create", "community_comments"))],
):
    post = await get_live_post_or_404(db, post_id)
    comment = await crud_comment.create_for_post(db, obj_in=comment_in, post_id=post.id, user=current_user)
    return ApiResponse(message="Comment added", data=render_comment(comment, current_user.id))


@router.delete("/comments/{comment_id}", response_model=MessageResponse)
async def delete_comment(
    comment_id: UUID,
    db: SessionDep,
    current_user: Annotated[User, Depends(require_permission("delete", "community_comments"))],
):
    """Delete a comment. Only its author may delete it."""
    comment = await crud_comment.get(db, id=comment_id)
    if not comment:
        raise HTTPException(status_code=404, detail="Comment not found")
    if comment.user_id != current_user.id:
        raise HTTPException(status_code=403, detail="Not authorized")
    await crud_comment.remove(db, id=comment_id)
    return MessageResponse(message="Comment deleted")


@router.post("/posts/{post_id}/vote", response_model=ApiResponse[VoteTally])
async def vote_on_post(
    post_id: UUID,
    vote_in: VoteCreate,
    db: SessionDep,
    current_user: Annotated[User, Depends(require_permission("create", "votes"))],
):
    """Upvote, downvote or, with ``none``, withdraw a vote. Returns the new tally."""
    user_id = current_user.id
    post = await get_live_post_or_404(db, post_id)
    votes, user_vote = await crud_post.cast_vote(db, post_id=post.id, user_id=user_id, vote_type=vote_in.vote_type)
    return ApiResponse(data=VoteTally(post_id=post_id, votes=votes, user_vote=user_vote))
