from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException

from src.codeprep.core.pbac import require_permission
from src.codeprep.crud.crud_submission import submission as crud_submission
from src.codeprep.crud.crud_user import user as crud_user
from src.codeprep.db.session import SessionDep
from src.codeprep.models.user import User
from src.codeprep.schemas import ApiResponse, UserPublic, UserResponse, UserStatistics, UserUpdate

router = APIRouter()


@router.get("/me", response_model=ApiResponse[UserResponse])
async def read_user_me(
    current_user: Annotated[User, Depends(require_permission("read", "profile"))]
):
    """Get current user."""
    return ApiResponse(data=UserResponse.model_validate(current_user))


@router.put("/me", response_model=ApiResponse[UserResponse])
async def update_user_me(
    user_in: UserUpdate,
    db: SessionDep,
    current_user: Annotated[User, Depends(require_permission("update", "profile"))]
):
    """Edit the current user's profile. Only fields sent are changed."""
    user = await crud_user.update_profile(db, db_obj=current_user, obj_in=user_in)
    return ApiResponse(message="Profile updated", data=UserResponse.model_validate(user))


@router.get("/{user_id}", response_model=ApiResponse[UserPublic])
async def read_user(user_id: UUID, db: SessionDep):
    """Get a user's public profile."""
    user = await crud_user.get(db, id=user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return ApiResponse(data=UserPublic.model_validate(user))


@router.get("/{user_id}/statistics", response_model=ApiResponse[UserStatistics])
async def read_user_statistics(user_id: UUID, db: SessionDep):
    """Solved-problem statistics of a user, public like the profile."""
    user = await crud_user.get(db, id=user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    stats = await crud_submission.get_user_statistics(db, user_id=user.id)
    return ApiResponse(data=UserStatistics(**stats))
