import logging
from typing import Annotated, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status

from src.codeprep.core.pbac import require_permission
from src.codeprep.crud.crud_interview import interview as crud_interview
from src.codeprep.db.session import SessionDep
from src.codeprep.models.interview import Interview
from src.codeprep.models.user import User
from src.codeprep.schemas import (
    ApiResponse,
    FeedbackRequest,
    FeedbackResponse,
    FollowUpRequest,
    FollowUpResponse,
    InterviewCreate,
    InterviewResponse,
    InterviewUpdate,
)
from src.codeprep.services import interview_service
from src.codeprep.services.conversation_store import ConversationStore, get_conversation_store
from src.codeprep.services.text_generation import TextGenerationClient, get_text_generation_client

logger = logging.getLogger(__name__)

router = APIRouter()

TextGenerationDep = Annotated[TextGenerationClient, Depends(get_text_generation_client)]
ConversationStoreDep = Annotated[ConversationStore, Depends(get_conversation_store)]


async def get_owned_interview(db: SessionDep, interview_id: UUID, user: User) -> Interview:
    """The interview if the user owns it; 404 when absent, 403 when someone else's."""
    interview = await crud_interview.get(db, id=interview_id)
    if not interview:
        raise HTTPException(status_code=404, detail="Interview not found")
    if interview.user_id != user.id:
        raise HTTPException(status_code=403, detail="You do not have access to this interview")
    return interview


@router.get("", response_model=ApiResponse[List[InterviewResponse]])
async def read_interviews(
    db: SessionDep,
    current_user: Annotated[User, Depends(require_permission("read", "interviews"))],
    user_id: Annotated[Optional[UUID], Query(alias="userId")] = None,
):
    """The caller's interviews, newest first."""
    if user_id is not None and user_id != current_user.id:
        raise HTTPException(status_code=403, detail="You can only view your own interviews")
    interviews = await crud_interview.get_multi_by_user(db, user_id=current_user.id)
    return ApiResponse(data=[InterviewResponse.model_validate(i) for i in interviews])


@router.post("", response_model=ApiResponse[InterviewResponse], status_code=status.HTTP_201_CREATED)
async def create_interview(
    interview_in: InterviewCreate,
    db: SessionDep,
    text_generation: TextGenerationDep,
    current_user: Annotated[User, Depends(require_permission("create", "interviews"))],
):
    """
    Schedule an interview.

    Questions are generated once, here. When generation fails a fixed
    question set is stored instead and the request still succeeds.
    """
    questions = await interview_service.generate_questions(text_generation, interview_in)
    interview = await crud_interview.create_for_user(
        db, obj_in=interview_in, user_id=current_user.id, questions=questions
    )
    logger.info(f"Interview {interview.id} created with {len(questions)} questions")
    return ApiResponse(message="Interview created", data=InterviewResponse.model_validate(interview))


@router.get("/{interview_id}", response_model=ApiResponse[InterviewResponse])
async def read_interview(
    interview_id: UUID,
    db: SessionDep,
    current_user: Annotated[User, Depends(require_permission("read", "interviews"))],
):
    interview = await get_owned_interview(db, interview_id, current_user)
    return ApiResponse(data=InterviewResponse.model_validate(interview))


@router.put("/{interview_id}", response_model=ApiResponse[InterviewResponse])
async def update_interview(
    interview_id: UUID,
    interview_in: InterviewUpdate,
    db: SessionDep,
    current_user: Annotated[User, Depends(require_permission("update", "interviews"))],
):
    """Set status, feedback or rating. Repeating the same update changes nothing further."""
    interview = await get_owned_interview(db, interview_id, current_user)
    interview = await crud_interview.update(db, db_obj=interview, obj_in=interview_in)
    return ApiResponse(message="Interview updated", data=InterviewResponse.model_validate(interview))


@router.post("/{interview_id}/respond", response_model=ApiResponse[FollowUpResponse])
async def respond_to_answer(
    interview_id: UUID,
    answer: FollowUpRequest,
    db: SessionDep,
    text_generation: TextGenerationDep,
    conversations: ConversationStoreDep,
    current_user: Annotated[User, Depends(require_permission("update", "interviews"))],
):
    """Interviewer follow-up to a candidate answer; a fixed line when generation fails."""
    interview = await get_owned_interview(db, interview_id, current_user)
    result = await interview_service.generate_follow_up(
        text_generation,
        conversations,
        interview,
        user_input=answer.user_input,
        question_index=answer.question_index,
        candidate_name=answer.candidate_name or current_user.display_name,
    )
    return ApiResponse(data=FollowUpResponse(
        response=result.text_or(interview_service.FOLLOW_UP_FALLBACK),
        fallback=not result.ok,
    ))


@router.post("/{interview_id}/feedback", response_model=ApiResponse[FeedbackResponse])
async def create_feedback(
    interview_id: UUID,
    feedback_in: FeedbackRequest,
    db: SessionDep,
    text_generation: TextGenerationDep,
    conversations: ConversationStoreDep,
    current_user: Annotated[User, Depends(require_permission("update", "interviews"))],
):
    """
    Generate feedback for a finished interview.

    Generated feedback is stored on the interview, which is marked completed.
    The fallback text is returned but never stored.
    """
    interview = await get_owned_interview(db, interview_id, current_user)
    result = await interview_service.generate_feedback(
        text_generation, interview, feedback_in.transcript, feedback_in.completion_rate
    )
    if result.ok:
        await crud_interview.update(db, db_obj=interview, obj_in={"feedback": result.text, "status": "completed"})
        await interview_service.forget_conversation(conversations, interview_id)
    return ApiResponse(data=FeedbackResponse(
        feedback=result.text_or(interview_service.FEEDBACK_FALLBACK),
        fallback=not result.ok,
    ))
