from fastapi import APIRouter

from src.codeprep.api.api_v1.endpoints import auth, community, interviews, payments, problems, users

api_router = APIRouter()
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(problems.router, prefix="/problems", tags=["problems"])
api_router.include_router(interviews.router, prefix="/interviews", tags=["interviews"])
api_router.include_router(community.router, prefix="/community", tags=["community"])
api_router.include_router(payments.router, prefix="/payments", tags=["payments"])
