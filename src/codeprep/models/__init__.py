from .base import Base
from .user import User
from .password_reset import PasswordReset
from .problem import Problem
from .daily_challenge import DailyChallenge
from .submission import Submission
from .interview import Interview
from .community import Post, Comment, Vote

__all__ = [
    "Base",
    "User",
    "PasswordReset",
    "Problem",
    "DailyChallenge",
    "Submission",
    "Interview",
    "Post",
    "Comment",
    "Vote",
]
