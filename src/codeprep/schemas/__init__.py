from .base import BaseSchema, CreateBase, TimestampSchema, IDSchema, BaseResponseSchema, ApiResponse, MessageResponse
from .enums import Role, Difficulty, InterviewStatus, VoteType, SubscriptionPlan, AuthProvider
from .user import UserCreate, OAuthUserCreate, UserUpdate, UserPublic, UserResponse, UserStatistics
from .auth import Token, AuthResponse, OtpVerification, PasswordResetConfirm
from .problem import TestCase, ProblemCreate, ProblemUpdate, ProblemResponse, ProblemSummary, ProblemList, DailyChallengeResponse, LISTABLE_FIELDS
from .submission import SubmissionCreate, EvaluationOutcome, SubmissionResponse
from .interview import InterviewCreate, InterviewUpdate, InterviewResponse, TranscriptTurn, FollowUpRequest, FollowUpResponse, FeedbackRequest, FeedbackResponse
from .community import PostCreate, CommentCreate, VoteCreate, CommentResponse, PostResponse, VoteTally
from .payment import Subscription, SubscriptionChange, PaymentVerification
