from enum import Enum


class Role(str, Enum):
    """Account roles."""
    USER = "user"
    ADMIN = "admin"


class Difficulty(str, Enum):
    """Difficulty of problems and interviews."""
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class InterviewStatus(str, Enum):
    """Lifecycle of an interview."""
    SCHEDULED = "scheduled"
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class VoteType(str, Enum):
    """Vote a user can hold on a post. ``none`` removes the vote."""
    UPVOTE = "upvote"
    DOWNVOTE = "downvote"
    NONE = "none"


class SubscriptionPlan(str, Enum):
    """Subscription plans."""
    FREEMIUM = "freemium"
    PRO = "pro"
    PREMIUM = "premium"
    PREMIUM_MONTHLY = "premium_monthly"
    PREMIUM_YEARLY = "premium_yearly"


class AuthProvider(str, Enum):
    """Where an account was created."""
    CREDENTIALS = "credentials"
    GOOGLE = "google"
    GITHUB = "github"
